from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from music_admin.core.errors import ActionUnavailable
from music_admin.core.logger import logger
from music_admin.models.admin_models import BOOKING_ACTIONS, Booking, ListPage, Slot
from music_admin.services.admin_service import AdminService, admin_service
from music_admin.services.lookup import course_titles, join_label, user_names, user_schools
from music_admin.services.query_cache import query_key
from music_admin.services.slots import normalize_slots, slot_labels

# Where first / second choice slot ids have lived over the API's history
PREFERENCE_ID_FIELDS = (
    ("first_choice_slot_id", "first_preference_slot_id", "first_slot_id", "schedule_id"),
    ("second_choice_slot_id", "second_preference_slot_id", "second_slot_id"),
)
PREFERENCE_OBJECT_FIELDS = ("first_preference", "second_preference")


def allowed_actions(booking: Booking) -> List[str]:
    return list(BOOKING_ACTIONS.get(booking.status, []))


def candidate_slots(booking: Booking, containers: Any) -> List[Slot]:
    """
    Slots the booking may be assigned to: those of schedule containers for
    the booking's course. An empty list means assignment is unavailable.
    """
    if not booking.course_id or not isinstance(containers, list):
        return []

    matching = [
        c for c in containers
        if isinstance(c, dict) and c.get("course_id") is not None and str(c.get("course_id")) == booking.course_id
    ]
    return normalize_slots(matching)


def _trim_time(value: Any) -> str:
    if not value:
        return ""
    return ":".join(str(value).split(":")[:2])


def match_preference(preference: Dict[str, Any], slots: List[Slot]) -> Optional[str]:
    """Find a slot by the preference's day and start time (case-insensitive day)."""
    day = str(preference.get("day") or preference.get("day_of_week") or "").lower()
    start = _trim_time(preference.get("start_time"))
    if not day or not start:
        return None

    for slot in slots:
        if slot.day_of_week.lower() == day and slot.start_time == start:
            return slot.id
    return None


def preference_slot_id(booking: Dict[str, Any], index: int, slots: List[Slot]) -> Optional[str]:
    """
    Slot id of the applicant's first (index 0) or second (index 1) choice.

    Checked in order: slot_preferences[index], the first_/second_preference
    object (by id, then by matching day and start time against `slots`),
    then the legacy flat fields.
    """
    preferences = booking.get("slot_preferences")
    if isinstance(preferences, list) and len(preferences) > index and isinstance(preferences[index], dict):
        preference = preferences[index]
        found = preference.get("slot_id") or preference.get("id") or match_preference(preference, slots)
        if found:
            return str(found)

    preference = booking.get(PREFERENCE_OBJECT_FIELDS[index])
    if isinstance(preference, dict):
        found = (
            preference.get("id") or preference.get("slot_id") or preference.get("schedule_id")
            or match_preference(preference, slots)
        )
        if found:
            return str(found)

    for field in PREFERENCE_ID_FIELDS[index]:
        if booking.get(field):
            return str(booking[field])

    return None


def format_preference(preference: Any) -> str:
    if not isinstance(preference, dict):
        return "Unknown"
    day = str(preference.get("day") or preference.get("day_of_week") or "TBD")
    start = preference.get("start_time") or preference.get("start") or ""
    end = preference.get("end_time") or preference.get("end") or ""
    return f"{day[:1].upper()}{day[1:]} {start} - {end}"


def confirmation_choices(booking: Dict[str, Any], slots: List[Slot]) -> List[Dict[str, str]]:
    """The applicant's distinct first/second choices, labelled for the confirm dialog."""
    labels = slot_labels(slots)
    choices = []
    seen = set()

    for index in (0, 1):
        slot_id = preference_slot_id(booking, index, slots)
        if not slot_id or slot_id in seen:
            continue
        seen.add(slot_id)
        label = labels.get(slot_id) or format_preference(booking.get(PREFERENCE_OBJECT_FIELDS[index]))
        choices.append({"id": slot_id, "label": f"Choice {index + 1}: {label}", "value": slot_id})

    return choices


class BookingService:
    def __init__(self, admin: Optional[AdminService] = None):
        self.admin = admin or admin_service

    @property
    def client(self):
        return self.admin.client

    def get_booking(self, booking_id: str) -> Booking:
        return Booking.model_validate(self.admin.find("bookings", booking_id))

    def all_schedules(self) -> List[Any]:
        return self.admin.list_all("schedules")

    def _require(self, booking: Booking, action: str):
        if action not in allowed_actions(booking):
            raise ActionUnavailable(f"Cannot {action.replace('_', ' ')} a {booking.status} booking")

    def booking_rows(self, page: Optional[int] = None, limit: Optional[int] = None) -> ListPage:
        """
        Bookings joined with student name and school, course title and the
        labels of the first choice, second choice and confirmed slots.
        """
        bookings = self.admin.list("bookings", page, limit)
        users = self.admin.list_all("users")
        names, schools = user_names(users), user_schools(users)
        courses = course_titles(self.admin.list_all("courses"))
        slots = normalize_slots(self.all_schedules())
        labels = slot_labels(slots)

        rows = []
        for raw in bookings.data:
            try:
                booking = Booking.model_validate(raw)
            except ValidationError as e:
                logger.warning(f"⚠️ Skipping malformed booking row: {e.errors()[0].get('msg')}")
                continue

            nested_course = raw.get("courses") if isinstance(raw.get("courses"), dict) else {}
            first_id = preference_slot_id(raw, 0, slots)
            second_id = preference_slot_id(raw, 1, slots)

            rows.append({
                **booking.model_dump(),
                "student_name": booking.applicant_full_name or join_label(names, booking.user_id),
                "school": booking.applicant_school or schools.get(booking.user_id or "", "-"),
                "course_title": nested_course.get("title") or join_label(courses, booking.course_id),
                "first_choice": labels.get(first_id or "", "-"),
                "second_choice": labels.get(second_id or "", "-"),
                "confirmed_slot": labels.get(booking.confirmed_slot_id or "", "-"),
                "actions": allowed_actions(booking),
            })

        return ListPage(data=rows, total=bookings.total)

    def candidates_for(self, booking_id: str) -> Dict[str, Any]:
        booking = self.get_booking(booking_id)
        slots = candidate_slots(booking, self.all_schedules())
        return {
            "booking_id": booking.id,
            "course_id": booking.course_id,
            "slots": [slot.model_dump() for slot in slots],
            "can_assign": bool(slots) and "assign_slot" in allowed_actions(booking),
        }

    def choices_for(self, booking_id: str) -> List[Dict[str, str]]:
        booking = self.get_booking(booking_id)
        return confirmation_choices(booking.model_dump(), candidate_slots(booking, self.all_schedules()))

    def assign_slot(self, booking: Booking, slot_id: str, containers: Any) -> Any:
        """
        Assign `slot_id` to the booking. The schedule id sent along is taken
        from the normalized slot record, since synthetic slot ids cannot be
        mapped back to a container on their own.
        """
        self._require(booking, "assign_slot")

        candidates = candidate_slots(booking, containers)
        if not candidates:
            raise ActionUnavailable("No schedule slots exist for this booking's course")

        slot = next((s for s in candidates if s.id == slot_id), None)
        if slot is None or not slot.schedule_id:
            raise ActionUnavailable("Could not find schedule information for selected slot")

        result = self.client.post(
            f"/booking/admin/bookings/{booking.id}/assign-slot",
            json={"slot_id": slot.id, "schedule_id": slot.schedule_id},
            fallback="Failed to assign slot",
        )
        self.admin.cache.invalidate(query_key("bookings"))
        logger.info(f"✅ Slot {slot.label} assigned to booking {booking.id}")
        return result

    def assign_slot_by_id(self, booking_id: str, slot_id: str) -> Any:
        return self.assign_slot(self.get_booking(booking_id), slot_id, self.all_schedules())

    def confirm(self, booking_id: str) -> Any:
        self._require(self.get_booking(booking_id), "confirm")
        result = self.client.post(f"/booking/{booking_id}/confirm", fallback="Failed to confirm booking")
        self.admin.cache.invalidate(query_key("bookings"))
        logger.info(f"✅ Booking {booking_id} confirmed")
        return result

    def cancel(self, booking_id: str) -> Any:
        self._require(self.get_booking(booking_id), "cancel")
        result = self.client.post(f"/booking/{booking_id}/cancel", fallback="Failed to cancel booking")
        self.admin.cache.invalidate(query_key("bookings"))
        logger.info(f"🚫 Booking {booking_id} cancelled")
        return result

booking_service = BookingService()
