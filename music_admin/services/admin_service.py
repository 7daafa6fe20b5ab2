from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from music_admin.core.errors import BackendError
from music_admin.core.logger import logger
from music_admin.models.admin_models import AssignRoomInput, ListPage, RoomAvailabilityInput
from music_admin.services.api_client import ApiClient, api_client
from music_admin.services.lookup import course_titles, instructor_names, join_label, room_names
from music_admin.services.query_cache import QueryCache, query_cache, query_key
from music_admin.services.responses import normalize_list_response, unwrap
from music_admin.services.slots import normalize_slots

# Page size used when a screen needs the whole list for lookups
ALL_ITEMS_LIMIT = 1000


@dataclass(frozen=True)
class Resource:
    name: str
    list_path: str
    item_path: str
    envelope_key: str
    label: str
    # Backend serves GET {list_path}/{id}; otherwise records come from the list
    detail: bool = False


RESOURCES: Dict[str, Resource] = {
    "users": Resource("users", "/admin/users", "/admin/users", "users", "user"),
    "students": Resource("students", "/admin/students", "/admin/students", "students", "student", detail=True),
    "instructors": Resource("instructors", "/admin/instructor", "/admin/instructor", "instructors", "instructor"),
    "rooms": Resource("rooms", "/admin/rooms", "/admin/rooms", "rooms", "room"),
    "courses": Resource("courses", "/admin/courses", "/courses", "courses", "course"),
    "schedules": Resource("schedules", "/admin/schedules", "/admin/schedules", "schedules", "schedule"),
    "bookings": Resource("bookings", "/admin/bookings", "/admin/bookings", "bookings", "booking"),
}


class UnknownResource(KeyError):
    pass


class AdminService:
    """Cached list queries and cache-invalidating mutations for every admin screen."""

    def __init__(self, client: Optional[ApiClient] = None, cache: Optional[QueryCache] = None):
        self.client = client or api_client
        self.cache = cache or query_cache

    def resource(self, name: str) -> Resource:
        try:
            return RESOURCES[name]
        except KeyError:
            raise UnknownResource(name) from None

    # --- Queries ---

    def list(self, name: str, page: Optional[int] = None, limit: Optional[int] = None) -> ListPage:
        res = self.resource(name)
        params = {"page": page, "limit": limit} if page else None

        def _fetch() -> ListPage:
            body = self.client.get(res.list_path, params=params, fallback=f"Failed to load {res.name}")
            return normalize_list_response(body, res.envelope_key)

        return self.cache.fetch(query_key(res.name, page, limit), _fetch)

    def list_all(self, name: str) -> List[Any]:
        return self.list(name, 1, ALL_ITEMS_LIMIT).data

    def get(self, name: str, item_id: str) -> Any:
        res = self.resource(name)
        if not res.detail:
            return self.find(name, item_id)
        return self.cache.fetch(
            query_key(res.name, "detail", item_id),
            lambda: unwrap(self.client.get(f"{res.list_path}/{item_id}", fallback=f"Failed to load {res.label}")),
        )

    def find(self, name: str, item_id: str) -> Dict[str, Any]:
        """Look a record up by id in the cached full list."""
        res = self.resource(name)
        for item in self.list_all(name):
            if isinstance(item, dict) and str(item.get("id")) == str(item_id):
                return item
        raise BackendError(f"{res.label.capitalize()} {item_id} not found", status_code=404)

    def dashboard(self) -> Dict[str, Any]:
        return self.cache.fetch(
            query_key("dashboard"),
            lambda: unwrap(self.client.get("/admin/dashboard", fallback="Failed to load dashboard")) or {},
        )

    # --- Mutations ---

    def create(self, name: str, payload: Dict[str, Any]) -> Any:
        res = self.resource(name)
        result = self.client.post(res.item_path, json=payload, fallback=f"Failed to create {res.label}")
        self.cache.invalidate(query_key(res.name))
        logger.info(f"🆕 Created {res.label}")
        return unwrap(result)

    def update(self, name: str, item_id: str, payload: Dict[str, Any]) -> Any:
        res = self.resource(name)
        result = self.client.put(f"{res.item_path}/{item_id}", json=payload, fallback=f"Failed to update {res.label}")
        self.cache.invalidate(query_key(res.name))
        logger.info(f"✏️ Updated {res.label} {item_id}")
        return unwrap(result)

    def delete(self, name: str, item_id: str) -> Any:
        res = self.resource(name)
        result = self.client.delete(f"{res.item_path}/{item_id}", fallback=f"Failed to delete {res.label}")
        self.cache.invalidate(query_key(res.name))
        logger.info(f"🗑️ Deleted {res.label} {item_id}")
        return unwrap(result)

    def setup_room_availability(self, room_id: str, availability: RoomAvailabilityInput) -> Any:
        result = self.client.post(
            f"/admin/rooms/{room_id}/availability",
            json=availability.model_dump(),
            fallback="Failed to set room availability",
        )
        self.cache.invalidate(query_key("rooms"))
        logger.info(f"📅 Availability set for room {room_id} ({len(availability.schedule)} blocks)")
        return unwrap(result)

    def assign_room(self, assignment: AssignRoomInput) -> Any:
        result = self.client.post("/booking/admin/assign-room", json=assignment.model_dump(), fallback="Failed to assign room")
        self.cache.invalidate(query_key("courses"))
        self.cache.invalidate(query_key("schedules"))
        logger.info(f"🏠 Room {assignment.room_id} assigned to course {assignment.course_id}")
        return unwrap(result)

    # --- Table rows ---

    def schedule_rows(self, page: Optional[int] = None, limit: Optional[int] = None) -> ListPage:
        """Schedules with course, instructor and room labels joined in, plus their slots."""
        schedules = self.list("schedules", page, limit)
        courses = course_titles(self.list_all("courses"))
        instructors = instructor_names(self.list_all("instructors"))
        rooms = room_names(self.list_all("rooms"))

        rows = []
        for schedule in schedules.data:
            if not isinstance(schedule, dict):
                continue
            rows.append({
                **schedule,
                "course_title": join_label(courses, schedule.get("course_id")),
                "instructor_name": join_label(instructors, schedule.get("instructor_id")),
                "room_name": join_label(rooms, schedule.get("room_id")),
                "slots": [slot.model_dump() for slot in normalize_slots([schedule])],
            })
        return ListPage(data=rows, total=schedules.total)

admin_service = AdminService()
