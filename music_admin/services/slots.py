from datetime import datetime
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

from music_admin.core.config import settings
from music_admin.core.logger import logger
from music_admin.models.admin_models import FlatSlot, NestedSlots, ScheduleShape, Slot, SlotSpec

# Locale independent, Monday == 0 like datetime.weekday()
WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

# Historical names of the nested slot list, in order of preference
NESTED_SLOT_FIELDS = ("slots", "schedule", "timings")

DEFAULT_TIME = "00:00"
UNKNOWN_DAY = "TBD"


def _display_zone() -> Optional[ZoneInfo]:
    return ZoneInfo(settings.DISPLAY_TIMEZONE) if settings.DISPLAY_TIMEZONE else None


def _parse_iso(value: str) -> datetime:
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    zone = _display_zone()
    if zone and dt.tzinfo:
        dt = dt.astimezone(zone)
    return dt


def _clock(value: Optional[str]) -> str:
    """
    Clock time as HH:MM. Accepts "HH:MM", "HH:MM:SS" and full ISO-8601
    timestamps; anything else is returned unchanged.
    """
    if not value:
        return DEFAULT_TIME
    if "T" in value:
        return _parse_iso(value).strftime("%H:%M")
    parts = value.split(":")
    if len(parts) >= 2:
        return f"{parts[0]}:{parts[1]}"
    return value


def parse_schedule(raw: Dict[str, Any]) -> ScheduleShape:
    """
    Classify a backend schedule container as nested (list of slots under a
    legacy field) or flat (the container is the slot). A container with
    neither yields a NestedSlots with no slots.
    """
    refs = {key: raw.get(key) for key in ("id", "course_id", "instructor_id", "room_id")}

    for field in NESTED_SLOT_FIELDS:
        if isinstance(raw.get(field), list):
            return NestedSlots(slots=raw[field], **refs)

    start = raw.get("start_time_of_day") or raw.get("start_time")
    end = raw.get("end_time_of_day") or raw.get("end_time")
    if start and end:
        return FlatSlot(slot=SlotSpec.model_validate(raw), **refs)

    return NestedSlots(**refs)


def synthetic_slot_id(schedule_id: Optional[str], start_time: str, end_time: str) -> str:
    # Deterministic so table keys survive re-renders; NOT collision free
    return f"{schedule_id or 'unscheduled'}-{start_time}-{end_time}"


def normalize_slot(raw_slot: Any, schedule_id: Optional[str]) -> Slot:
    """Normalize one raw slot. Raises on malformed input; callers drop the slot."""
    spec = raw_slot if isinstance(raw_slot, SlotSpec) else SlotSpec.model_validate(raw_slot)

    day = spec.day_of_week or spec.day
    start_raw = spec.start_time_of_day or spec.start_time or spec.start
    end_raw = spec.end_time_of_day or spec.end_time or spec.end

    if day:
        start_time, end_time = _clock(start_raw), _clock(end_raw)
    elif start_raw and "T" in start_raw:
        start_dt = _parse_iso(start_raw)
        day = WEEKDAYS[start_dt.weekday()]
        start_time, end_time = start_dt.strftime("%H:%M"), _clock(end_raw)
    else:
        # No day to go on; show the times exactly as stored
        day = UNKNOWN_DAY
        start_time, end_time = start_raw or DEFAULT_TIME, end_raw or DEFAULT_TIME

    return Slot(
        id=spec.id or synthetic_slot_id(schedule_id, start_time, end_time),
        schedule_id=schedule_id,
        day_of_week=day,
        start_time=start_time,
        end_time=end_time,
        label=f"{day} {start_time} - {end_time}",
    )


def normalize_slots(containers: Any) -> List[Slot]:
    """
    Flatten schedule containers into uniform Slot records.

    Order follows the containers, then each container's nested order. A
    container or slot that fails to normalize is logged and dropped; the
    batch itself never raises. Duplicate ids (two slots with identical
    schedule id and times and no own id) are kept and logged.
    """
    if not isinstance(containers, list):
        return []

    slots: List[Slot] = []
    seen = set()

    for index, raw in enumerate(containers):
        try:
            if not isinstance(raw, dict):
                raise TypeError(f"expected an object, got {type(raw).__name__}")
            schedule = parse_schedule(raw)
        except Exception as e:
            logger.warning(f"⚠️ Dropping schedule #{index}: {e}")
            continue

        raw_slots = schedule.slots if isinstance(schedule, NestedSlots) else [schedule.slot]

        for slot_index, raw_slot in enumerate(raw_slots):
            try:
                slot = normalize_slot(raw_slot, schedule.id)
            except Exception as e:
                logger.warning(f"⚠️ Dropping slot #{slot_index} of schedule {schedule.id}: {e}")
                continue

            if slot.id in seen:
                logger.warning(f"⚠️ Duplicate slot id '{slot.id}' (schedule {schedule.id}); selections may be ambiguous")
            seen.add(slot.id)
            slots.append(slot)

    return slots


def slot_labels(slots: List[Slot]) -> Dict[str, str]:
    """id -> label for table joins. On duplicate ids the first slot wins."""
    labels: Dict[str, str] = {}
    for slot in slots:
        labels.setdefault(slot.id, slot.label)
    return labels
