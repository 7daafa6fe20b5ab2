from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator


def _as_text(value: Any) -> Any:
    # Backend ids and times arrive as str, int or float depending on the endpoint
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


# Optional string that also accepts numeric ids
Text = Annotated[Optional[str], BeforeValidator(_as_text)]


# --- Entities (read-only copies of backend records) ---

class LabelledEntity(BaseModel):
    """
    Any entity that shows up in a lookup join: users, students, instructors,
    courses, rooms. Every label field is optional because historical API
    versions used different names.
    """
    model_config = ConfigDict(extra="ignore")

    id: Text = None
    user_id: Text = None
    full_name: Text = None
    name: Text = None
    title: Text = None
    email: Text = None
    school: Text = None

    def first_present(self, fields: List[str]) -> Optional[str]:
        """Value of the first field in `fields` that is non-empty, else None."""
        for field in fields:
            value = getattr(self, field, None)
            if value:
                return value
        return None


class Booking(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Text = None
    user_id: Text = None
    course_id: Text = None
    status: str = "pending"
    first_choice_slot_id: Text = None
    second_choice_slot_id: Text = None
    confirmed_slot_id: Text = None
    applicant_full_name: Text = None
    applicant_school: Text = None
    created_at: Text = None

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, value: Any) -> str:
        return str(value).lower() if value else "pending"


# pending | confirmed | cancelled -> actions the admin may take
BOOKING_ACTIONS: Dict[str, List[str]] = {
    "pending": ["confirm", "assign_slot", "cancel"],
    "confirmed": ["cancel"],
    "cancelled": [],
}


# --- Schedules and slots ---

class SlotSpec(BaseModel):
    """One raw slot as the backend sends it, in either encoding."""
    model_config = ConfigDict(extra="ignore")

    id: Text = None
    day_of_week: Text = None
    day: Text = None
    start_time: Text = None
    end_time: Text = None
    start_time_of_day: Text = None
    end_time_of_day: Text = None
    start: Text = None
    end: Text = None


class NestedSlots(BaseModel):
    """Schedule container carrying its slots under slots/schedule/timings."""
    shape: Literal["nested"] = "nested"
    id: Text = None
    course_id: Text = None
    instructor_id: Text = None
    room_id: Text = None
    slots: List[Any] = Field(default_factory=list)


class FlatSlot(BaseModel):
    """Older schedule container that is itself the slot."""
    shape: Literal["flat"] = "flat"
    id: Text = None
    course_id: Text = None
    instructor_id: Text = None
    room_id: Text = None
    slot: SlotSpec


ScheduleShape = Annotated[Union[NestedSlots, FlatSlot], Field(discriminator="shape")]


class Slot(BaseModel):
    id: str
    schedule_id: Optional[str] = None
    day_of_week: str
    start_time: str
    end_time: str
    label: str


# --- Lists ---

class ListPage(BaseModel):
    data: List[Any] = Field(default_factory=list)
    total: int = 0


# --- Reports ---

class DashboardStats(BaseModel):
    total_bookings: int = 0
    total_revenue: float = 0
    total_courses: int = 0
    total_students: int = 0
    active_instructors: int = 0
    pending_bookings: int = 0
    completed_bookings: int = 0
    cancelled_bookings: int = 0


class RevenueReport(BaseModel):
    period: str
    total_revenue: float = 0
    booking_count: int = 0
    course_revenue: float = 0
    average_per_booking: float = 0


class ActivityLog(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Text = None
    action: str
    entity_type: Text = None
    entity_id: Text = None
    user_id: Text = None
    user_email: Text = None
    description: Text = None
    timestamp: Text = None
    created_at: Text = None


# --- Notifications ---

class Notice(BaseModel):
    variant: Literal["default", "destructive"] = "default"
    title: str
    description: str
    redirect: Optional[str] = None


# --- Mutation payloads ---

class ScheduleSlotInput(BaseModel):
    day_of_week: str = Field(..., min_length=1)
    start_time: str = Field(..., min_length=1)
    end_time: str = Field(..., min_length=1)
    duration: int = Field(..., ge=1)


class ScheduleInput(BaseModel):
    course_id: str = Field(..., min_length=1)
    instructor_id: str = Field(..., min_length=1)
    room_id: str = Field(..., min_length=1)
    max_students: int = Field(1, ge=1)
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    schedule: List[ScheduleSlotInput] = Field(..., min_length=1)


class RoomAvailabilityBlock(BaseModel):
    day_of_week: str = Field(..., min_length=1)
    start_time: str = Field(..., min_length=1)
    end_time: str = Field(..., min_length=1)
    is_available: bool = True


class RoomAvailabilityInput(BaseModel):
    schedule: List[RoomAvailabilityBlock] = Field(..., min_length=1)


class RoomAssignmentSchedule(BaseModel):
    days: List[str] = Field(..., min_length=1)
    time: str = Field(..., min_length=1)
    duration: int = Field(..., ge=1)


class AssignRoomInput(BaseModel):
    course_id: str = Field(..., min_length=1)
    room_id: str = Field(..., min_length=1)
    schedule: RoomAssignmentSchedule
