import asyncio
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from music_admin.core.security import require_session
from music_admin.models.admin_models import Notice
from music_admin.services.booking_service import booking_service

router = APIRouter(prefix="/bookings", dependencies=[Depends(require_session)])

class AssignSlotRequest(BaseModel):
    slot_id: str

@router.get("")
async def list_bookings(page: int = 1, limit: int = 10):
    return await asyncio.to_thread(booking_service.booking_rows, page, limit)

@router.get("/{booking_id}/candidate-slots")
async def candidate_slots(booking_id: str):
    return await asyncio.to_thread(booking_service.candidates_for, booking_id)

@router.get("/{booking_id}/choices")
async def confirmation_choices(booking_id: str):
    choices = await asyncio.to_thread(booking_service.choices_for, booking_id)
    if not choices:
        # Nothing to pick from; the admin has to assign a slot manually
        notice = Notice(title="No Preferences Found",
                        description="This booking has no matching schedule preferences. Please assign a slot manually.")
        return {"choices": [], "notice": notice.model_dump()}
    return {"choices": choices}

@router.post("/{booking_id}/assign-slot")
async def assign_slot(booking_id: str, req: AssignSlotRequest):
    result = await asyncio.to_thread(booking_service.assign_slot_by_id, booking_id, req.slot_id)
    return {"notice": Notice(title="Success", description="Slot assigned successfully").model_dump(), "data": result}

@router.post("/{booking_id}/confirm")
async def confirm_booking(booking_id: str):
    result = await asyncio.to_thread(booking_service.confirm, booking_id)
    return {"notice": Notice(title="Success", description="Booking confirmed successfully").model_dump(), "data": result}

@router.post("/{booking_id}/cancel")
async def cancel_booking(booking_id: str):
    result = await asyncio.to_thread(booking_service.cancel, booking_id)
    return {"notice": Notice(title="Success", description="Booking cancelled successfully").model_dump(), "data": result}
