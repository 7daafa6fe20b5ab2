import asyncio
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException

from music_admin.core.security import require_session
from music_admin.models.admin_models import AssignRoomInput, Notice, RoomAvailabilityInput, ScheduleInput
from music_admin.services.admin_service import RESOURCES, admin_service

router = APIRouter(prefix="/admin", dependencies=[Depends(require_session)])

def _check_resource(resource: str):
    if resource not in RESOURCES:
        raise HTTPException(status_code=404, detail=f"Unknown resource '{resource}'")

def _done(description: str, data: Any = None) -> Dict[str, Any]:
    return {"notice": Notice(title="Success", description=description).model_dump(), "data": data}

@router.get("/dashboard")
async def dashboard():
    return await asyncio.to_thread(admin_service.dashboard)

@router.get("/schedules")
async def list_schedules(page: Optional[int] = None, limit: Optional[int] = None):
    return await asyncio.to_thread(admin_service.schedule_rows, page, limit)

@router.post("/schedules")
async def create_schedule(schedule: ScheduleInput):
    result = await asyncio.to_thread(admin_service.create, "schedules", schedule.model_dump())
    return _done("Schedule created successfully", result)

@router.put("/schedules/{schedule_id}")
async def update_schedule(schedule_id: str, schedule: ScheduleInput):
    result = await asyncio.to_thread(admin_service.update, "schedules", schedule_id, schedule.model_dump())
    return _done("Schedule updated successfully", result)

@router.post("/rooms/{room_id}/availability")
async def room_availability(room_id: str, availability: RoomAvailabilityInput):
    result = await asyncio.to_thread(admin_service.setup_room_availability, room_id, availability)
    return _done("Room availability saved", result)

@router.post("/assign-room")
async def assign_room(assignment: AssignRoomInput):
    result = await asyncio.to_thread(admin_service.assign_room, assignment)
    return _done("Room assigned successfully", result)

@router.get("/{resource}")
async def list_resource(resource: str, page: Optional[int] = None, limit: Optional[int] = None):
    _check_resource(resource)
    return await asyncio.to_thread(admin_service.list, resource, page, limit)

@router.get("/{resource}/{item_id}")
async def get_resource(resource: str, item_id: str):
    _check_resource(resource)
    return {"data": await asyncio.to_thread(admin_service.get, resource, item_id)}

@router.post("/{resource}")
async def create_resource(resource: str, payload: Dict[str, Any] = Body(...)):
    _check_resource(resource)
    result = await asyncio.to_thread(admin_service.create, resource, payload)
    return _done(f"{RESOURCES[resource].label.capitalize()} created successfully", result)

@router.put("/{resource}/{item_id}")
async def update_resource(resource: str, item_id: str, payload: Dict[str, Any] = Body(...)):
    _check_resource(resource)
    result = await asyncio.to_thread(admin_service.update, resource, item_id, payload)
    return _done(f"{RESOURCES[resource].label.capitalize()} updated successfully", result)

@router.delete("/{resource}/{item_id}")
async def delete_resource(resource: str, item_id: str):
    _check_resource(resource)
    result = await asyncio.to_thread(admin_service.delete, resource, item_id)
    return _done(f"{RESOURCES[resource].label.capitalize()} deleted successfully", result)
