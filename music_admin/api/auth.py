import asyncio
from fastapi import APIRouter
from pydantic import BaseModel

from music_admin.core.credential_store import credential_store
from music_admin.services.api_client import api_client
from music_admin.services.query_cache import query_cache

router = APIRouter()

class LoginRequest(BaseModel):
    email: str
    password: str

@router.post("/auth/login")
async def login(req: LoginRequest):
    user = await asyncio.to_thread(api_client.login, req.email, req.password)
    return {"user": user}

@router.post("/auth/logout")
async def logout():
    try:
        await asyncio.to_thread(api_client.logout)
    finally:
        # Lists cached for this admin must never reach the next login
        query_cache.clear()
    return {"success": True}

@router.get("/auth/me")
async def me():
    return {"logged_in": bool(credential_store.get_token()), "user": credential_store.get_user()}
