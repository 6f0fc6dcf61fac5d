"""Typing presence API. Backed by Redis; accepted but not stored without it."""
from fastapi import APIRouter

from helpdesk.config import get_settings
from helpdesk.redis_client import typing_list, typing_mark
from helpdesk.schemas.chat import TypingIn, TypingOut

router = APIRouter(prefix="/api/tickets", tags=["presence"])


@router.put("/{ticket_id}/typing")
async def mark_typing(ticket_id: str, body: TypingIn):
    stored = await typing_mark(ticket_id, body.userId, body.userName, get_settings().typing_ttl_seconds)
    return {"success": True, "stored": stored}


@router.get("/{ticket_id}/typing", response_model=list[TypingOut])
async def get_typing(ticket_id: str, exclude: str | None = None):
    return [TypingOut(**entry) for entry in await typing_list(ticket_id, exclude=exclude)]
