"""Tickets API: list, get, create, set status."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.deps import get_db, require_admin
from helpdesk.schemas.common import TicketStatus
from helpdesk.schemas.ticket import TicketCreateIn, TicketCreator, TicketOut, TicketStatusIn
from helpdesk.storage.models import TicketModel, UserModel
from helpdesk.storage.repositories import (
    ticket_create,
    ticket_get,
    ticket_list,
    ticket_set_status,
    user_get,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tickets", tags=["tickets"])


def _ticket_out(t: TicketModel, creator: Optional[UserModel]) -> TicketOut:
    return TicketOut(
        id=t.id,
        userId=t.user_id,
        title=t.title,
        description=t.description,
        department=t.department,
        status=t.status,
        createdAt=t.created_at.isoformat(),
        updatedAt=t.updated_at.isoformat(),
        screenshotUrl=t.screenshot_url,
        creator=TicketCreator(id=creator.id, username=creator.username, fullName=creator.full_name)
        if creator
        else None,
    )


@router.get("", response_model=list[TicketOut])
async def list_tickets(
    status: TicketStatus | None = None,
    userId: str | None = None,
    session: AsyncSession = Depends(get_db),
):
    """All tickets, newest first. No pagination."""
    rows = await ticket_list(session, status=status.value if status else None, user_id=userId)
    return [_ticket_out(t, u) for t, u in rows]


@router.get("/{ticket_id}", response_model=TicketOut)
async def get_ticket(ticket_id: str, session: AsyncSession = Depends(get_db)):
    t = await ticket_get(session, ticket_id)
    if not t:
        raise HTTPException(status_code=404, detail="Ticket not found")
    return _ticket_out(t, await user_get(session, t.user_id))


@router.post("", response_model=TicketOut, status_code=201)
async def create_ticket(body: TicketCreateIn, session: AsyncSession = Depends(get_db)):
    t = await ticket_create(
        session,
        body.userId,
        title=body.title,
        description=body.description,
        department=body.department,
        screenshot_url=body.screenshotUrl or None,
    )
    if not t:
        logger.warning("Ticket rejected: unknown user %s", body.userId)
        raise HTTPException(status_code=500, detail="Failed to create ticket")
    return _ticket_out(t, await user_get(session, t.user_id))


@router.put("/{ticket_id}/status", dependencies=[Depends(require_admin)])
async def set_ticket_status(
    ticket_id: str,
    body: TicketStatusIn,
    session: AsyncSession = Depends(get_db),
):
    """Any status may follow any status."""
    t = await ticket_set_status(session, ticket_id, body.status.value)
    if not t:
        raise HTTPException(status_code=404, detail="Ticket not found")
    return {"success": True}
