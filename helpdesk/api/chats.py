"""Ticket chat API: fetch all messages, append one."""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.deps import get_db
from helpdesk.schemas.chat import MessageOut, SendMessageIn
from helpdesk.storage.models import ChatMessageModel
from helpdesk.storage.repositories import message_add, messages_for_ticket, ticket_get

router = APIRouter(prefix="/api/tickets", tags=["chat"])


def message_out(m: ChatMessageModel) -> MessageOut:
    return MessageOut(
        id=m.id,
        ticketId=m.ticket_id,
        senderId=m.sender_id,
        senderName=m.sender_name,
        text=m.text,
        timestamp=m.timestamp,
    )


@router.get("/{ticket_id}/messages", response_model=list[MessageOut])
async def get_messages(ticket_id: str, session: AsyncSession = Depends(get_db)):
    """Full snapshot, oldest first. Clients poll this and replace what they hold."""
    return [message_out(m) for m in await messages_for_ticket(session, ticket_id)]


@router.post("/{ticket_id}/messages", response_model=MessageOut, status_code=201)
async def send_message(
    ticket_id: str,
    body: SendMessageIn,
    session: AsyncSession = Depends(get_db),
):
    if not await ticket_get(session, ticket_id):
        raise HTTPException(status_code=404, detail="Ticket not found")
    m = await message_add(session, ticket_id, body.senderId, body.senderName, body.text)
    return message_out(m)
