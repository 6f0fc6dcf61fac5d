"""Repositories for users, tickets, chat messages."""
import logging
import time
from datetime import timedelta
from typing import Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.auth.passwords import generate_temporary_password, get_password_hash, verify_password
from helpdesk.schemas.common import TicketStatus, UserRole
from helpdesk.storage.models import (
    ChatMessageModel,
    TicketModel,
    UserModel,
    gen_user_id,
    utcnow,
)

logger = logging.getLogger(__name__)


class DuplicateUsernameError(Exception):
    """Username already taken."""


# ---------- Users ----------
async def user_list(session: AsyncSession) -> list[UserModel]:
    r = await session.execute(select(UserModel).order_by(UserModel.id))
    return list(r.scalars().all())


async def user_get(session: AsyncSession, id: str) -> Optional[UserModel]:
    r = await session.execute(select(UserModel).where(UserModel.id == id))
    return r.scalar_one_or_none()


async def user_get_by_username(session: AsyncSession, username: str) -> Optional[UserModel]:
    r = await session.execute(select(UserModel).where(UserModel.username == username))
    return r.scalar_one_or_none()


async def _free_user_id(session: AsyncSession) -> str:
    while True:
        candidate = gen_user_id()
        if await user_get(session, candidate) is None:
            return candidate


async def user_create(
    session: AsyncSession,
    *,
    username: str,
    full_name: str,
    password: str,
    email: str = "",
    department: str = "",
    role: str = UserRole.USER.value,
    company_id: Optional[str] = None,
    company_id_prefix: Optional[str] = None,
) -> UserModel:
    """Insert a user. Raises DuplicateUsernameError without touching the table if the name is taken."""
    if await user_get_by_username(session, username):
        raise DuplicateUsernameError(username)
    user_id = await _free_user_id(session)
    if company_id is None and company_id_prefix:
        company_id = f"{company_id_prefix}{user_id}"
    u = UserModel(
        id=user_id,
        username=username,
        full_name=full_name,
        email=email,
        department=department,
        role=role,
        company_id=company_id,
        password_hash=get_password_hash(password),
    )
    session.add(u)
    try:
        await session.flush()
    except IntegrityError as e:
        # Lost a race with a concurrent insert of the same name; the request session rolls back
        raise DuplicateUsernameError(username) from e
    logger.info("Created user %s (%s, role=%s)", u.id, username, role)
    return u


async def user_authenticate(session: AsyncSession, username: str, password: str) -> Optional[UserModel]:
    u = await user_get_by_username(session, username)
    if not u or not verify_password(password, u.password_hash):
        return None
    return u


async def user_set_password(session: AsyncSession, id: str, password: str) -> Optional[UserModel]:
    await session.execute(
        update(UserModel).where(UserModel.id == id).values(password_hash=get_password_hash(password))
    )
    await session.flush()
    return await user_get(session, id)


async def user_reset_password(session: AsyncSession, id: str) -> Optional[str]:
    """Replace the credential with a random one; return the plaintext once, or None if no such user."""
    if not await user_get(session, id):
        return None
    temporary = generate_temporary_password()
    await user_set_password(session, id, temporary)
    logger.info("Password reset for user %s", id)
    return temporary


async def user_delete(session: AsyncSession, id: str) -> bool:
    r = await session.execute(delete(UserModel).where(UserModel.id == id))
    await session.flush()
    if r.rowcount:
        logger.info("Deleted user %s", id)
    return bool(r.rowcount)


# ---------- Tickets ----------
async def ticket_list(
    session: AsyncSession,
    status: Optional[str] = None,
    user_id: Optional[str] = None,
) -> list[tuple[TicketModel, Optional[UserModel]]]:
    """Tickets newest first, each with its creator (None once the creator is deleted)."""
    q = (
        select(TicketModel, UserModel)
        .outerjoin(UserModel, UserModel.id == TicketModel.user_id)
        .order_by(TicketModel.created_at.desc())
    )
    if status:
        q = q.where(TicketModel.status == status)
    if user_id:
        q = q.where(TicketModel.user_id == user_id)
    r = await session.execute(q)
    return [(t, u) for t, u in r.all()]


async def ticket_get(session: AsyncSession, id: str) -> Optional[TicketModel]:
    r = await session.execute(select(TicketModel).where(TicketModel.id == id))
    return r.scalar_one_or_none()


async def ticket_create(
    session: AsyncSession,
    user_id: str,
    *,
    title: str,
    description: str = "",
    department: str = "",
    screenshot_url: Optional[str] = None,
) -> Optional[TicketModel]:
    """New PENDING ticket; returns None when the owner does not exist."""
    if not await user_get(session, user_id):
        return None
    now = utcnow()
    t = TicketModel(
        user_id=user_id,
        title=title,
        description=description,
        department=department,
        status=TicketStatus.PENDING.value,
        screenshot_url=screenshot_url,
        created_at=now,
        updated_at=now,
    )
    session.add(t)
    await session.flush()
    logger.info("Created ticket %s for user %s", t.id, user_id)
    return t


async def ticket_set_status(session: AsyncSession, id: str, status: str) -> Optional[TicketModel]:
    t = await ticket_get(session, id)
    if not t:
        return None
    # updated_at must move forward even when the clock has not
    now = max(utcnow(), t.updated_at + timedelta(microseconds=1))
    await session.execute(
        update(TicketModel).where(TicketModel.id == id).values(status=status, updated_at=now)
    )
    await session.flush()
    await session.refresh(t)
    logger.info("Ticket %s status -> %s", id, status)
    return t


# ---------- Chat messages ----------
async def messages_for_ticket(session: AsyncSession, ticket_id: str) -> list[ChatMessageModel]:
    r = await session.execute(
        select(ChatMessageModel)
        .where(ChatMessageModel.ticket_id == ticket_id)
        .order_by(ChatMessageModel.timestamp)
    )
    return list(r.scalars().all())


async def message_add(
    session: AsyncSession,
    ticket_id: str,
    sender_id: str,
    sender_name: str,
    text: str,
) -> ChatMessageModel:
    r = await session.execute(
        select(func.max(ChatMessageModel.timestamp)).where(ChatMessageModel.ticket_id == ticket_id)
    )
    last = r.scalar_one_or_none()
    now_ms = int(time.time() * 1000)
    # Strictly increasing per ticket so two sends in one millisecond keep call order
    timestamp = now_ms if last is None else max(now_ms, last + 1)
    m = ChatMessageModel(
        ticket_id=ticket_id,
        sender_id=sender_id,
        sender_name=sender_name,
        text=text,
        timestamp=timestamp,
    )
    session.add(m)
    await session.flush()
    return m
