"""Shared FastAPI dependencies."""
from typing import AsyncGenerator

from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.auth.jwt_handler import decode_token
from helpdesk.config import get_settings
from helpdesk.schemas.common import UserRole
from helpdesk.storage.db import get_session
from helpdesk.storage.models import UserModel
from helpdesk.storage.repositories import user_get


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with get_session() as session:
        yield session


async def get_current_user(
    authorization: str | None = Header(None, alias="Authorization"),
    session: AsyncSession = Depends(get_db),
) -> UserModel:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing or invalid Authorization")
    token = authorization[7:].strip()
    payload = decode_token(token)
    if not payload or "sub" not in payload:
        raise HTTPException(status_code=401, detail="Invalid token")
    user = await user_get(session, payload["sub"])
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    return user


async def require_admin(
    authorization: str | None = Header(None, alias="Authorization"),
    session: AsyncSession = Depends(get_db),
) -> UserModel | None:
    """ADMIN bearer token when ENFORCE_ROLES is on; otherwise admin endpoints stay open."""
    if not get_settings().enforce_roles:
        return None
    user = await get_current_user(authorization, session)
    if user.role != UserRole.ADMIN.value:
        raise HTTPException(status_code=403, detail="Admin role required")
    return user


async def require_self_or_admin(
    user_id: str,
    authorization: str | None = Header(None, alias="Authorization"),
    session: AsyncSession = Depends(get_db),
) -> UserModel | None:
    """With ENFORCE_ROLES on, only the account owner or an ADMIN may act on /users/{user_id}."""
    if not get_settings().enforce_roles:
        return None
    user = await get_current_user(authorization, session)
    if user.id != user_id and user.role != UserRole.ADMIN.value:
        raise HTTPException(status_code=403, detail="Not allowed for this user")
    return user
