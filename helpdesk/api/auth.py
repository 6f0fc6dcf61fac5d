"""Auth API: username/password login -> user + JWT."""
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.api.users import user_out
from helpdesk.auth.jwt_handler import create_token
from helpdesk.deps import get_current_user, get_db
from helpdesk.schemas.user import LoginIn, LoginOut, UserOut
from helpdesk.storage.models import UserModel
from helpdesk.storage.repositories import user_authenticate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["auth"])


@router.post("/login", response_model=LoginOut, responses={401: {"description": "Invalid credentials"}})
async def login(body: LoginIn, session: AsyncSession = Depends(get_db)):
    """Check credentials. The browser client reads `success` rather than the status code."""
    user = await user_authenticate(session, body.username, body.password)
    if not user:
        logger.info("Failed login for %s", body.username)
        return JSONResponse(
            status_code=401,
            content={"success": False, "message": "Invalid username or password"},
        )
    return LoginOut(success=True, user=user_out(user), token=create_token(user.id, user.role))


@router.get("/me", response_model=UserOut)
async def get_me(user: UserModel = Depends(get_current_user)):
    """Current user (from JWT)."""
    return user_out(user)
