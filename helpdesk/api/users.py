"""Users API: list, create, delete, reset/change password."""
from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.config import get_settings
from helpdesk.deps import get_db, require_admin, require_self_or_admin
from helpdesk.schemas.user import ChangePasswordIn, ResetPasswordOut, UserCreateIn, UserOut
from helpdesk.storage.models import UserModel
from helpdesk.storage.repositories import (
    DuplicateUsernameError,
    user_create,
    user_delete,
    user_get,
    user_list,
    user_reset_password,
    user_set_password,
)

router = APIRouter(prefix="/api/users", tags=["users"])


def user_out(u: UserModel) -> UserOut:
    return UserOut(
        id=u.id,
        username=u.username,
        fullName=u.full_name,
        department=u.department,
        email=u.email,
        role=u.role,
        companyId=u.company_id,
    )


@router.get("", response_model=list[UserOut])
async def list_users(session: AsyncSession = Depends(get_db)):
    """All users; password hashes are never returned."""
    return [user_out(u) for u in await user_list(session)]


@router.get("/{user_id}", response_model=UserOut)
async def get_user(user_id: str, session: AsyncSession = Depends(get_db)):
    u = await user_get(session, user_id)
    if not u:
        raise HTTPException(status_code=404, detail="User not found")
    return user_out(u)


@router.post("", response_model=UserOut, status_code=201, dependencies=[Depends(require_admin)])
async def create_user(body: UserCreateIn, session: AsyncSession = Depends(get_db)):
    settings = get_settings()
    try:
        u = await user_create(
            session,
            username=body.username.strip(),
            full_name=body.fullName.strip(),
            password=body.password or settings.default_user_password,
            email=body.email.strip(),
            department=body.department.strip(),
            role=body.role.value,
            company_id=body.companyId,
            company_id_prefix=settings.company_id_prefix,
        )
    except DuplicateUsernameError:
        # Wire contract: duplicates surface as a server error
        raise HTTPException(status_code=500, detail="Username already exists")
    return user_out(u)


@router.delete("/{user_id}", status_code=204, dependencies=[Depends(require_admin)])
async def delete_user(user_id: str, session: AsyncSession = Depends(get_db)):
    """Remove the user. Their tickets are left in place."""
    if not await user_delete(session, user_id):
        raise HTTPException(status_code=404, detail="User not found")
    return Response(status_code=204)


@router.post("/{user_id}/reset-password", response_model=ResetPasswordOut, dependencies=[Depends(require_admin)])
async def reset_password(user_id: str, session: AsyncSession = Depends(get_db)):
    """Set a random temporary password. The plaintext is only ever returned here."""
    temporary = await user_reset_password(session, user_id)
    if temporary is None:
        raise HTTPException(status_code=404, detail="User not found")
    return ResetPasswordOut(temporaryPassword=temporary)


@router.put("/{user_id}/password", dependencies=[Depends(require_self_or_admin)])
async def change_password(
    user_id: str,
    body: ChangePasswordIn,
    session: AsyncSession = Depends(get_db),
):
    u = await user_set_password(session, user_id, body.newPassword)
    if not u:
        raise HTTPException(status_code=404, detail="User not found")
    return {"success": True}
