"""Request/response schemas for users and login."""
from typing import Optional

from pydantic import BaseModel, Field

from helpdesk.schemas.common import UserRole


class UserOut(BaseModel):
    id: str
    username: str
    fullName: str
    department: str
    email: str
    role: UserRole
    companyId: Optional[str] = None


class UserCreateIn(BaseModel):
    username: str = Field(..., min_length=1)
    fullName: str = Field(..., min_length=1)
    email: str = ""
    department: str = ""
    role: UserRole = UserRole.USER
    password: Optional[str] = None  # Falls back to DEFAULT_USER_PASSWORD
    companyId: Optional[str] = None


class LoginIn(BaseModel):
    username: str
    password: str


class LoginOut(BaseModel):
    success: bool = True
    user: UserOut
    token: str


class ResetPasswordOut(BaseModel):
    temporaryPassword: str


class ChangePasswordIn(BaseModel):
    newPassword: str = Field(..., min_length=6)
