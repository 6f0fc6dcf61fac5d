"""Request/response schemas for tickets."""
from typing import Optional

from pydantic import BaseModel, Field

from helpdesk.schemas.common import TicketStatus


class TicketCreator(BaseModel):
    id: str
    username: str
    fullName: str


class TicketOut(BaseModel):
    id: str
    userId: str
    title: str
    description: str
    department: str
    status: TicketStatus
    createdAt: str  # ISO datetime
    updatedAt: str  # ISO datetime
    screenshotUrl: Optional[str] = None  # Base64 data URL or plain URL
    creator: Optional[TicketCreator] = None  # None once the owner is deleted


class TicketCreateIn(BaseModel):
    userId: str
    title: str = Field(..., min_length=1)
    description: str = ""
    department: str = ""
    screenshotUrl: Optional[str] = None


class TicketStatusIn(BaseModel):
    status: TicketStatus
