"""Request/response schemas for ticket chat and typing presence."""
from pydantic import BaseModel, field_validator


class MessageOut(BaseModel):
    id: str
    ticketId: str
    senderId: str
    senderName: str
    text: str
    timestamp: int  # epoch millis


class SendMessageIn(BaseModel):
    senderId: str
    senderName: str
    text: str

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Message text must not be empty")
        return v


class TypingIn(BaseModel):
    userId: str
    userName: str = ""


class TypingOut(BaseModel):
    userId: str
    userName: str
