from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime
from homeease.db.db_models import MessageType


# ─── Chat Room Schemas ───────────────────────────────────────────────

class ChatRoomCreate(BaseModel):
    provider_id: str
    booking_id: Optional[str] = None


class ChatRoomResponse(BaseModel):
    id: str
    customer_id: str
    provider_id: str
    booking_id: Optional[str] = None
    is_active: bool
    last_message_at: Optional[datetime] = None
    created_at: datetime
    # Include last message preview
    last_message: Optional[str] = None
    unread_count: int = 0
    customer_name: Optional[str] = None
    provider_name: Optional[str] = None

    class Config:
        from_attributes = True


# ─── Message Schemas ─────────────────────────────────────────────────

class MessageCreate(BaseModel):
    content: str = Field(..., max_length=2000)
    message_type: MessageType = MessageType.TEXT

    @field_validator("content")
    @classmethod
    def strip_content(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Message cannot be empty")
        return v


class MessageResponse(BaseModel):
    id: str
    chat_room_id: str
    sender_id: str
    receiver_id: str
    content: str
    message_type: str
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True
