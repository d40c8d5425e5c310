from datetime import datetime
from typing import Literal

from pydantic import Field

from app.schemas.base import CamelModel


# ============== Message Schemas ==============

class MessageResponse(CamelModel):
    """A chat message. The synthesized greeting has id "welcome" and is not stored."""
    id: int | str
    sender: Literal["customer", "owner"]
    text: str
    timestamp: datetime
    is_read: bool = False
    is_ai: bool = False


class MessageListResponse(CamelModel):
    messages: list[MessageResponse]


class SendMessageRequest(CamelModel):
    text: str = Field(..., min_length=1, max_length=2000)


class MarkReadResponse(CamelModel):
    marked: int


# ============== Session Schemas ==============

class SessionOpenRequest(CamelModel):
    """Customer opening (or re-opening) their thread with a business."""
    session_id: str = Field(..., min_length=1, max_length=120)
    customer_name: str | None = Field(None, max_length=120)
    customer_phone: str | None = Field(None, max_length=40)


class ChatSessionResponse(CamelModel):
    id: str
    profile_id: str
    customer_name: str | None = None
    customer_phone: str | None = None
    last_text: str | None = None
    last_active: datetime
    unread_count: int = 0


class SessionListResponse(CamelModel):
    sessions: list[ChatSessionResponse]
