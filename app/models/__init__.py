# app/models/__init__.py

from app.core.database import Base

from app.models.user import User
from app.models.business_profile import BusinessProfile
from app.models.chat_session import ChatSession
from app.models.chat_message import ChatMessage
from app.models.enums import MessageSender, CountryCode, COUNTRY_DIAL_PREFIXES

__all__ = [
    "Base",
    "User",
    "BusinessProfile",
    "ChatSession",
    "ChatMessage",
    "MessageSender",
    "CountryCode",
    "COUNTRY_DIAL_PREFIXES",
]
