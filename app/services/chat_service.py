import logging
from collections.abc import Awaitable, Callable
from datetime import datetime

from openai import OpenAIError
from sqlalchemy import select, update, func, and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.errors import SessionNotFound
from app.models import BusinessProfile, ChatSession, ChatMessage, MessageSender
from app.services.llm import generate_auto_reply

logger = logging.getLogger(__name__)

AutoResponder = Callable[[BusinessProfile, list[dict]], Awaitable[str | None]]

GREETING_ID = "welcome"


def greeting_message(business_name: str) -> dict:
    """Welcome bubble shown on an empty thread. Never persisted."""
    return {
        "id": GREETING_ID,
        "sender": MessageSender.OWNER.value,
        "text": f"مرحباً بك في {business_name}! كيف يمكنني مساعدتك اليوم؟",
        "timestamp": datetime.utcnow(),
        "is_read": True,
        "is_ai": False,
    }


class ChatService:
    """
    Chat sessions and messages for both sides of a conversation.

    Owner side: session list with unread counts, message history, read
    marking, replies. Customer side: session open, message fetch (with a
    synthesized greeting on empty threads), send, and the optional AI
    auto-reply, which runs after the send as a separate step.
    """

    def __init__(self, db: AsyncSession, auto_responder: AutoResponder | None = None):
        self.db = db
        self.auto_responder = auto_responder or generate_auto_reply

    # ==================== SESSIONS ====================

    async def get_session(self, session_id: str, profile_id: str | None = None) -> ChatSession:
        """Load a session; with profile_id, also check it belongs to that profile."""
        result = await self.db.execute(
            select(ChatSession).where(ChatSession.id == session_id)
        )
        session = result.scalar_one_or_none()

        if not session or (profile_id is not None and session.profile_id != profile_id):
            raise SessionNotFound(f"Session not found: {session_id}")
        return session

    async def list_sessions(self, profile_id: str) -> list[dict]:
        """
        Sessions of a profile, most recently active first.

        unread_count is counted at query time from customer messages that
        are still unread; there is no stored counter.
        """
        unread_count = func.count(ChatMessage.id).label("unread_count")

        result = await self.db.execute(
            select(ChatSession, unread_count)
            .outerjoin(
                ChatMessage,
                and_(
                    ChatMessage.session_id == ChatSession.id,
                    ChatMessage.sender == MessageSender.CUSTOMER.value,
                    ChatMessage.is_read == False,
                ),
            )
            .where(ChatSession.profile_id == profile_id)
            .group_by(ChatSession.id)
            .order_by(ChatSession.last_active.desc())
        )

        return [
            {
                "id": session.id,
                "profile_id": session.profile_id,
                "customer_name": session.customer_name,
                "customer_phone": session.customer_phone,
                "last_text": session.last_text,
                "last_active": session.last_active,
                "unread_count": count,
            }
            for session, count in result.all()
        ]

    async def open_session(
        self,
        profile_id: str,
        session_id: str,
        customer_name: str | None = None,
        customer_phone: str | None = None,
    ) -> ChatSession:
        """Create the customer's session or refresh it (last_active, contact info)."""
        session = await self._ensure_session(profile_id, session_id)

        if customer_name:
            session.customer_name = customer_name
        if customer_phone:
            session.customer_phone = customer_phone
        session.last_active = datetime.utcnow()

        await self.db.commit()
        return session

    async def _ensure_session(self, profile_id: str, session_id: str) -> ChatSession:
        result = await self.db.execute(
            select(ChatSession).where(ChatSession.id == session_id)
        )
        session = result.scalar_one_or_none()

        if session is None:
            now = datetime.utcnow()
            session = ChatSession(
                id=session_id,
                profile_id=profile_id,
                last_active=now,
                created_at=now,
            )
            self.db.add(session)
            await self.db.flush()
        elif session.profile_id != profile_id:
            # Session tokens are minted per profile
            raise SessionNotFound(f"Session not found: {session_id}")

        return session

    # ==================== MESSAGES ====================

    async def list_messages(self, session_id: str) -> list[ChatMessage]:
        """Messages of a session, oldest first. Does not change read state."""
        result = await self.db.execute(
            select(ChatMessage)
            .where(ChatMessage.session_id == session_id)
            .order_by(ChatMessage.timestamp, ChatMessage.id)
        )
        return list(result.scalars().all())

    async def mark_read(self, session_id: str) -> int:
        """Mark every unread customer message of the session read. Returns how many flipped."""
        result = await self.db.execute(
            update(ChatMessage)
            .where(
                ChatMessage.session_id == session_id,
                ChatMessage.sender == MessageSender.CUSTOMER.value,
                ChatMessage.is_read == False,
            )
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount or 0

    async def reply(self, session_id: str, text: str, profile_id: str | None = None) -> ChatMessage:
        """Owner reply: append the message and refresh the session preview in one commit."""
        text = text.strip()
        if not text:
            raise ValueError("Message text is empty")

        session = await self.get_session(session_id, profile_id)
        message = self._append(session, MessageSender.OWNER, text, is_read=True)

        await self.db.commit()
        return message

    async def fetch_messages(self, profile: BusinessProfile, session_id: str) -> list:
        """
        Customer view of a thread.

        An empty (or not yet created) thread yields only the greeting, which
        is built on every call and never stored.
        """
        result = await self.db.execute(
            select(ChatSession.profile_id).where(ChatSession.id == session_id)
        )
        owner_profile_id = result.scalar_one_or_none()
        if owner_profile_id is not None and owner_profile_id != profile.id:
            raise SessionNotFound(f"Session not found: {session_id}")

        messages = await self.list_messages(session_id)
        if not messages:
            return [greeting_message(profile.name)]
        return messages

    async def send(self, profile: BusinessProfile, session_id: str, text: str) -> ChatMessage:
        """
        Customer message. Creates the session on first send.

        The AI auto-reply is not produced here: once the message is stored the
        caller schedules auto_reply(), so the send never waits on the model.
        """
        text = text.strip()
        if not text:
            raise ValueError("Message text is empty")

        session = await self._ensure_session(profile.id, session_id)
        message = self._append(session, MessageSender.CUSTOMER, text, is_read=False)
        await self.db.commit()
        return message

    def _append(
        self,
        session: ChatSession,
        sender: MessageSender,
        text: str,
        is_read: bool,
        is_ai: bool = False,
    ) -> ChatMessage:
        now = datetime.utcnow()
        message = ChatMessage(
            session_id=session.id,
            sender=sender.value,
            text=text,
            timestamp=now,
            is_read=is_read,
            is_ai=is_ai,
        )
        self.db.add(message)

        session.last_text = text
        session.last_active = now
        return message

    async def auto_reply(self, profile_id: str, session_id: str) -> ChatMessage | None:
        """
        AI owner reply to the thread, when the profile has the responder on.

        Returns None when it is off, not configured or the model call fails;
        a failure is logged and never surfaces to the customer.
        """
        result = await self.db.execute(
            select(BusinessProfile).where(BusinessProfile.id == profile_id)
        )
        profile = result.scalar_one_or_none()
        if profile is None or not profile.ai_enabled:
            return None

        session = await self.get_session(session_id, profile_id)
        history = [
            {"sender": m.sender, "text": m.text}
            for m in await self.list_messages(session.id)
        ]

        try:
            reply_text = await self.auto_responder(profile, history)
        except OpenAIError as e:
            logger.warning("AI auto-reply failed for session %s: %s", session.id, e)
            return None

        if not reply_text:
            return None

        message = self._append(session, MessageSender.OWNER, reply_text, is_read=True, is_ai=True)
        await self.db.commit()
        return message


async def run_auto_reply(
    session_factory: async_sessionmaker[AsyncSession],
    profile_id: str,
    session_id: str,
) -> None:
    """Background task: the request's session is closed by now, so open a new one."""
    async with session_factory() as db:
        try:
            await ChatService(db).auto_reply(profile_id, session_id)
        except (SessionNotFound, SQLAlchemyError) as e:
            logger.warning("AI auto-reply skipped for session %s: %s", session_id, e)
