import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from app.client.api import BazChatClient
from app.client.identity import SessionIdentity
from app.client.polling import CancellationToken, Poller, DEFAULT_MESSAGE_POLL_SECONDS
from app.core.errors import BazChatError

logger = logging.getLogger(__name__)

SENT = "sent"
PENDING = "pending"
FAILED = "failed"


@dataclass
class LocalMessage:
    id: int | str
    sender: str
    text: str
    timestamp: datetime | str
    status: str = SENT
    is_ai: bool = False

    @classmethod
    def from_api(cls, data: dict) -> "LocalMessage":
        return cls(
            id=data["id"],
            sender=data["sender"],
            text=data["text"],
            timestamp=data["timestamp"],
            is_ai=data.get("isAi", False),
        )


@dataclass
class SendOutcome:
    """Result of an optimistic send. On failure the entry stays in the list, marked failed."""
    ok: bool
    message: LocalMessage
    error: BazChatError | None = None


@dataclass
class CustomerChat:
    """
    Customer side of the public chat page.

    `messages` is the local view: the last server list plus optimistic
    entries that are still pending or failed. Failed entries are kept until
    the caller discards or retries them.
    """
    client: BazChatClient
    identity: SessionIdentity
    poll_interval: float = DEFAULT_MESSAGE_POLL_SECONDS
    on_reply: Callable[[LocalMessage], None] | None = None

    profile: dict | None = None
    session_id: str | None = None
    messages: list[LocalMessage] = field(default_factory=list)
    _server_count: int | None = field(default=None, init=False, repr=False)

    @property
    def available(self) -> bool:
        return self.profile is not None

    async def load(self, slug_or_id: str) -> dict | None:
        """Resolve the storefront and this browser's session token. None when unavailable."""
        self.profile = await self.client.public_profile(slug_or_id)
        if self.profile is None:
            return None

        self.session_id = self.identity.get_or_create(self.profile["id"])
        return self.profile

    def _require_loaded(self) -> None:
        if self.profile is None or self.session_id is None:
            raise RuntimeError("Chat is not loaded")

    async def introduce(self, customer_name: str, customer_phone: str) -> dict:
        """Lead form: attach the customer's name and phone to the session."""
        self._require_loaded()
        return await self.client.open_session(
            self.profile["slug"], self.session_id, customer_name, customer_phone
        )

    async def refresh(self) -> list[LocalMessage]:
        """Full refetch. Unconfirmed local entries are kept after the server list."""
        self._require_loaded()
        server = [
            LocalMessage.from_api(m)
            for m in await self.client.fetch_messages(self.profile["slug"], self.session_id)
        ]
        unconfirmed = [m for m in self.messages if m.status != SENT]

        if (
            self.on_reply is not None
            and self._server_count is not None
            and len(server) > self._server_count
            and server[-1].sender == "owner"
        ):
            self.on_reply(server[-1])
        self._server_count = len(server)

        self.messages = server + unconfirmed
        return self.messages

    async def send(self, text: str) -> SendOutcome:
        """Append the message locally first, then store it on the server."""
        self._require_loaded()
        text = text.strip()
        if not text:
            raise ValueError("Message text is empty")

        entry = LocalMessage(
            id=f"local_{int(time.time() * 1000)}",
            sender="customer",
            text=text,
            timestamp=datetime.utcnow(),
            status=PENDING,
        )
        self.messages.append(entry)
        return await self._deliver(entry)

    async def _deliver(self, entry: LocalMessage) -> SendOutcome:
        try:
            stored = await self.client.send_message(self.profile["slug"], self.session_id, entry.text)
        except BazChatError as e:
            logger.warning("Sending message failed: %s", e)
            entry.status = FAILED
            return SendOutcome(ok=False, message=entry, error=e)

        entry.id = stored["id"]
        entry.timestamp = stored["timestamp"]
        entry.status = SENT
        return SendOutcome(ok=True, message=entry)

    def discard(self, entry: LocalMessage) -> None:
        """Roll back an optimistic entry."""
        if entry in self.messages:
            self.messages.remove(entry)

    async def retry(self, entry: LocalMessage) -> SendOutcome:
        if entry.status != FAILED:
            raise ValueError("Only failed messages can be retried")
        entry.status = PENDING
        return await self._deliver(entry)

    def watch(self) -> CancellationToken:
        """Poll the thread every poll_interval seconds until the token is cancelled."""
        return Poller(self.refresh, self.poll_interval, name="customer-messages").start()
