from app.client.api import BazChatClient
from app.client.identity import UserCache
from app.client.polling import (
    CancellationToken,
    Poller,
    DEFAULT_MESSAGE_POLL_SECONDS,
    DEFAULT_SESSION_POLL_SECONDS,
)
from app.client.routes import chat_link


class OwnerInbox:
    """
    Owner dashboard state: account, profile snapshot, session list and the open thread.

    The logged-in snapshot lives in a UserCache so a restarted client stays
    logged in; every profile save replaces the cached profile.
    """

    def __init__(
        self,
        client: BazChatClient,
        cache: UserCache,
        session_interval: float = DEFAULT_SESSION_POLL_SECONDS,
        message_interval: float = DEFAULT_MESSAGE_POLL_SECONDS,
    ):
        self.client = client
        self.cache = cache
        self.session_interval = session_interval
        self.message_interval = message_interval

        self.sessions: list[dict] = []
        self.active_session_id: str | None = None
        self.messages: list[dict] = []

    # ==================== ACCOUNT ====================

    async def signup(self, phone: str, password: str, full_name: str, country_code: str = "SA") -> dict:
        data = await self.client.signup(phone, password, full_name, country_code)
        return self.cache.save(data["accessToken"], data["user"], data["profile"])

    async def login(self, phone: str, password: str, country_code: str = "SA") -> dict:
        data = await self.client.login(phone, password, country_code)
        return self.cache.save(data["accessToken"], data["user"], data["profile"])

    def restore(self) -> bool:
        """Pick up a cached login. Returns False when nobody is logged in."""
        data = self.cache.load()
        if data is None:
            return False
        self.client.token = data["token"]
        return True

    def logout(self) -> None:
        self.cache.clear()
        self.client.token = None
        self.sessions = []
        self.active_session_id = None
        self.messages = []

    @property
    def profile(self) -> dict | None:
        data = self.cache.load()
        return data["profile"] if data else None

    def chat_link(self, base_url: str) -> str:
        profile = self.profile
        if profile is None:
            raise RuntimeError("Not logged in")
        return chat_link(base_url, profile.get("slug") or profile["id"])

    # ==================== PROFILE ====================

    async def save_profile(self, profile: dict) -> dict:
        """Save the whole profile and replace the cached snapshot with the stored one."""
        saved = await self.client.save_profile(profile)
        self.cache.replace_profile(saved)
        return saved

    async def add_product(self, product: dict | None = None) -> dict:
        saved = await self.client.add_product(product)
        self.cache.replace_profile(saved)
        return saved

    async def remove_product(self, product_id: str) -> dict:
        saved = await self.client.remove_product(product_id)
        self.cache.replace_profile(saved)
        return saved

    async def upload_image(self, content: bytes, filename: str, content_type: str = "image/png") -> str:
        return await self.client.upload_image(content, filename, content_type)

    # ==================== INBOX ====================

    @property
    def unread_total(self) -> int:
        return sum(s.get("unreadCount", 0) for s in self.sessions)

    async def refresh_sessions(self) -> list[dict]:
        self.sessions = await self.client.list_sessions()
        return self.sessions

    async def open(self, session_id: str) -> list[dict]:
        """Show a thread. Loading it marks its customer messages read on the server."""
        self.active_session_id = session_id
        self.messages = await self.client.session_messages(session_id)

        for session in self.sessions:
            if session["id"] == session_id:
                session["unreadCount"] = 0
        return self.messages

    def close(self) -> None:
        self.active_session_id = None
        self.messages = []

    async def refresh_messages(self) -> list[dict]:
        if self.active_session_id is None:
            return self.messages
        session_id = self.active_session_id
        messages = await self.client.session_messages(session_id)
        # The owner may have switched threads while the request was in flight
        if session_id == self.active_session_id:
            self.messages = messages
        return self.messages

    async def reply(self, text: str) -> dict:
        if self.active_session_id is None:
            raise RuntimeError("No conversation is open")
        message = await self.client.reply(self.active_session_id, text)
        self.messages.append(message)
        return message

    def watch_sessions(self) -> CancellationToken:
        return Poller(self.refresh_sessions, self.session_interval, name="owner-sessions").start()

    def watch_messages(self) -> CancellationToken:
        return Poller(self.refresh_messages, self.message_interval, name="owner-messages").start()
