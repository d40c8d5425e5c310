import httpx

from app.core.errors import (
    BazChatError,
    DuplicatePhone,
    InvalidCredentials,
    NetworkFailure,
    ProfileNotFound,
    SessionNotFound,
    SlugCollision,
)

API_PREFIX = "/api/v1"


class BazChatClient:
    """
    Async HTTP client for the BazChat API.

    Transport errors, 5xx answers and unreadable bodies raise NetworkFailure;
    4xx answers are mapped back to the service errors (InvalidCredentials, ProfileNotFound...).
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
    ):
        self.token = token
        self._http = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        auth: bool = False,
        not_found: type[BazChatError] = ProfileNotFound,
        conflict: type[BazChatError] = SlugCollision,
        **kwargs,
    ):
        headers = kwargs.pop("headers", {})
        if auth:
            if not self.token:
                raise InvalidCredentials("Not logged in")
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            response = await self._http.request(method, f"{API_PREFIX}{path}", headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise NetworkFailure(f"{method} {path} failed: {e}") from e

        if response.status_code >= 500:
            raise NetworkFailure(f"{method} {path} failed with status {response.status_code}")

        if response.status_code >= 400:
            try:
                payload = response.json()
            except ValueError:
                payload = None
            detail = payload.get("detail") if isinstance(payload, dict) else response.text
            if response.status_code == 401:
                raise InvalidCredentials(detail)
            if response.status_code == 404:
                raise not_found(detail)
            if response.status_code == 409:
                raise conflict(detail)
            raise BazChatError(f"{response.status_code}: {detail}")

        try:
            return response.json()
        except ValueError as e:
            raise NetworkFailure(f"{method} {path} returned a non-JSON body") from e

    # ==================== ACCOUNT ====================

    async def signup(self, phone: str, password: str, full_name: str, country_code: str = "SA") -> dict:
        data = await self._request(
            "POST",
            "/auth/signup",
            json={"phone": phone, "password": password, "fullName": full_name, "countryCode": country_code},
            conflict=DuplicatePhone,
        )
        self.token = data["accessToken"]
        return data

    async def login(self, phone: str, password: str, country_code: str = "SA") -> dict:
        data = await self._request(
            "POST",
            "/auth/login",
            json={"phone": phone, "password": password, "countryCode": country_code},
        )
        self.token = data["accessToken"]
        return data

    async def me(self) -> dict:
        return await self._request("GET", "/auth/me", auth=True)

    # ==================== PROFILE ====================

    async def get_profile(self) -> dict:
        return await self._request("GET", "/profile", auth=True)

    async def save_profile(self, profile: dict) -> dict:
        return await self._request("PUT", "/profile", auth=True, json=profile)

    async def add_product(self, product: dict | None = None) -> dict:
        if product is None:
            return await self._request("POST", "/profile/products", auth=True)
        return await self._request("POST", "/profile/products", auth=True, json=product)

    async def remove_product(self, product_id: str) -> dict:
        return await self._request("DELETE", f"/profile/products/{product_id}", auth=True)

    async def upload_image(self, content: bytes, filename: str, content_type: str = "image/png") -> str:
        data = await self._request(
            "POST",
            "/profile/images",
            auth=True,
            files={"file": (filename, content, content_type)},
        )
        return data["url"]

    async def public_profile(self, slug_or_id: str) -> dict | None:
        """Storefront for a chat link, or None when it is not available."""
        try:
            return await self._request("GET", f"/public/profiles/{slug_or_id}")
        except ProfileNotFound:
            return None

    # ==================== CUSTOMER CHAT ====================

    async def open_session(
        self,
        slug_or_id: str,
        session_id: str,
        customer_name: str | None = None,
        customer_phone: str | None = None,
    ) -> dict:
        return await self._request(
            "POST",
            f"/chat/{slug_or_id}/sessions",
            json={"sessionId": session_id, "customerName": customer_name, "customerPhone": customer_phone},
            not_found=SessionNotFound,
        )

    async def fetch_messages(self, slug_or_id: str, session_id: str) -> list[dict]:
        data = await self._request(
            "GET",
            f"/chat/{slug_or_id}/sessions/{session_id}/messages",
            not_found=SessionNotFound,
        )
        return data["messages"]

    async def send_message(self, slug_or_id: str, session_id: str, text: str) -> dict:
        return await self._request(
            "POST",
            f"/chat/{slug_or_id}/sessions/{session_id}/messages",
            json={"text": text},
            not_found=SessionNotFound,
        )

    # ==================== OWNER INBOX ====================

    async def list_sessions(self) -> list[dict]:
        data = await self._request("GET", "/inbox/sessions", auth=True)
        return data["sessions"]

    async def session_messages(self, session_id: str) -> list[dict]:
        """Messages of a session; the server marks its customer messages read."""
        data = await self._request(
            "GET", f"/inbox/sessions/{session_id}/messages", auth=True, not_found=SessionNotFound
        )
        return data["messages"]

    async def mark_read(self, session_id: str) -> int:
        data = await self._request(
            "POST", f"/inbox/sessions/{session_id}/read", auth=True, not_found=SessionNotFound
        )
        return data["marked"]

    async def reply(self, session_id: str, text: str) -> dict:
        return await self._request(
            "POST",
            f"/inbox/sessions/{session_id}/messages",
            auth=True,
            json={"text": text},
            not_found=SessionNotFound,
        )
