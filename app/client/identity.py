import time
from collections.abc import Callable

from app.client.store import KeyValueStore, USER_KEY, session_key


def _now_millis() -> int:
    return int(time.time() * 1000)


class SessionIdentity:
    """
    Customer-side chat session identity.

    One opaque token per business, minted once (sess_<ms>) and reused across
    visits. The store is pluggable so a server-issued token can replace it.
    """

    def __init__(self, store: KeyValueStore, clock: Callable[[], int] = _now_millis):
        self.store = store
        self.clock = clock

    def current(self, profile_id: str) -> str | None:
        return self.store.get(session_key(profile_id))

    def get_or_create(self, profile_id: str) -> str:
        token = self.current(profile_id)
        if token:
            return token

        token = f"sess_{self.clock()}"
        self.store.set(session_key(profile_id), token)
        return token

    def forget(self, profile_id: str) -> None:
        self.store.remove(session_key(profile_id))


class UserCache:
    """Logged-in owner snapshot: {"token", "user", "profile"} as returned by login/signup."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def load(self) -> dict | None:
        data = self.store.get(USER_KEY)
        if not isinstance(data, dict) or "token" not in data:
            # Corrupt snapshot: behave as logged out
            if data is not None:
                self.store.remove(USER_KEY)
            return None
        return data

    def save(self, token: str, user: dict, profile: dict) -> dict:
        data = {"token": token, "user": user, "profile": profile}
        self.store.set(USER_KEY, data)
        return data

    def replace_profile(self, profile: dict) -> dict | None:
        data = self.load()
        if data is None:
            return None
        data["profile"] = profile
        self.store.set(USER_KEY, data)
        return data

    def clear(self) -> None:
        self.store.remove(USER_KEY)
