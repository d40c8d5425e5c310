from app.client.api import BazChatClient
from app.client.customer import CustomerChat, LocalMessage, SendOutcome
from app.client.identity import SessionIdentity, UserCache
from app.client.owner import OwnerInbox
from app.client.polling import CancellationToken, Poller
from app.client.routes import AppView, Route, parse_route, resolve_view, chat_link
from app.client.store import KeyValueStore, MemoryStore, JsonFileStore

__all__ = [
    "BazChatClient",
    "CustomerChat",
    "LocalMessage",
    "SendOutcome",
    "SessionIdentity",
    "UserCache",
    "OwnerInbox",
    "CancellationToken",
    "Poller",
    "AppView",
    "Route",
    "parse_route",
    "resolve_view",
    "chat_link",
    "KeyValueStore",
    "MemoryStore",
    "JsonFileStore",
]
