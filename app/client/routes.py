import enum
from dataclasses import dataclass


class AppView(str, enum.Enum):
    LANDING = "LANDING"
    LOGIN = "LOGIN"
    SIGNUP = "SIGNUP"
    DASHBOARD = "DASHBOARD"
    PUBLIC_CHAT = "PUBLIC_CHAT"
    UNAVAILABLE = "UNAVAILABLE"


@dataclass(frozen=True)
class Route:
    view: AppView
    target: str | None = None


_STATIC_ROUTES = {
    "#/login": AppView.LOGIN,
    "#/signup": AppView.SIGNUP,
    "#/dashboard": AppView.DASHBOARD,
}


def parse_route(location_hash: str) -> Route:
    """Map a hash route to a view. Anything unknown lands on the landing view."""
    location_hash = (location_hash or "").strip()

    if location_hash.startswith("#/chat/"):
        target = location_hash[len("#/chat/"):].split("/")[0].split("?")[0]
        if target:
            return Route(AppView.PUBLIC_CHAT, target)
        return Route(AppView.LANDING)

    return Route(_STATIC_ROUTES.get(location_hash, AppView.LANDING))


def resolve_view(route: Route, logged_in: bool, profile_found: bool = True) -> AppView:
    """
    Final view for a route.

    The dashboard asks for login when nobody is logged in, and a chat link
    whose store cannot be found shows the unavailable state.
    """
    if route.view == AppView.DASHBOARD and not logged_in:
        return AppView.LOGIN
    if route.view == AppView.PUBLIC_CHAT and not profile_found:
        return AppView.UNAVAILABLE
    return route.view


def chat_link(base_url: str, slug_or_id: str) -> str:
    """Public chat URL the owner shares, e.g. https://host/#/chat/my-shop."""
    return f"{base_url.rstrip('/')}/#/chat/{slug_or_id}"
