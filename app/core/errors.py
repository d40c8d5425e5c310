class BazChatError(Exception):
    """Base class for errors raised by the services."""


class DuplicatePhone(BazChatError):
    """Signup with a phone number that already has an account."""


class InvalidCredentials(BazChatError):
    """No user matches the phone/password pair."""


class SlugCollision(BazChatError):
    """Slug still taken after the one-shot suffix fallback, or taken on save."""


class ProfileNotFound(BazChatError):
    pass


class SessionNotFound(BazChatError):
    pass


class NetworkFailure(BazChatError):
    """A remote call (API, image host) failed or returned an unusable response."""


class ImageUploadError(NetworkFailure):
    pass


class BootstrapFailure(BazChatError):
    """Schema bootstrap could not create the tables."""
