"""Exceptions raised while fetching or decoding the serverinfo document."""

from __future__ import annotations

CAUSE_AUTH = "auth"
CAUSE_OTHER = "other"


class ScrapeError(Exception):
    """A single scrape failed. ``cause`` is the label used for error counting."""

    cause = CAUSE_OTHER


class ServerConnectionError(ScrapeError):
    """Network failure or timeout while talking to the server."""


class AuthError(ScrapeError):
    cause = CAUSE_AUTH

    def __init__(self, message: str = "wrong credentials"):
        super().__init__(message)


class RateLimitedError(ScrapeError):
    def __init__(self, message: str = "too many requests"):
        super().__init__(message)


class MaintenanceModeError(ScrapeError):
    def __init__(self, message: str = "maintenance mode"):
        super().__init__(message)


class ServiceUnavailableError(ScrapeError):
    def __init__(self, message: str = "service unavailable"):
        super().__init__(message)


class UnexpectedStatusError(ScrapeError):
    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(f"unexpected status code: {status_code}")


class DecodeError(ScrapeError):
    """The payload could not be decoded at all."""

    def __init__(self, cause: str, message: str | None = None):
        self.cause_message = cause
        super().__init__(message or f"can not parse server info: {cause}")


class FieldTypeError(DecodeError):
    """A single field had a value the decoder can not interpret."""

    def __init__(self, field: str, cause: str):
        self.field = field
        super().__init__(cause, f"can not parse field {field!r}: {cause}")
