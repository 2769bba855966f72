"""Exception hierarchy for socrelay."""

from __future__ import annotations


class SocRelayError(Exception):
    """Base exception for all socrelay errors."""


class TransportError(SocRelayError):
    """HTTP-level failure (network, timeout, non-200)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
    ) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(message)


class ProtocolError(SocRelayError):
    """Response arrived but is unusable (bad JSON, wrong shape, success=false)."""


class TimeParseError(SocRelayError, ValueError):
    """Timestamp text does not match ``YYYY-MM-DD HH:MM:SS``."""

    def __init__(self, text: object) -> None:
        self.text = text
        super().__init__(f"Unparsable upload time: {text!r}")


class ClockNotSyncedError(SocRelayError):
    """The wall clock has not been synchronised yet."""


class ConfigValueError(SocRelayError, ValueError):
    """A command tried to store an invalid control setting."""

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        super().__init__(message)
