"""Exception hierarchy for UPS communication.

Every failure surfaced by the session is one of three kinds:

- ``TransportError``: the USB/transport layer failed (open, write, read,
  timeout).
- ``InvalidResponseError``: the device replied with something that is not a
  valid frame for the command that was sent.
- ``InvalidTimeError``: a test duration outside 1-99 minutes was requested.
"""

from __future__ import annotations


class UpsError(Exception):
    """Base class for all UPS errors."""


class TransportError(UpsError):
    """Failure at the I/O boundary."""


UsbError = TransportError


class InvalidResponseError(UpsError):
    """The reply failed marker, terminator, field count or type validation."""

    def __init__(self, message: str, raw: bytes = b"") -> None:
        super().__init__(message)
        self.raw = raw

    def __str__(self) -> str:
        base = super().__str__()
        if self.raw:
            return f"{base} (raw={self.raw!r})"
        return base


class InvalidTimeError(UpsError, ValueError):
    """Test duration outside the encodable range."""

    def __init__(self, minutes: int) -> None:
        super().__init__(f"Test duration must be 1-99 minutes, got {minutes}")
        self.minutes = minutes
