"""Transport interface the command session talks through."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Transport(Protocol):
    """Byte-oriented, ordered link to one UPS.

    ``USBConnection`` implements this interface; tests substitute a
    scripted fake.
    """

    def write(self, data: bytes) -> None:
        """Send one complete command.

        Input the device queued before this call (a reply that arrived after
        an earlier read timed out) is discarded first.

        Raises:
            TransportError: If the write fails.
        """
        ...

    def read(self, timeout_ms: int) -> bytes:
        """Read one reply, up to and including the CR terminator.

        Raises:
            TransportError: On timeout or I/O failure.
        """
        ...

    def close(self) -> None:
        """Release the underlying device handle."""
        ...
