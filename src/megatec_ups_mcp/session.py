"""Command session: one request/reply exchange per call.

``MegatecUps`` owns its transport. Each public method encodes a command,
writes it, reads the reply when the command has one, and decodes it. No
state is kept between calls and nothing is retried; replaying a shutdown
or beeper toggle would change device state twice.
"""

from __future__ import annotations

import logging

from .errors import TransportError
from .models import Rating, Status
from .protocol.commands import (
    REPLY_SHAPES,
    Command,
    Reply,
    build_abort_test,
    build_get_name,
    build_get_rating,
    build_get_status,
    build_get_status_no_ack,
    build_shutdown,
    build_test,
    build_test_for_minutes,
    build_test_until_low,
    build_toggle_beep,
)
from .protocol.parser import decode_reply
from .transport.base import Transport
from .transport.usb_connection import (
    PRODUCT_ID,
    READ_TIMEOUT_MS,
    VENDOR_ID,
    USBConnection,
)

logger = logging.getLogger(__name__)


class MegatecUps:
    """Session with a single Megatec UPS.

    Not safe for concurrent use: callers must serialize calls.

    Usage::

        with MegatecUps.connect(0x0665, 0x5161) as ups:
            status = ups.get_status()
    """

    def __init__(
        self,
        transport: Transport,
        timeout_ms: int = READ_TIMEOUT_MS,
    ) -> None:
        self._transport = transport
        self._timeout_ms = timeout_ms
        self._closed = False

    @classmethod
    def connect(
        cls,
        vendor_id: int = VENDOR_ID,
        product_id: int = PRODUCT_ID,
        timeout_ms: int = READ_TIMEOUT_MS,
    ) -> MegatecUps:
        """Open the USB device and return a session that owns it.

        Raises:
            TransportError: If the device cannot be opened.
        """
        connection = USBConnection(vendor_id, product_id)
        connection.open()
        return cls(connection, timeout_ms=timeout_ms)

    @property
    def transport(self) -> Transport:
        return self._transport

    def close(self) -> None:
        """Close the transport. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._transport.close()

    def __enter__(self) -> MegatecUps:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _exchange(self, command: Command, data: bytes):
        """Write ``data`` and decode the reply expected for ``command``."""
        if self._closed:
            raise TransportError("Session is closed")

        shape = REPLY_SHAPES[command]
        logger.debug("Sending %s: %r", command.name, data)
        self._transport.write(data)
        if shape is Reply.NONE:
            return None

        raw = self._transport.read(self._timeout_ms)
        return decode_reply(shape, raw)

    def get_name(self) -> str:
        """Read the device name. May be empty."""
        return self._exchange(Command.NAME, build_get_name())

    def get_rating(self) -> Rating:
        return self._exchange(Command.RATING, build_get_rating())

    def get_status(self) -> Status:
        return self._exchange(Command.STATUS, build_get_status())

    def get_status_no_ack(self) -> Status:
        """Read status with the lighter QS query."""
        return self._exchange(Command.STATUS_NO_ACK, build_get_status_no_ack())

    def test(self) -> None:
        """Run a 10-second battery test."""
        self._exchange(Command.TEST, build_test())

    def test_until_battery_low(self) -> None:
        self._exchange(Command.TEST_UNTIL_LOW, build_test_until_low())

    def test_with_time(self, minutes: int) -> None:
        """Run a battery test for ``minutes`` (1-99).

        Raises:
            InvalidTimeError: If ``minutes`` is out of range. Nothing is sent.
        """
        data = build_test_for_minutes(minutes)
        self._exchange(Command.TEST_FOR_MINUTES, data)

    def abort_test(self) -> None:
        self._exchange(Command.ABORT_TEST, build_abort_test())

    def switch_beep(self) -> None:
        """Toggle the beeper on or off."""
        self._exchange(Command.TOGGLE_BEEP, build_toggle_beep())

    def shutdown(self) -> None:
        """Shut the UPS output down after one minute."""
        logger.info("Requesting UPS shutdown")
        self._exchange(Command.SHUTDOWN, build_shutdown())
