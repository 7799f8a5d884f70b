"""Megatec command set and command builders.

Every command is a short ASCII body followed by a carriage return.
Commands that take a parameter carry a ``str.format`` template as their
value; fixed commands are sent verbatim.
"""

from __future__ import annotations

from enum import Enum

from ..errors import InvalidTimeError

TERMINATOR = b"\r"

# Shutdown delay in minutes, embedded in the S command body
SHUTDOWN_DELAY_MINUTES = 1

MIN_TEST_MINUTES = 1
MAX_TEST_MINUTES = 99


class Command(Enum):
    """Megatec command bodies."""

    STATUS = "Q1"
    STATUS_NO_ACK = "QS"
    RATING = "F"
    NAME = "I"
    TEST = "T"
    TEST_UNTIL_LOW = "TL"
    TEST_FOR_MINUTES = "T{code:03d}"
    ABORT_TEST = "CT"
    TOGGLE_BEEP = "Q"
    SHUTDOWN = "S{delay:02d}"


class Reply(Enum):
    """Shape of the reply a command produces."""

    NONE = "none"
    STATUS = "status"
    RATING = "rating"
    NAME = "name"


REPLY_SHAPES: dict[Command, Reply] = {
    Command.STATUS: Reply.STATUS,
    Command.STATUS_NO_ACK: Reply.STATUS,
    Command.RATING: Reply.RATING,
    Command.NAME: Reply.NAME,
    Command.TEST: Reply.NONE,
    Command.TEST_UNTIL_LOW: Reply.NONE,
    Command.TEST_FOR_MINUTES: Reply.NONE,
    Command.ABORT_TEST: Reply.NONE,
    Command.TOGGLE_BEEP: Reply.NONE,
    Command.SHUTDOWN: Reply.NONE,
}


def build_command(command: Command, **fields: int) -> bytes:
    """Build the wire bytes for a command.

    Args:
        command: The command to encode.
        **fields: Values for templated commands (``code``, ``delay``).
    """
    body = command.value.format(**fields) if fields else command.value
    return body.encode("ascii") + TERMINATOR


def encode_test_time(minutes: int) -> int:
    """Map a test duration in minutes to the code the device expects.

    The code is strictly increasing in ``minutes``::

        1-9    -> 101-109
        10-19  -> 125-134
        20-99  -> 135-214

    Raises:
        InvalidTimeError: If ``minutes`` is not an integer in 1-99.
    """
    if isinstance(minutes, bool) or not isinstance(minutes, int):
        raise InvalidTimeError(minutes)
    if not MIN_TEST_MINUTES <= minutes <= MAX_TEST_MINUTES:
        raise InvalidTimeError(minutes)
    if minutes <= 9:
        return 100 + minutes
    if minutes <= 19:
        return 115 + minutes
    return 135 + (minutes - 20)


def build_get_status() -> bytes:
    """Build a status query (Q1)."""
    return build_command(Command.STATUS)


def build_get_status_no_ack() -> bytes:
    """Build the lighter status query (QS)."""
    return build_command(Command.STATUS_NO_ACK)


def build_get_rating() -> bytes:
    return build_command(Command.RATING)


def build_get_name() -> bytes:
    return build_command(Command.NAME)


def build_test() -> bytes:
    """Build a 10-second battery test command."""
    return build_command(Command.TEST)


def build_test_until_low() -> bytes:
    """Build a battery test that runs until the battery reports low."""
    return build_command(Command.TEST_UNTIL_LOW)


def build_test_for_minutes(minutes: int) -> bytes:
    """Build a timed battery test command.

    Args:
        minutes: Test duration 1-99.

    Raises:
        InvalidTimeError: If ``minutes`` is out of range. No bytes are built.
    """
    return build_command(Command.TEST_FOR_MINUTES, code=encode_test_time(minutes))


def build_abort_test() -> bytes:
    return build_command(Command.ABORT_TEST)


def build_toggle_beep() -> bytes:
    return build_command(Command.TOGGLE_BEEP)


def build_shutdown() -> bytes:
    """Build a shutdown command with the fixed one-minute delay."""
    return build_command(Command.SHUTDOWN, delay=SHUTDOWN_DELAY_MINUTES)
