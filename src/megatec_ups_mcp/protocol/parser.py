"""Decoders that turn reply frames into typed values."""

from __future__ import annotations

import re

from ..errors import InvalidResponseError
from ..models import Rating, Status
from .commands import Reply
from .framing import (
    NAME_MARKER,
    RATING_MARKERS,
    STATUS_MARKERS,
    Frame,
    parse_frame,
)

_DECIMAL = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)")

# Trailing b7..b0 status bits of a Q1 reply
_FLAG_WORD = re.compile(r"[01]{8}")

# Printable ASCII minus the characters some firmwares leave in the name reply
_NAME_EXCLUDED = frozenset(b'"`(')


def _parse_float(token: str, frame: Frame) -> float:
    if not _DECIMAL.fullmatch(token):
        raise InvalidResponseError(f"Non-numeric field {token!r}", frame.raw)
    return float(token)


def _numeric_fields(frame: Frame, count: int) -> list[float]:
    if len(frame) != count:
        raise InvalidResponseError(
            f"Expected {count} fields, got {len(frame)}", frame.raw
        )
    return [_parse_float(token, frame) for token in frame.fields]


def decode_status(data: bytes) -> Status:
    """Decode a Q1/QS reply.

    Most firmwares append an 8-bit status word, which is checked and
    dropped::

        (230.0 195.0 230.0 014 49.9 27.4 32.0 00001001\\r
    """
    frame = parse_frame(data, STATUS_MARKERS)
    if len(frame) == Status.FIELD_COUNT + 1:
        if not _FLAG_WORD.fullmatch(frame.fields[-1]):
            raise InvalidResponseError(
                f"Bad status word {frame.fields[-1]!r}", frame.raw
            )
        frame = Frame(marker=frame.marker, fields=frame.fields[:-1], raw=frame.raw)
    return Status(*_numeric_fields(frame, Status.FIELD_COUNT))


def decode_rating(data: bytes) -> Rating:
    """Decode an F reply (``#220.0 003 12.00 50.0\\r``)."""
    frame = parse_frame(data, RATING_MARKERS)
    return Rating(*_numeric_fields(frame, Rating.FIELD_COUNT))


def decode_name(data: bytes) -> str:
    """Decode an I reply into the device name.

    The reply is free text padded with NULs, spaces or other control bytes;
    anything outside printable ASCII is dropped. A reply that is nothing but
    padding yields an empty string.
    """
    if data.startswith(NAME_MARKER):
        data = data[len(NAME_MARKER):]
    kept = bytes(b for b in data if 32 <= b <= 126 and b not in _NAME_EXCLUDED)
    return kept.decode("ascii").strip()


def decode_reply(shape: Reply, data: bytes):
    """Dispatch a reply to the decoder for its expected shape.

    Returns ``None`` for commands that produce no reply.
    """
    decoders = {
        Reply.STATUS: decode_status,
        Reply.RATING: decode_rating,
        Reply.NAME: decode_name,
    }
    decoder = decoders.get(shape)
    if decoder is None:
        return None
    return decoder(data)
