"""Reply frame parser.

Reply layout::

    +--------+---------------------------------------+------------+
    | Marker | Fields separated by single spaces     | Terminator |
    | 1 byte | digits . + - letters                  | \\r         |
    +--------+---------------------------------------+------------+

- Marker: ``(`` or ``#`` depending on the command
- Terminator: carriage return

Parsing here is purely lexical. Field counts and numeric conversion are
checked by the decoders in :mod:`.parser`.
"""

from __future__ import annotations

import string
from dataclasses import dataclass

from ..errors import InvalidResponseError
from .commands import TERMINATOR

STATUS_MARKERS = (b"(", b"#")
RATING_MARKERS = (b"#",)
NAME_MARKER = b"#"

FIELD_SEPARATOR = " "
ALLOWED_CHARS = frozenset(string.digits + string.ascii_letters + ".+- ")


@dataclass(frozen=True)
class Frame:
    """A lexically valid reply line."""

    marker: bytes
    fields: tuple[str, ...]
    raw: bytes

    def __len__(self) -> int:
        return len(self.fields)

    def __repr__(self) -> str:
        return f"Frame(marker={self.marker!r}, fields={list(self.fields)})"


def parse_frame(data: bytes, markers: tuple[bytes, ...]) -> Frame:
    """Split a raw reply into fields.

    Args:
        data: Reply bytes as returned by the transport, terminator included.
        markers: Marker bytes accepted for the command that was sent.

    Returns:
        The parsed ``Frame``.

    Raises:
        InvalidResponseError: On a wrong marker, a missing terminator, a
            character outside the reply alphabet or an empty field.
    """
    if not data:
        raise InvalidResponseError("Empty reply", data)

    marker = data[:1]
    if marker not in markers:
        raise InvalidResponseError(
            f"Unexpected marker {marker!r}, expected one of {list(markers)}", data
        )
    if not data.endswith(TERMINATOR):
        raise InvalidResponseError("Reply is not terminated by CR", data)

    body_bytes = data[1 : -len(TERMINATOR)]
    try:
        body = body_bytes.decode("ascii")
    except UnicodeDecodeError as e:
        raise InvalidResponseError("Reply is not ASCII", data) from e

    bad = set(body) - ALLOWED_CHARS
    if bad:
        raise InvalidResponseError(
            f"Reply contains invalid characters {sorted(bad)!r}", data
        )

    if not body:
        return Frame(marker=marker, fields=(), raw=data)

    fields = tuple(body.split(FIELD_SEPARATOR))
    if any(not f for f in fields):
        raise InvalidResponseError("Empty field in reply", data)

    return Frame(marker=marker, fields=fields, raw=data)
