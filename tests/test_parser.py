"""Tests for reply decoders."""

import pytest

from megatec_ups_mcp.errors import InvalidResponseError
from megatec_ups_mcp.models import Rating, Status
from megatec_ups_mcp.protocol.commands import Reply
from megatec_ups_mcp.protocol.parser import (
    decode_name,
    decode_rating,
    decode_reply,
    decode_status,
)


def test_decode_status():
    status = decode_status(b"#120.0 002.0 230.0 050 50.0 012.0 030.0\r")
    assert status == Status(
        input_voltage=120.0,
        input_fault_voltage=2.0,
        output_voltage=230.0,
        output_load=50.0,
        input_frequency=50.0,
        battery_voltage=12.0,
        temperature=30.0,
    )


def test_decode_status_paren_marker():
    status = decode_status(b"(230.0 195.0 230.0 014 49.9 27.4 32.0\r")
    assert status.input_voltage == 230.0
    assert status.output_load == 14.0
    assert status.battery_voltage == 27.4


def test_decode_status_with_status_word():
    """Q1 replies normally end with the b7..b0 status bits."""
    status = decode_status(b"(208.4 140.0 208.4 034 59.9 2.05 35.0 00110000\r")
    assert status == Status(208.4, 140.0, 208.4, 34.0, 59.9, 2.05, 35.0)


@pytest.mark.parametrize("word", [b"00001001X", b"0000100", b"00002001", b"012.0"])
def test_decode_status_bad_status_word(word):
    with pytest.raises(InvalidResponseError):
        decode_status(b"(208.4 140.0 208.4 034 59.9 2.05 35.0 " + word + b"\r")


def test_decode_status_signed_values():
    status = decode_status(b"(230.0 195.0 230.0 014 49.9 27.4 -05.5\r")
    assert status.temperature == -5.5


def test_decode_rating():
    rating = decode_rating(b"#220.0 003 12.00 50.0\r")
    assert rating == Rating(
        rated_voltage=220.0,
        rated_current=3.0,
        battery_voltage=12.0,
        rated_frequency=50.0,
    )


@pytest.mark.parametrize(
    "data",
    [
        b"#120.0 002.0 230.0 050 50.0 012.0\r",
        b"#120.0 002.0 230.0 050 50.0 012.0 030.0 00001001 1\r",
        b"#120.0 002.0 230.0 O50 50.0 012.0 030.0\r",
        b"#120.0 002.0 230.0 050 50.0 012.0 nan\r",
        b"#120.0 002.0 230.0 050 50.0 012.0 030.0",
        b"!120.0 002.0 230.0 050 50.0 012.0 030.0\r",
        b"#120.0 002.0 230.0 050 50.0 012.0 1.2.3\r",
    ],
)
def test_decode_status_malformed(data):
    with pytest.raises(InvalidResponseError):
        decode_status(data)


@pytest.mark.parametrize(
    "data",
    [
        b"#220.0 003 12.00\r",
        b"#220.0 003 12.00 50.0 1\r",
        b"(220.0 003 12.00 50.0\r",
        b"#220.0 abc 12.00 50.0\r",
    ],
)
def test_decode_rating_malformed(data):
    with pytest.raises(InvalidResponseError):
        decode_rating(data)


def test_status_to_dict():
    status = decode_status(b"(230.0 195.0 230.0 014 49.9 27.4 32.0\r")
    d = status.to_dict()
    assert list(d) == [
        "input_voltage",
        "input_fault_voltage",
        "output_voltage",
        "output_load",
        "input_frequency",
        "battery_voltage",
        "temperature",
    ]
    assert d["input_frequency"] == 49.9


def test_status_is_immutable():
    status = decode_status(b"(230.0 195.0 230.0 014 49.9 27.4 32.0\r")
    with pytest.raises(AttributeError):
        status.temperature = 0.0


def test_decode_name():
    assert decode_name(b"#MEGATEC        UPS-1000  V1.0      \r") == (
        "MEGATEC        UPS-1000  V1.0"
    )


def test_decode_name_strips_control_bytes():
    assert decode_name(b"\x00My UPS\x00\x00\x01\r\n") == "My UPS"


def test_decode_name_drops_excluded_characters():
    assert decode_name(b'"Back`UPS(\r') == "BackUPS"


def test_decode_name_all_padding():
    """A blank name is reported as an empty string, not an error."""
    assert decode_name(b"\x00" * 32) == ""
    assert decode_name(b"    \r") == ""
    assert decode_name(b"") == ""


def test_decode_reply_dispatch():
    assert decode_reply(Reply.NONE, b"") is None
    assert decode_reply(Reply.NAME, b"#UPS\r") == "UPS"
    assert isinstance(decode_reply(Reply.RATING, b"#220.0 003 12.00 50.0\r"), Rating)
