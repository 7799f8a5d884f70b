"""Protocol layer: command builders, reply framing and reply decoding."""

from .commands import Command, Reply, build_command, encode_test_time
from .framing import Frame, parse_frame
from .parser import decode_name, decode_rating, decode_reply, decode_status
