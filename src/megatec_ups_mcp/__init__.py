"""Megatec (Mega(USB)) UPS protocol codec, USB session and MCP server."""

from .errors import (
    InvalidResponseError,
    InvalidTimeError,
    TransportError,
    UpsError,
    UsbError,
)
from .models import Rating, Status
from .session import MegatecUps

__version__ = "0.1.0"
