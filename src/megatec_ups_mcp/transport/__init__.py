"""Transport layer: interface and USB HID implementation."""

from .base import Transport
from .usb_connection import USBConnection
