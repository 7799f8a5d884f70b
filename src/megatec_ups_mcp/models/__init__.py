"""Data models for UPS status and rating replies."""

from .status import Status
from .rating import Rating
