"""Nameplate rating reported by the F query."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import ClassVar


@dataclass(frozen=True)
class Rating:
    """Design limits of the UPS, in device column order."""

    rated_voltage: float
    rated_current: float
    battery_voltage: float
    rated_frequency: float

    FIELD_COUNT: ClassVar[int] = 4

    def to_dict(self) -> dict:
        return asdict(self)
