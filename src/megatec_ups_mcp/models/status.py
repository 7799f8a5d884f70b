"""Live status snapshot reported by the Q1/QS query."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import ClassVar


@dataclass(frozen=True)
class Status:
    """Electrical and thermal readings, in device column order.

    Values are in the device's native units: volts, percent of rated load,
    hertz and degrees Celsius.
    """

    input_voltage: float
    input_fault_voltage: float
    output_voltage: float
    output_load: float
    input_frequency: float
    battery_voltage: float
    temperature: float

    FIELD_COUNT: ClassVar[int] = 7

    def to_dict(self) -> dict:
        return asdict(self)
