"""
Radiometric decode for the P2 Pro thermal plane.

Each thermal reading is taken from two consecutive 16-bit words of the
bottom half of the frame.  The words are averaged (integer division) and the
result is in 1/64 Kelvin:

    celsius = (low + high) // 2 / 64 - 273.15

Arithmetic is done in single precision so printed values match the camera
vendor tools to the second decimal.  Words are trusted as delivered by the
sensor; nothing here validates them.
"""

from enum import Enum

import numpy as np


class TemperatureUnit(Enum):
    CELSIUS = "C"
    FAHRENHEIT = "F"

    @property
    def symbol(self):
        return self.value

    def toggled(self):
        if self is TemperatureUnit.CELSIUS:
            return TemperatureUnit.FAHRENHEIT
        return TemperatureUnit.CELSIUS


def raw_sample(thermal: np.ndarray, x: int, y: int) -> int:
    """
    Average of the two words starting at (x, y) in row-major order.

    The second word is the one that follows in memory, so at the last column
    it comes from the first column of the next row.
    """
    width = thermal.shape[1]
    flat = thermal.reshape(-1)
    index = y * width + x
    low = int(flat[index])
    high = int(flat[index + 1])
    return (low + high) // 2


def to_unit(celsius, unit):
    c = np.float32(celsius)
    if unit is TemperatureUnit.FAHRENHEIT:
        return np.float32(np.float32(c * np.float32(9)) / np.float32(5)) + np.float32(32)
    return c


def sample_to_celsius(sample):
    # computed in double, stored in single precision
    return np.float32(float(sample) / 64.0 - 273.15)


def decode(thermal: np.ndarray, x: int, y: int, unit=TemperatureUnit.CELSIUS) -> float:
    """Temperature at sensor pixel (x, y) in the requested unit."""
    celsius = sample_to_celsius(raw_sample(thermal, x, y))
    return float(to_unit(celsius, unit))


def format_temperature(value, unit):
    return f"{value:.2f} {unit.symbol}"


def decode_label(thermal, x, y, unit):
    return format_temperature(decode(thermal, x, y, unit), unit)
