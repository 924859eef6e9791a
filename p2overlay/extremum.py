"""
Hot / cold spot search over the thermal plane.

A border of `border` pixels is excluded on every side because the outermost
sensor rows and columns are noisy.  The interior is scanned in row-major
order and, on ties, the first pixel reached keeps the title (numpy's
argmin/argmax have the same first-occurrence rule).
"""

from typing import NamedTuple

import numpy as np


class ExtremumResult(NamedTuple):
    max_x: int
    max_y: int
    min_x: int
    min_y: int
    max_raw: int
    min_raw: int

    @property
    def hottest(self):
        return self.max_x, self.max_y

    @property
    def coldest(self):
        return self.min_x, self.min_y


def interior_is_empty(width, height, border):
    return border < 0 or 2 * border >= min(width, height)


def scan(thermal: np.ndarray, border: int) -> ExtremumResult:
    """
    Locate the maximum and minimum raw words inside the border.

    Raises ValueError if the border leaves nothing to scan.  A uniform
    interior reports its first pixel for both extremes.
    """
    rows, cols = thermal.shape[:2]
    if interior_is_empty(cols, rows, border):
        raise ValueError(
            f"border {border} leaves no interior in a {cols}x{rows} frame")

    interior = thermal[border:rows - border, border:cols - border]
    max_y, max_x = np.unravel_index(np.argmax(interior), interior.shape)
    min_y, min_x = np.unravel_index(np.argmin(interior), interior.shape)

    return ExtremumResult(
        max_x=int(max_x) + border,
        max_y=int(max_y) + border,
        min_x=int(min_x) + border,
        min_y=int(min_y) + border,
        max_raw=int(interior[max_y, max_x]),
        min_raw=int(interior[min_y, min_x]),
    )
