"""Sensor-space to display-space coordinate mapping."""

import math


def round_half_away(value):
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def scale_value(value, scale):
    return round_half_away(value * scale)


def to_display(point, scale):
    x, y = point
    return scale_value(x, scale), scale_value(y, scale)


def display_size(width, height, scale):
    """(width, height) of the rendered image for a sensor of width x height."""
    return scale_value(width, scale), scale_value(height, scale)
