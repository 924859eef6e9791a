"""
Split a captured P2 Pro buffer into its visible and thermal planes.

The camera delivers one 256x384 YUYV image.  The top 192 rows are the
picture the camera's own ISP rendered (luma in the low byte of each word),
the bottom 192 rows are raw radiometric words.  Capture backends hand us the
same bytes in different containers:

  * ffmpeg rawvideo pipe: a flat bytes object
  * OpenCV with CAP_PROP_CONVERT_RGB off: uint8 array of shape (2H, W, 2)
  * already-converted uint16 array of shape (2H, W)

`as_words` normalizes all of them to little-endian uint16 of shape (2H, W).
"""

from typing import NamedTuple

import numpy as np

SENSOR_WIDTH = 256
SENSOR_HEIGHT = 192


class SplitFrame(NamedTuple):
    visible: np.ndarray
    thermal: np.ndarray


def as_words(buffer, width=SENSOR_WIDTH, height=SENSOR_HEIGHT) -> np.ndarray:
    shape = (2 * height, width)
    if isinstance(buffer, (bytes, bytearray, memoryview)):
        expected = 2 * height * width * 2
        if len(buffer) != expected:
            raise ValueError(f"expected {expected} bytes, got {len(buffer)}")
        return np.frombuffer(buffer, dtype='<u2').reshape(shape)

    frame = np.asarray(buffer)
    if frame.dtype == np.uint8 and frame.size == 2 * height * width * 2:
        # (2H, W, 2) from OpenCV, or one flat row on some V4L2 builds
        frame = np.ascontiguousarray(frame).reshape(-1).view('<u2').reshape(shape)
    if frame.dtype != np.uint16:
        raise ValueError(f"unsupported frame dtype {frame.dtype}")
    if frame.shape != shape:
        raise ValueError(f"expected frame shape {shape}, got {frame.shape}")
    return frame


def split(frame, width=SENSOR_WIDTH, height=SENSOR_HEIGHT) -> SplitFrame:
    """Return views of the top (visible) and bottom (thermal) planes."""
    words = as_words(frame, width, height)
    return SplitFrame(visible=words[0:height, 0:width],
                      thermal=words[height:2 * height, 0:width])


def luma(visible: np.ndarray) -> np.ndarray:
    """8-bit grayscale from the Y byte of each YUYV word."""
    return (visible & 0xFF).astype(np.uint8)
