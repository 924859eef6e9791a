import numpy as np
import pytest

WIDTH = 256
HEIGHT = 192


@pytest.fixture
def thermal():
    """Flat thermal plane at about 20 C."""
    return np.full((HEIGHT, WIDTH), 18636, dtype=np.uint16)


@pytest.fixture
def raw_frame():
    """Full (2H, W) word buffer: visible ramp on top, 20 C thermal below."""
    frame = np.zeros((2 * HEIGHT, WIDTH), dtype=np.uint16)
    ramp = np.tile(np.arange(WIDTH, dtype=np.uint16) % 256, (HEIGHT, 1))
    frame[:HEIGHT] = ramp | (128 << 8)
    frame[HEIGHT:] = 18636
    return frame
