import numpy as np
import pytest

from p2overlay import demux


def test_split_views(raw_frame):
    frame = demux.split(raw_frame)
    assert frame.visible.shape == (192, 256)
    assert frame.thermal.shape == (192, 256)
    assert (frame.thermal == 18636).all()
    assert frame.visible[0, 3] == (128 << 8) | 3


def test_bytes_from_ffmpeg_pipe(raw_frame):
    frame = demux.split(raw_frame.astype('<u2').tobytes())
    assert (frame.thermal == raw_frame[192:]).all()
    assert (frame.visible == raw_frame[:192]).all()


def test_two_channel_bytes_from_opencv(raw_frame):
    as_bytes = raw_frame.astype('<u2').view(np.uint8).reshape(384, 256, 2)
    frame = demux.split(as_bytes)
    assert (frame.thermal == raw_frame[192:]).all()


def test_luma_is_low_byte(raw_frame):
    frame = demux.split(raw_frame)
    gray = demux.luma(frame.visible)
    assert gray.dtype == np.uint8
    assert gray[10, 200] == 200


@pytest.mark.parametrize("bad", [
    b"\x00" * 100,
    np.zeros((192, 256), dtype=np.uint16),
    np.zeros((384, 256), dtype=np.float32),
])
def test_wrong_buffer_is_rejected(bad):
    with pytest.raises(ValueError):
        demux.split(bad)
