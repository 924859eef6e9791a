import queue

import numpy as np
import pytest

pytest.importorskip("cv2")

from p2overlay.app import Viewer  # noqa: E402
from p2overlay.config import ViewerConfig  # noqa: E402
from p2overlay.session import Command, RecordingStatus  # noqa: E402

from .test_recording import FakeFactory  # noqa: E402


class FakeSource:
    description = "fake"

    def __init__(self, frames):
        self.frames = list(frames)
        self.released = False

    def read(self):
        return self.frames.pop(0) if self.frames else None

    def release(self):
        self.released = True


@pytest.fixture
def viewer(tmp_path, raw_frame):
    config = ViewerConfig(output_dir=str(tmp_path), tray=False)
    v = Viewer(config, FakeSource([raw_frame]), events=queue.Queue())
    v.recorder.writer_factory = FakeFactory()
    return v


def test_render_produces_display_image(viewer, raw_frame):
    image = viewer.render(raw_frame)
    assert image.shape == (480, 640, 3)


def test_recording_commands_drive_session(viewer, raw_frame):
    image = viewer.render(raw_frame)
    assert viewer.handle(Command.START_RECORDING, image)
    assert viewer.session.recording is RecordingStatus.ACTIVE
    assert viewer.session.recording_size == (640, 480)
    assert viewer.handle(Command.STOP_RECORDING, image)
    assert viewer.session.recording is RecordingStatus.IDLE
    assert viewer.recorder.writer_factory.sinks[0].released


def test_quit_command_stops_loop(viewer, raw_frame):
    assert viewer.handle(Command.QUIT, viewer.render(raw_frame)) is False


def test_shutdown_releases_open_recording(viewer, raw_frame, monkeypatch):
    monkeypatch.setattr("cv2.destroyAllWindows", lambda: None)
    viewer.handle(Command.START_RECORDING, viewer.render(raw_frame))
    viewer.shutdown()
    assert viewer.recorder.writer_factory.sinks[0].released
    assert viewer.source.released
    assert not viewer.session.is_recording


def test_tray_events_are_read_one_at_a_time(viewer):
    viewer.events.put(ord('m'))
    viewer.events.put(ord('m'))
    assert viewer.next_event() == ord('m')
    assert viewer.events.qsize() == 1
    viewer.events.get()
    assert viewer.next_event() == -1


@pytest.fixture
def headless(monkeypatch):
    """Stub the HighGUI calls; returns the list of key codes to hand out."""
    keys = []
    monkeypatch.setattr("cv2.namedWindow", lambda *args: None)
    monkeypatch.setattr("cv2.imshow", lambda *args: None)
    monkeypatch.setattr("cv2.waitKeyEx", lambda delay: keys.pop(0) if keys else -1)
    monkeypatch.setattr("cv2.getWindowProperty", lambda *args: 1.0)
    monkeypatch.setattr("cv2.destroyAllWindows", lambda: None)
    return keys


def test_run_ends_on_empty_frame_and_releases_recording(viewer, raw_frame, headless):
    viewer.handle(Command.START_RECORDING, viewer.render(raw_frame))
    viewer.run()
    sink = viewer.recorder.writer_factory.sinks[0]
    assert len(sink.frames) == 1
    assert sink.released
    assert viewer.source.released
    assert not viewer.session.is_recording


def test_run_ends_on_malformed_frame(viewer, headless):
    viewer.source = FakeSource([np.zeros((10, 10), dtype=np.uint16)])
    viewer.run()
    assert viewer.source.released


def test_run_reads_full_key_codes(viewer, raw_frame, headless):
    # 0x44C is the Cyrillic letter on the M key; one byte of it would be 'L'
    viewer.source = FakeSource([raw_frame, raw_frame, raw_frame])
    headless.extend([0x44C, ord('q')])
    viewer.run()
    assert viewer.session.colormap_index == 1
    assert viewer.session.low_point_enabled
    assert len(viewer.source.frames) == 1


def test_recorded_frames_match_recording_size(viewer, raw_frame, headless):
    viewer.handle(Command.START_RECORDING, viewer.render(raw_frame))
    viewer.session.recording_size = (320, 240)
    viewer.run()
    frame = viewer.recorder.writer_factory.sinks[0].frames[0]
    assert frame.shape == (240, 320, 3)


def test_fit_recording_keeps_matching_frames(viewer, raw_frame):
    image = viewer.render(raw_frame)
    viewer.handle(Command.START_RECORDING, image)
    assert viewer.fit_recording(image) is image
