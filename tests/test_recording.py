import os
from datetime import datetime

from p2overlay.recording import (
    RecordingController,
    format_elapsed,
    format_hms,
    timestamped_name,
)
from p2overlay.session import RecordingStatus, SessionState


class FakeSink:
    def __init__(self, opened=True):
        self.opened = opened
        self.frames = []
        self.released = False

    def isOpened(self):
        return self.opened

    def write(self, frame):
        self.frames.append(frame)

    def release(self):
        self.released = True


class FakeFactory:
    def __init__(self, opened=True):
        self.opened = opened
        self.calls = []
        self.sinks = []

    def __call__(self, path, fourcc, fps, size):
        self.calls.append((path, fourcc, fps, size))
        sink = FakeSink(self.opened)
        self.sinks.append(sink)
        return sink


def make_controller(tmp_path, factory=None, image_writer=None, clock=None):
    return RecordingController(
        factory or FakeFactory(),
        image_writer or (lambda path, image: True),
        output_dir=str(tmp_path),
        clock=clock or (lambda: 1000.0),
    )


def test_timestamped_name():
    now = datetime(2024, 3, 7, 9, 5, 2)
    assert timestamped_name(".png", now) == "20240307_090502.png"
    assert timestamped_name(".avi", now) == "20240307_090502.avi"


def test_elapsed_formatting():
    assert format_hms(3725) == "01:02:05"
    assert format_hms(0) == "00:00:00"
    assert format_hms(59.9) == "00:00:59"
    assert format_elapsed(3725) == "Rec:01:02:05"


def test_start_opens_sink_at_display_size(tmp_path):
    factory = FakeFactory()
    controller = make_controller(tmp_path, factory)
    session = SessionState(8)

    assert controller.start(session, (640, 480)) is True
    path, fourcc, fps, size = factory.calls[0]
    assert os.path.dirname(path) == str(tmp_path)
    assert path.endswith(".avi")
    assert (fourcc, fps, size) == ("MJPG", 25.0, (640, 480))
    assert session.recording is RecordingStatus.ACTIVE
    assert session.recording_started_at == 1000.0
    assert controller.active


def test_failed_sink_keeps_session_idle(tmp_path):
    factory = FakeFactory(opened=False)
    controller = make_controller(tmp_path, factory)
    session = SessionState(8)

    assert controller.start(session, (640, 480)) is False
    assert session.recording is RecordingStatus.IDLE
    assert not controller.active
    assert factory.sinks[0].released


def test_write_and_stop_release_sink(tmp_path):
    factory = FakeFactory()
    controller = make_controller(tmp_path, factory)
    session = SessionState(8)
    controller.start(session, (640, 480))
    controller.write("frame-1")
    controller.write("frame-2")

    assert controller.stop(session) is True
    sink = factory.sinks[0]
    assert sink.frames == ["frame-1", "frame-2"]
    assert sink.released
    assert session.recording is RecordingStatus.IDLE
    controller.write("ignored")
    assert sink.frames == ["frame-1", "frame-2"]


def test_elapsed_label_uses_clock(tmp_path):
    times = iter([100.0, 3825.0])
    controller = make_controller(tmp_path, clock=lambda: next(times))
    session = SessionState(8)
    controller.start(session, (640, 480))
    assert controller.elapsed_label(session) == "Rec:01:02:05"


def test_save_still(tmp_path):
    written = []
    controller = make_controller(
        tmp_path, image_writer=lambda path, image: written.append(path) or True)
    path = controller.save_still("image")
    assert path == written[0]
    assert path.endswith(".png")


def test_failed_save_is_reported_not_raised(tmp_path, caplog):
    controller = make_controller(tmp_path, image_writer=lambda path, image: False)
    assert controller.save_still("image") is None
    assert "Could not save image" in caplog.text
