"""
Snapshot and video recording bookkeeping.

Files are named after the local wall clock, `YYYYMMDD_HHMMSS` plus a suffix.
Two saves within the same second get the same name and the later one
overwrites the earlier; that is accepted for interactive use.

The video sink is created through `writer_factory(path, fourcc, fps, size)`,
which must return an object with `isOpened()`, `write(frame)` and
`release()` (cv2.VideoWriter, or a fake in tests).
"""

import logging
import os
import time
from datetime import datetime

logger = logging.getLogger(__name__)

ELAPSED_PREFIX = "Rec:"


def timestamped_name(suffix, now=None):
    now = now or datetime.now()
    return now.strftime("%Y%m%d_%H%M%S") + suffix


def format_hms(seconds):
    total = max(0, int(seconds))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def format_elapsed(seconds):
    return ELAPSED_PREFIX + format_hms(seconds)


class RecordingController:
    """Owns the video sink and writes still images."""

    STILL_SUFFIX = ".png"
    VIDEO_SUFFIX = ".avi"

    def __init__(self, writer_factory, image_writer, output_dir=".",
                 fps=25.0, fourcc="MJPG", clock=time.time):
        """
        Args:
            writer_factory: callable(path, fourcc, fps, (w, h)) -> video sink.
            image_writer: callable(path, image) -> bool, e.g. cv2.imwrite.
            output_dir: directory for both file kinds.
            fps: frame rate written into the video container.
            fourcc: four character codec code.
            clock: seconds since epoch, used for elapsed time.
        """
        self.writer_factory = writer_factory
        self.image_writer = image_writer
        self.output_dir = output_dir
        self.fps = fps
        self.fourcc = fourcc
        self.clock = clock
        self._sink = None
        self.path = None

    @property
    def active(self):
        return self._sink is not None

    def _path(self, suffix):
        return os.path.join(self.output_dir, timestamped_name(suffix))

    def start(self, session, size):
        """
        Open a sink sized to the current display and mark the session ACTIVE.

        Returns False (session unchanged) if already recording or the sink
        could not be opened.
        """
        if session.is_recording:
            return False
        path = self._path(self.VIDEO_SUFFIX)
        try:
            sink = self.writer_factory(path, self.fourcc, self.fps, tuple(size))
        except (OSError, ValueError) as e:
            logger.error("Could not open the output video file for write: %s (%s)", path, e)
            return False
        if sink is None or not sink.isOpened():
            logger.error("Could not open the output video file for write: %s", path)
            if sink is not None:
                sink.release()
            return False

        self._sink = sink
        self.path = path
        session.begin_recording(self.clock(), size)
        logger.info("Recording started... %s %dx%d", path, size[0], size[1])
        return True

    def write(self, image):
        if self._sink is not None:
            self._sink.write(image)

    def stop(self, session):
        """Release the sink so the file is finalized, then mark the session IDLE."""
        if self._sink is None:
            session.end_recording()
            return False
        try:
            self._sink.release()
        finally:
            self._sink = None
            session.end_recording()
        logger.info("Recording stopped... %s", self.path)
        return True

    def elapsed_label(self, session):
        return format_elapsed(session.elapsed(self.clock()))

    def save_still(self, image):
        """Write the composed frame as PNG; returns the path or None."""
        path = self._path(self.STILL_SUFFIX)
        try:
            ok = self.image_writer(path, image)
        except (OSError, ValueError) as e:
            logger.error("Could not save image %s: %s", path, e)
            return None
        if not ok:
            logger.error("Could not save image %s", path)
            return None
        logger.info("Saved %s", path)
        return path
