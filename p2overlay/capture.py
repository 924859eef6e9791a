"""
Frame acquisition and file sinks.

Three ways to get the raw 256x384 YUYV stream from the camera:

  v4l2       OpenCV VideoCapture on /dev/videoN with RGB conversion off,
             so the thermal words survive untouched.
  gstreamer  OpenCV with a GStreamer appsink pipeline (drop=1 keeps only the
             newest buffer).
  ffmpeg     ffmpeg writes rawvideo to a pipe; a reader thread keeps only the
             latest frame (macOS avfoundation, or v4l2 on Linux).

Every source exposes read() -> frame or None at end of stream, and
release().
"""

import logging
import os
import re
import select
import shutil
import subprocess
import sys
import threading

import cv2

from .demux import SENSOR_HEIGHT, SENSOR_WIDTH

logger = logging.getLogger(__name__)

# macOS .app bundles do not inherit the shell PATH. Add common Homebrew paths:
os.environ['PATH'] += os.pathsep + '/opt/homebrew/bin' + os.pathsep + '/usr/local/bin'
FFMPEG_PATH = shutil.which('ffmpeg') or 'ffmpeg'

GSTREAMER_PIPELINE = ("v4l2src device=/dev/video{device} ! video/x-raw, "
                      "width={width}, height={height}, format=YUY2 ! appsink drop=1")


class CaptureError(RuntimeError):
    pass


class OpenCVSource:
    def __init__(self, cap, description):
        self.cap = cap
        self.description = description

    def read(self):
        ok, frame = self.cap.read()
        if not ok or frame is None or frame.size == 0:
            return None
        return frame

    def release(self):
        self.cap.release()


def open_v4l2(device):
    cap = cv2.VideoCapture(f"/dev/video{device}", cv2.CAP_V4L)
    # do NOT let OpenCV convert to BGR, it destroys the temperature words
    cap.set(cv2.CAP_PROP_CONVERT_RGB, 0.0)
    if not cap.isOpened():
        raise CaptureError(f"Could not open /dev/video{device}")
    return OpenCVSource(cap, f"/dev/video{device} (V4L2)")


def open_gstreamer(device, pipeline=None, width=SENSOR_WIDTH, height=SENSOR_HEIGHT):
    pipeline = pipeline or GSTREAMER_PIPELINE.format(
        device=device, width=width, height=2 * height)
    cap = cv2.VideoCapture(pipeline, cv2.CAP_GSTREAMER)
    if not cap.isOpened():
        raise CaptureError(f"Could not open GStreamer pipeline: {pipeline}")
    return OpenCVSource(cap, pipeline)


def get_camera_index():
    """AVFoundation index of the first P2 Pro-looking device, or None."""
    cmd = [FFMPEG_PATH, '-f', 'avfoundation', '-list_devices', 'true', '-i', '""']
    try:
        result = subprocess.run(cmd, stderr=subprocess.PIPE, text=True)
    except OSError as e:
        logger.error("Could not run %s: %s", FFMPEG_PATH, e)
        return None

    for line in result.stderr.split('\n'):
        if 'AVFoundation video devices:' in line:
            continue
        if 'AVFoundation audio devices:' in line:
            break
        match = re.search(r'\[(\d+)\]\s+(USB Camera|PureThermal|P2 Pro)', line, re.IGNORECASE)
        if match:
            return match.group(1)
    return None


def _read_exact(stream, size):
    """Read exactly `size` bytes; return bytes or empty if EOF/closed."""
    buf = b''
    while len(buf) < size:
        chunk = stream.read(size - len(buf))
        if not chunk:
            return buf
        buf += chunk
    return buf


class FrameReader(threading.Thread):
    """Reads fixed-size frames from a pipe and keeps only the newest one."""

    def __init__(self, stream, frame_size):
        super().__init__()
        self.stream = stream
        self.frame_size = frame_size
        self.latest_frame = None
        self.running = True
        self.lock = threading.Lock()
        self.new_frame = threading.Event()
        self.daemon = True

    def run(self):
        stdout = self.stream
        while self.running:
            raw_bytes = _read_exact(stdout, self.frame_size)
            if len(raw_bytes) != self.frame_size:
                break
            # Drain pipe: if more frames are buffered, read and drop until we have only the latest
            try:
                while select.select([stdout], [], [], 0)[0]:
                    next_bytes = _read_exact(stdout, self.frame_size)
                    if len(next_bytes) != self.frame_size:
                        break
                    raw_bytes = next_bytes
            except (ValueError, OSError):
                pass  # select on closed fd or unsupported
            with self.lock:
                self.latest_frame = raw_bytes
                self.new_frame.set()
        with self.lock:
            self.running = False
            self.new_frame.set()

    def take_latest_frame(self, timeout=None):
        """Wait for a frame not returned before; None once the stream ended."""
        with self.lock:
            ended = not self.running and self.latest_frame is None
        if not ended:
            self.new_frame.wait(timeout)
        with self.lock:
            self.new_frame.clear()
            frame, self.latest_frame = self.latest_frame, None
        return frame


def ffmpeg_command(device):
    if sys.platform == 'darwin':
        input_args = ['-f', 'avfoundation', '-framerate', '25',
                      '-video_size', f'{SENSOR_WIDTH}x{2 * SENSOR_HEIGHT}',
                      '-pix_fmt', 'yuyv422', '-i', str(device)]
    else:
        input_args = ['-f', 'v4l2', '-framerate', '25',
                      '-video_size', f'{SENSOR_WIDTH}x{2 * SENSOR_HEIGHT}',
                      '-input_format', 'yuyv422', '-i', f'/dev/video{device}']
    # -fflags nobuffer and -flags low_delay remove latency
    return [FFMPEG_PATH, '-hide_banner', '-loglevel', 'error',
            '-fflags', 'nobuffer', '-flags', 'low_delay',
            *input_args,
            '-f', 'rawvideo', '-pix_fmt', 'yuyv422', '-']


class FFmpegSource:
    FRAME_TIMEOUT = 5.0

    def __init__(self, device):
        if sys.platform == 'darwin':
            found = get_camera_index()
            if found is None:
                raise CaptureError("Infiray P2 Pro not found. Make sure it's plugged in.")
            logger.info("Found P2 Pro at AVFoundation index %s", found)
            device = found
        self.description = f"ffmpeg device {device}"
        self.frame_size = SENSOR_WIDTH * 2 * SENSOR_HEIGHT * 2
        try:
            self.process = subprocess.Popen(
                ffmpeg_command(device), stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL, bufsize=self.frame_size)
        except OSError as e:
            raise CaptureError(f"Could not start ffmpeg: {e}") from e
        self.reader = FrameReader(self.process.stdout, self.frame_size)
        self.reader.start()

    def read(self):
        while True:
            frame = self.reader.take_latest_frame(self.FRAME_TIMEOUT)
            if frame is not None:
                return frame
            if not self.reader.running:
                return None
            logger.warning("No frame from ffmpeg for %.0f s", self.FRAME_TIMEOUT)

    def release(self):
        self.reader.running = False
        self.process.terminate()
        try:
            self.process.wait(timeout=2)
        except subprocess.TimeoutExpired:
            self.process.kill()


def open_source(config):
    """Open the capture backend selected in a ViewerConfig."""
    if config.backend == "gstreamer":
        return open_gstreamer(config.device, config.pipeline,
                              config.sensor_width, config.sensor_height)
    if config.backend == "ffmpeg":
        return FFmpegSource(config.device)
    return open_v4l2(config.device)


def open_video_writer(path, fourcc, fps, size):
    return cv2.VideoWriter(path, cv2.VideoWriter_fourcc(*fourcc), fps, size)


def write_image(path, image):
    try:
        return cv2.imwrite(path, image)
    except cv2.error as e:
        logger.error("cv2.imwrite failed for %s: %s", path, e)
        return False
