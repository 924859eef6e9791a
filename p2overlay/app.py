"""
Frame loop for the live overlay viewer.

One iteration: grab a frame, split it, scan for hot/cold spots when the
markers are on, compose the overlay, show it, write it to the recording,
then handle at most one key (keyboard first, tray menu otherwise).
"""

import logging
import os
import queue
import sys

import cv2

from . import __version__, demux
from .capture import CaptureError, open_source, open_video_writer, write_image
from .config import build_parser, config_from_args
from .extremum import scan
from .recording import RecordingController
from .render import OverlayRenderer, build_palettes
from .session import KEYMAP_HELP, Command, SessionState, dispatch

logger = logging.getLogger(__name__)


class Viewer:
    def __init__(self, config, source, tray=None, events=None):
        self.config = config
        self.source = source
        self.tray = tray
        self.events = events if events is not None else queue.Queue()
        self.palettes = build_palettes(config.colormaps)
        self.session = SessionState.from_config(config, len(self.palettes))
        self.renderer = OverlayRenderer(self.palettes, config.sensor_width,
                                        config.sensor_height)
        self.recorder = RecordingController(
            open_video_writer, write_image, output_dir=config.output_dir,
            fps=config.record_fps, fourcc=config.record_fourcc)
        self.window_name = f"p2overlay v{__version__}"

    def window_closed(self):
        try:
            return cv2.getWindowProperty(self.window_name, cv2.WND_PROP_VISIBLE) < 1
        except cv2.error:
            return True

    def next_event(self):
        try:
            return self.events.get_nowait()
        except queue.Empty:
            return -1

    def render(self, raw):
        frame = demux.split(raw, self.config.sensor_width, self.config.sensor_height)
        extremes = scan(frame.thermal, self.session.border) if self.session.needs_scan else None
        elapsed = self.recorder.elapsed_label(self.session) if self.session.is_recording else None
        return self.renderer.compose(frame, self.session, extremes, elapsed)

    def fit_recording(self, image):
        # VideoWriter drops frames whose size differs from the one it was opened with
        width, height = self.session.recording_size
        if image.shape[1::-1] != (width, height):
            image = cv2.resize(image, (width, height), interpolation=cv2.INTER_NEAREST)
        return image

    def handle(self, command, image):
        """Carry out a loop command; False means quit."""
        if command is Command.QUIT:
            return False
        if command is Command.SAVE_STILL:
            self.recorder.save_still(image)
        elif command is Command.START_RECORDING:
            size = self.renderer.display_size(self.session.scale)
            self.recorder.start(self.session, size)
        elif command is Command.STOP_RECORDING:
            self.recorder.stop(self.session)
        if self.tray is not None:
            self.tray.set_recording(self.session.is_recording)
        return True

    def run(self):
        cv2.namedWindow(self.window_name, cv2.WINDOW_AUTOSIZE | cv2.WINDOW_GUI_NORMAL)
        try:
            while True:
                raw = self.source.read()
                if raw is None:
                    logger.error("Could not grab a frame.")
                    break
                try:
                    image = self.render(raw)
                except ValueError as e:
                    logger.error("Unusable frame from %s: %s", self.source.description, e)
                    break

                if self.session.is_recording:
                    self.recorder.write(self.fit_recording(image))
                cv2.imshow(self.window_name, image)

                # waitKeyEx keeps the full code, waitKey masks it to one byte
                key = cv2.waitKeyEx(self.config.key_delay_ms)
                if self.window_closed():
                    break
                if key < 0:
                    key = self.next_event()
                if not self.handle(dispatch(self.session, key), image):
                    break
        except KeyboardInterrupt:
            logger.info("Interrupted")
        finally:
            self.shutdown()

    def shutdown(self):
        # the sink must be released or the .avi is left unplayable
        if self.recorder.active:
            self.recorder.stop(self.session)
        self.source.release()
        cv2.destroyAllWindows()
        if self.tray is not None:
            self.tray.stop()


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        config = config_from_args(args)
    except ValueError as e:
        parser.error(str(e))

    print(f"p2overlay v{__version__}")
    print(KEYMAP_HELP)

    os.makedirs(config.output_dir, exist_ok=True)
    try:
        source = open_source(config)
    except CaptureError as e:
        logger.error("Error: Could not open the Thermal camera. %s", e)
        return 1
    logger.info("Capturing from %s", source.description)

    events = queue.Queue()
    tray = None
    if config.tray:
        from .tray import TrayIcon
        tray = TrayIcon(events, title=f"p2overlay v{__version__}")
        tray.start()

    Viewer(config, source, tray=tray, events=events).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
