"""
System tray icon.

Menu entries do not touch the session directly: they post the same key code
the keyboard would, and the frame loop picks it up on its next iteration.
"""

import logging

import pystray
from PIL import Image, ImageDraw

logger = logging.getLogger(__name__)

KEY_Q = ord('q')
KEY_P = ord('p')
KEY_R = ord('r')
KEY_T = ord('t')


def create_image(recording=False):
    # small thermal-like colored square, red dot while recording
    image = Image.new('RGB', (64, 64), color=(0, 0, 0))
    d = ImageDraw.Draw(image)
    d.rectangle((16, 16, 48, 48), fill=(255, 100, 0))
    if recording:
        d.ellipse((40, 4, 60, 24), fill=(255, 0, 0))
    return image


class TrayIcon:
    def __init__(self, events, title="p2overlay"):
        """
        Args:
            events: queue.Queue the frame loop drains, one key per frame.
            title: tooltip text.
        """
        self.events = events
        self._recording = False
        self.icon = pystray.Icon(title, create_image(), title, menu=pystray.Menu(
            pystray.MenuItem("Save snapshot", self._post(KEY_P)),
            pystray.MenuItem("Start recording", self._post(KEY_R),
                             enabled=lambda item: not self._recording),
            pystray.MenuItem("Stop recording", self._post(KEY_T),
                             enabled=lambda item: self._recording),
            pystray.MenuItem("Quit", self._post(KEY_Q)),
        ))

    def _post(self, key):
        def action(icon, item):
            self.events.put(key)
        return action

    def set_recording(self, recording):
        if recording == self._recording:
            return
        self._recording = recording
        self.icon.icon = create_image(recording)
        self.icon.update_menu()

    def start(self):
        self.icon.run_detached()

    def stop(self):
        self.icon.stop()
