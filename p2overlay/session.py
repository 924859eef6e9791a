"""
Interactive viewer state and the key map that drives it.

All toggles, the colormap selection, unit, search border, display scale and
recording status live in one SessionState owned by the frame loop.  It is
changed only between frames, one key per frame.  Requests that would break an
invariant (border leaving no interior, scale change while recording, values
outside their bounds) are ignored and leave the state as it was.
"""

import logging
from enum import Enum

from .radiometry import TemperatureUnit

logger = logging.getLogger(__name__)


class RecordingStatus(Enum):
    IDLE = "idle"
    ACTIVE = "active"


class Command(Enum):
    """What the frame loop has to do after a key was handled."""
    NONE = "none"
    SAVE_STILL = "save_still"
    START_RECORDING = "start_recording"
    STOP_RECORDING = "stop_recording"
    QUIT = "quit"


# Physical key codes: lower/upper case plus the Cyrillic letter on the same
# key (US QWERTY + Russian layout)
KEY_QUIT = {113, 81, 1081, 1049, 27}      # Q, Esc
KEY_COLORMAP = {109, 77, 1100, 1068}      # M
KEY_CROSSHAIR = {99, 67, 1089, 1057}      # C
KEY_HUD = {117, 85, 1075, 1043}           # U
KEY_HIGH_POINT = {104, 72, 1088, 1056}    # H
KEY_LOW_POINT = {108, 76, 1076, 1044}     # L
KEY_LABELS = {107, 75, 1083, 1051}        # K
KEY_INFO = {105, 73, 1096, 1064}          # I
KEY_UNIT = {119, 87, 1094, 1062}          # W
KEY_BORDER_UP = {98, 66, 1080, 1048}      # B
KEY_BORDER_DOWN = {110, 78, 1090, 1058}   # N
KEY_SCALE_UP = {61, 43}                   # = and +
KEY_SCALE_DOWN = {45, 95}                 # - and _
KEY_SNAPSHOT = {112, 80, 1079, 1047}      # P
KEY_RECORD = {114, 82, 1082, 1050}        # R
KEY_STOP = {116, 84, 1077, 1045}          # T

KEYMAP_HELP = """keymap:
     i  | toggle information (thermal area outline, colormap name)
     c  | toggle crosshair
     w  | toggle temp conversion
     u  | toggle High/Low markers
    h l | toggle High / Low point
     k  | toggle High/Low point temp labels
    b n | thermal area - +
   + -  | display scale + - (not while recording)
     m  | cycle through colormaps
     p  | save frame to PNG file
    r t | record / stop
     q  | quit"""


class SessionState:
    """
    Everything the renderer consults each frame.

    Bounds come from the caller (normally ViewerConfig).  Every mutator
    returns True when the state changed and False when the request was
    rejected.
    """

    BORDER_STEP = 1

    def __init__(self, palette_count, sensor_width=256, sensor_height=192,
                 unit=TemperatureUnit.FAHRENHEIT,
                 border=20, border_min=2, border_max=80,
                 scale=2.5, scale_min=1.0, scale_max=5.0, scale_step=0.5,
                 crosshair=True, hud=True, high_point=True, low_point=True,
                 labels=True, info=True):
        if palette_count < 1:
            raise ValueError("palette_count must be at least 1")
        self.palette_count = palette_count
        self.sensor_width = sensor_width
        self.sensor_height = sensor_height
        self.border_min = border_min
        self.border_max = border_max
        self.scale_min = float(scale_min)
        self.scale_max = float(scale_max)
        self.scale_step = float(scale_step)

        if not self._border_allowed(border):
            raise ValueError(f"border {border} not allowed for "
                             f"{sensor_width}x{sensor_height} sensor")
        if not self.scale_min <= scale <= self.scale_max:
            raise ValueError(f"scale {scale} outside [{scale_min}, {scale_max}]")

        self.unit = unit
        self.colormap_index = 0
        self.border = border
        self.scale = float(scale)

        self.crosshair_enabled = crosshair
        self.hud_enabled = hud
        self.high_point_enabled = high_point
        self.low_point_enabled = low_point
        self.labels_enabled = labels
        self.info_enabled = info

        self.recording = RecordingStatus.IDLE
        self.recording_started_at = None
        self.recording_size = None

    @classmethod
    def from_config(cls, config, palette_count):
        return cls(
            palette_count,
            sensor_width=config.sensor_width,
            sensor_height=config.sensor_height,
            unit=config.unit,
            border=config.border,
            border_min=config.border_min,
            border_max=config.border_max,
            scale=config.scale,
            scale_min=config.scale_min,
            scale_max=config.scale_max,
            scale_step=config.scale_step,
            crosshair=config.crosshair,
            hud=config.hud,
            high_point=config.high_point,
            low_point=config.low_point,
            labels=config.labels,
            info=config.info,
        )

    # --- derived ---

    @property
    def is_recording(self):
        return self.recording is RecordingStatus.ACTIVE

    @property
    def show_high_point(self):
        return self.hud_enabled and self.high_point_enabled

    @property
    def show_low_point(self):
        return self.hud_enabled and self.low_point_enabled

    @property
    def needs_scan(self):
        return self.show_high_point or self.show_low_point

    def elapsed(self, now):
        """Seconds since recording started, 0 when idle."""
        if not self.is_recording:
            return 0.0
        return max(0.0, now - self.recording_started_at)

    # --- colormap / unit / toggles ---

    def cycle_colormap(self):
        self.colormap_index = (self.colormap_index + 1) % self.palette_count
        return True

    def toggle_unit(self):
        self.unit = self.unit.toggled()
        return True

    def toggle_crosshair(self):
        self.crosshair_enabled = not self.crosshair_enabled
        return True

    def toggle_hud(self):
        self.hud_enabled = not self.hud_enabled
        return True

    def toggle_high_point(self):
        self.high_point_enabled = not self.high_point_enabled
        return True

    def toggle_low_point(self):
        self.low_point_enabled = not self.low_point_enabled
        return True

    def toggle_labels(self):
        self.labels_enabled = not self.labels_enabled
        return True

    def toggle_info(self):
        self.info_enabled = not self.info_enabled
        return True

    # --- bounded adjustments ---

    def _border_allowed(self, border):
        return (self.border_min <= border <= self.border_max
                and 2 * border < min(self.sensor_width, self.sensor_height))

    def adjust_border(self, delta):
        """Grow or shrink the excluded edge; rejected if it would leave bounds."""
        target = self.border + delta
        if not self._border_allowed(target):
            logger.debug("Border %d rejected (stays %d)", target, self.border)
            return False
        self.border = target
        return True

    def adjust_scale(self, delta):
        """Change display scale by delta, clamped to bounds; locked while recording."""
        if self.is_recording:
            logger.debug("Scale change ignored while recording")
            return False
        target = round(max(self.scale_min, min(self.scale_max, self.scale + delta)), 2)
        if target == self.scale:
            return False
        self.scale = target
        return True

    # --- recording sub-machine ---

    def begin_recording(self, now, size):
        if self.is_recording:
            return False
        self.recording = RecordingStatus.ACTIVE
        self.recording_started_at = now
        self.recording_size = tuple(size)
        return True

    def end_recording(self):
        if not self.is_recording:
            return False
        self.recording = RecordingStatus.IDLE
        self.recording_started_at = None
        self.recording_size = None
        return True


def dispatch(session, key):
    """
    Apply one key code to the session.

    Pure state changes are applied here; keys that need I/O come back as a
    Command for the frame loop.  Unknown keys do nothing.
    """
    if key is None or key < 0:
        return Command.NONE
    key = key & 0xFFFF  # allow Unicode, strip modifiers

    if key in KEY_QUIT:
        return Command.QUIT
    if key in KEY_SNAPSHOT:
        return Command.SAVE_STILL
    if key in KEY_RECORD:
        return Command.NONE if session.is_recording else Command.START_RECORDING
    if key in KEY_STOP:
        return Command.STOP_RECORDING if session.is_recording else Command.NONE

    if key in KEY_COLORMAP:
        session.cycle_colormap()
    elif key in KEY_CROSSHAIR:
        session.toggle_crosshair()
    elif key in KEY_HUD:
        session.toggle_hud()
    elif key in KEY_HIGH_POINT:
        session.toggle_high_point()
    elif key in KEY_LOW_POINT:
        session.toggle_low_point()
    elif key in KEY_LABELS:
        session.toggle_labels()
    elif key in KEY_INFO:
        session.toggle_info()
    elif key in KEY_UNIT:
        session.toggle_unit()
    elif key in KEY_BORDER_UP:
        session.adjust_border(session.BORDER_STEP)
    elif key in KEY_BORDER_DOWN:
        session.adjust_border(-session.BORDER_STEP)
    elif key in KEY_SCALE_UP:
        session.adjust_scale(session.scale_step)
    elif key in KEY_SCALE_DOWN:
        session.adjust_scale(-session.scale_step)
    return Command.NONE
