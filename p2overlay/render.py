"""
Compose the display image for one frame.

The visible plane's luma is colormapped, resized to the session's display
scale, and the enabled overlays are drawn on top.  Text and markers are drawn
twice, a thick dark stroke then a thin light one, so they stay readable on
any palette.
"""

import cv2

from . import demux, mapping
from .radiometry import decode_label

FONT = cv2.FONT_HERSHEY_SIMPLEX
FONT_SCALE = 0.4
OUTLINE_THICKNESS = 3

WHITE = (255, 255, 255)
RED = (0, 0, 255)
GREEN = (0, 255, 0)
BLUE = (255, 0, 0)
BLACK = (0, 0, 0)

CROSSHAIR_ARM = 10
LABEL_OFFSET = (2, 7)


def build_palettes(names):
    """[(name, cv2 colormap flag)] for the names this OpenCV build has."""
    palettes = []
    for name in names:
        attr = "COLORMAP_" + name.upper()
        if hasattr(cv2, attr):
            palettes.append((name.replace("_", ""), getattr(cv2, attr)))
    if not palettes:
        palettes.append(("Bone", cv2.COLORMAP_BONE))
    return palettes


class OutlinePen:
    """Two-pass drawing: `outline` colour wide, then the requested colour thin."""

    def __init__(self, outline=BLACK, outline_thickness=OUTLINE_THICKNESS,
                 font=FONT, font_scale=FONT_SCALE):
        self.outline = outline
        self.outline_thickness = outline_thickness
        self.font = font
        self.font_scale = font_scale

    def text(self, img, text, org, color=WHITE):
        cv2.putText(img, text, org, self.font, self.font_scale,
                    self.outline, self.outline_thickness)
        cv2.putText(img, text, org, self.font, self.font_scale, color, 1)

    def dot(self, img, center, color, outline=None):
        cv2.circle(img, center, 1, outline or self.outline, 2)
        cv2.circle(img, center, 1, color, 1)


class OverlayRenderer:
    def __init__(self, palettes, sensor_width=demux.SENSOR_WIDTH,
                 sensor_height=demux.SENSOR_HEIGHT, pen=None):
        self.palettes = palettes
        self.sensor_width = sensor_width
        self.sensor_height = sensor_height
        self.pen = pen or OutlinePen()

    def display_size(self, scale):
        return mapping.display_size(self.sensor_width, self.sensor_height, scale)

    def base_image(self, visible, session):
        """Colormapped, resized visible plane."""
        _, flag = self.palettes[session.colormap_index]
        gray = demux.luma(visible)
        colored = cv2.applyColorMap(gray, flag)
        return cv2.resize(colored, self.display_size(session.scale),
                          interpolation=cv2.INTER_CUBIC)

    def draw_crosshair(self, img, thermal, session):
        out_w, out_h = img.shape[1], img.shape[0]
        cx, cy = out_w // 2, out_h // 2
        cv2.line(img, (cx - CROSSHAIR_ARM, cy), (cx + CROSSHAIR_ARM, cy), RED, 1)
        cv2.line(img, (cx, cy - CROSSHAIR_ARM), (cx, cy + CROSSHAIR_ARM), RED, 1)
        label = decode_label(thermal, self.sensor_width // 2,
                             self.sensor_height // 2, session.unit)
        self.pen.text(img, label, (out_w - 65, out_h - 4))

    def _label_origin(self, x, y, scale):
        return mapping.to_display((x + LABEL_OFFSET[0], y + LABEL_OFFSET[1]), scale)

    def draw_extremes(self, img, thermal, extremes, session):
        scale = session.scale
        if session.show_high_point:
            hx, hy = extremes.hottest
            self.pen.dot(img, mapping.to_display((hx, hy), scale), RED)
            if session.labels_enabled:
                self.pen.text(img, decode_label(thermal, hx, hy, session.unit),
                              self._label_origin(hx, hy, scale))
        if session.show_low_point:
            lx, ly = extremes.coldest
            self.pen.dot(img, mapping.to_display((lx, ly), scale), WHITE, outline=BLUE)
            if session.labels_enabled:
                self.pen.text(img, decode_label(thermal, lx, ly, session.unit),
                              self._label_origin(lx, ly, scale))

    def draw_info(self, img, session):
        name, _ = self.palettes[session.colormap_index]
        self.pen.text(img, name, (0, 11))
        b = session.border
        top_left = mapping.to_display((b, b), session.scale)
        bottom_right = mapping.to_display(
            (self.sensor_width - b, self.sensor_height - b), session.scale)
        cv2.rectangle(img, top_left, bottom_right, RED, 1)

    def draw_recording(self, img, session, label):
        x = mapping.scale_value(self.sensor_width, session.scale) - 88
        self.pen.text(img, label, (x, 11))

    def compose(self, frame, session, extremes=None, elapsed_label=None):
        """
        Build the display image for a SplitFrame.

        `extremes` must come from the same frame when markers are shown.
        """
        img = self.base_image(frame.visible, session)
        if session.crosshair_enabled:
            self.draw_crosshair(img, frame.thermal, session)
        if extremes is not None and session.needs_scan:
            self.draw_extremes(img, frame.thermal, extremes, session)
        if session.info_enabled:
            self.draw_info(img, session)
        if session.is_recording and elapsed_label:
            self.draw_recording(img, session, elapsed_label)
        return img
