"""
Viewer configuration: declared defaults plus the command line that overrides
them.  There is no configuration file and nothing is saved between runs.
"""

import argparse
from dataclasses import dataclass
from typing import Optional

from . import __version__
from .radiometry import TemperatureUnit

# Cycle order for the 'm' key.  Names resolve to cv2.COLORMAP_<NAME>; any the
# installed OpenCV lacks are skipped.
DEFAULT_COLORMAPS = (
    "Bone",
    "Turbo",
    "DeepGreen",
    "Ocean",
    "Hot",
    "Magma",
    "Inferno",
    "Twilight_Shifted",
)

BACKENDS = ("v4l2", "gstreamer", "ffmpeg")


@dataclass
class ViewerConfig:
    device: int = 0
    backend: str = "v4l2"
    pipeline: Optional[str] = None

    sensor_width: int = 256
    sensor_height: int = 192

    scale: float = 2.5          # 256x192 -> 640x480
    scale_min: float = 1.0
    scale_max: float = 5.0
    scale_step: float = 0.5

    border: int = 20
    border_min: int = 2
    border_max: int = 80

    unit: TemperatureUnit = TemperatureUnit.FAHRENHEIT
    colormaps: tuple = DEFAULT_COLORMAPS

    crosshair: bool = True
    hud: bool = True
    high_point: bool = True
    low_point: bool = True
    labels: bool = True
    info: bool = True

    output_dir: str = "."
    record_fps: float = 25.0
    record_fourcc: str = "MJPG"
    key_delay_ms: int = 37
    tray: bool = True

    def validate(self):
        """Raise ValueError for settings the viewer cannot start with."""
        if self.backend not in BACKENDS:
            raise ValueError(f"unknown backend {self.backend!r}")
        if self.sensor_width <= 0 or self.sensor_height <= 0:
            raise ValueError("sensor dimensions must be positive")
        if not 1.0 <= self.scale_min <= self.scale <= self.scale_max:
            raise ValueError(
                f"scale {self.scale} outside [{self.scale_min}, {self.scale_max}]")
        if self.scale_step <= 0:
            raise ValueError("scale step must be positive")
        if not 0 <= self.border_min <= self.border <= self.border_max:
            raise ValueError(
                f"border {self.border} outside [{self.border_min}, {self.border_max}]")
        if 2 * self.border >= min(self.sensor_width, self.sensor_height):
            raise ValueError(f"border {self.border} leaves no interior to scan")
        if not self.colormaps:
            raise ValueError("at least one colormap is required")
        return self


def build_parser():
    parser = argparse.ArgumentParser(
        prog="p2overlay",
        description="Live overlay viewer for Infiray P2 Pro / TC001 thermal cameras",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  %(prog)s -d 0                       /dev/video0 through OpenCV V4L2
  %(prog)s -d 2 --backend gstreamer   original GStreamer appsink pipeline
  %(prog)s --backend ffmpeg           ffmpeg raw pipe (macOS avfoundation)
  %(prog)s --scale 3 --celsius -o ~/captures
        ''',
    )
    parser.add_argument("-d", "--device", type=int, default=0,
                        help="Video device number, e.g. 0 for /dev/video0 (default: 0)")
    parser.add_argument("--backend", choices=BACKENDS, default="v4l2",
                        help="Capture backend (default: v4l2)")
    parser.add_argument("--pipeline", default=None,
                        help="Custom GStreamer pipeline, overrides --device for gstreamer")
    parser.add_argument("--scale", type=float, default=2.5,
                        help="Initial display scale, 1.0-5.0 (default: 2.5)")
    parser.add_argument("--border", type=int, default=20,
                        help="Pixels excluded from hot/cold search, 2-80 (default: 20)")
    unit = parser.add_mutually_exclusive_group()
    unit.add_argument("--celsius", action="store_true", help="Start in Celsius")
    unit.add_argument("--fahrenheit", action="store_true",
                      help="Start in Fahrenheit (default)")
    parser.add_argument("-o", "--output-dir", default=".",
                        help="Directory for snapshots and recordings (default: .)")
    parser.add_argument("--no-tray", action="store_true",
                        help="Do not create a system tray icon")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging level (default: INFO)")
    parser.add_argument("--version", action="version",
                        version=f"%(prog)s {__version__}")
    return parser


def config_from_args(args):
    """Build a validated ViewerConfig from parsed arguments."""
    overrides = {
        "device": args.device,
        "backend": args.backend,
        "pipeline": args.pipeline,
        "scale": args.scale,
        "border": args.border,
        "output_dir": args.output_dir,
        "tray": not args.no_tray,
    }
    if args.celsius:
        overrides["unit"] = TemperatureUnit.CELSIUS
    return ViewerConfig(**overrides).validate()
