"""Live overlay viewer for Infiray P2 Pro class thermal cameras."""

__version__ = "1.2.0"
