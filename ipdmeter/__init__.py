"""IPD Meter: interpupillary distance from a single webcam."""

__version__ = "0.1.0"
