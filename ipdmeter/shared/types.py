"""Shared dataclasses and enums for IPD Meter."""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Tuple

from ipdmeter import config

PixelPoint = Tuple[float, float]


# ── Session Modes ──────────────────────────────────────────────────────────

class SessionMode(Enum):
    IDLE = auto()
    LIVE = auto()
    CALIBRATING_FOCAL = auto()
    CALIBRATING_IRIS = auto()


class CalibrationKind(Enum):
    FOCAL_LENGTH = auto()
    IRIS_SIZE = auto()


class CalibrationStatus(Enum):
    SUCCESS = auto()
    INSUFFICIENT_SAMPLES = auto()
    PRECONDITION_UNMET = auto()
    SUPERSEDED = auto()          # a reset landed while sampling


class FrameWarning(Enum):
    NO_FACE = auto()
    OFF_AXIS = auto()


class DistanceMode(Enum):
    FIXED = auto()
    ESTIMATED = auto()


# ── Geometry ───────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Circle:
    center: PixelPoint
    radius: float

    @property
    def diameter(self) -> float:
        return 2.0 * self.radius


@dataclass(frozen=True)
class IrisMeasurement:
    """Fitted iris circle for one eye in one frame."""
    center: PixelPoint
    diameter_px: float


# ── Calibration ────────────────────────────────────────────────────────────

@dataclass
class CalibrationConstants:
    """Pinhole constants shared by calibration and per-frame estimation."""
    focal_length_px: Optional[float] = None
    iris_diameter_cm: float = config.DEFAULT_IRIS_DIAMETER_CM

    @property
    def is_focal_calibrated(self) -> bool:
        return self.focal_length_px is not None

    @property
    def is_personalized(self) -> bool:
        return abs(self.iris_diameter_cm - config.DEFAULT_IRIS_DIAMETER_CM) > 1e-3


@dataclass(frozen=True)
class CalibrationProfile:
    duration_s: float
    interval_s: float = config.CALIBRATION_INTERVAL_S
    sample_cap: int = config.CALIBRATION_SAMPLE_CAP


FOCAL_PROFILE = CalibrationProfile(duration_s=config.FOCAL_CALIBRATION_DURATION_S)
IRIS_PROFILE = CalibrationProfile(duration_s=config.IRIS_CALIBRATION_DURATION_S)


@dataclass(frozen=True)
class CalibrationResult:
    kind: CalibrationKind
    status: CalibrationStatus
    value: Optional[float] = None
    accepted_samples: int = 0
    median_px: Optional[float] = None

    @property
    def ok(self) -> bool:
        return self.status is CalibrationStatus.SUCCESS


# ── Per-frame output ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class FrameMetrics:
    distance_cm: Optional[float] = None
    ipd_cm: Optional[float] = None
    warning: Optional[FrameWarning] = None


@dataclass(frozen=True)
class FrameReport:
    """Everything the HUD needs for one frame.

    ``None`` always means unavailable; numeric fields are never zero-filled.
    """
    proc_fps: float
    frame_size: Tuple[int, int]
    focal_length_px: Optional[float]
    iris_diameter_cm: float
    distance_cm: Optional[float]
    distance_mode: DistanceMode
    ipd_px: Optional[float]
    ipd_cm: Optional[float]
    warning: Optional[FrameWarning] = None
    iris_centers: Optional[Tuple[PixelPoint, PixelPoint]] = None
