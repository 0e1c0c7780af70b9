"""
Per-frame distance and IPD estimation.

All conversions go through the pinhole relation

    apparent_px = focal_px * real_cm / distance_cm

solved for whichever quantity is unknown.
"""

import logging
from typing import Optional, Tuple

from ipdmeter import config
from ipdmeter.shared.geometry import ipd_px, is_off_axis
from ipdmeter.shared.smoothing import RobustStream
from ipdmeter.shared.types import (
    CalibrationConstants,
    FrameMetrics,
    FrameWarning,
    IrisMeasurement,
)

logger = logging.getLogger(__name__)


# ----------------------------------------------------------------------
# Pinhole relation
# ----------------------------------------------------------------------

def focal_length_from(apparent_px: float, real_cm: float, distance_cm: float) -> float:
    return apparent_px * distance_cm / real_cm


def real_size_from(apparent_px: float, focal_px: float, distance_cm: float) -> float:
    return apparent_px * distance_cm / focal_px


def distance_from(apparent_px: float, focal_px: float, real_cm: float) -> float:
    return focal_px * real_cm / apparent_px


# ----------------------------------------------------------------------
# Metric estimation
# ----------------------------------------------------------------------

def estimate_distance_cm(
    smoothed_iris_px: Optional[float],
    constants: CalibrationConstants,
    use_fixed_distance: bool = False,
    fixed_distance_cm: float = config.REFERENCE_DISTANCE_CM,
) -> Optional[float]:
    """Camera-to-face distance, or None when it cannot be computed."""
    if use_fixed_distance:
        return fixed_distance_cm
    if constants.focal_length_px is None or not smoothed_iris_px:
        return None
    return distance_from(smoothed_iris_px, constants.focal_length_px, constants.iris_diameter_cm)


def estimate_ipd_cm(
    smoothed_ipd_px: Optional[float],
    distance_cm: Optional[float],
    focal_length_px: Optional[float],
) -> Optional[float]:
    if smoothed_ipd_px is None or distance_cm is None or not focal_length_px:
        return None
    return real_size_from(smoothed_ipd_px, focal_length_px, distance_cm)


def estimate_metrics(
    smoothed_iris_px: Optional[float],
    smoothed_ipd_px: Optional[float],
    constants: CalibrationConstants,
    use_fixed_distance: bool = False,
    warning: Optional[FrameWarning] = None,
    fixed_distance_cm: float = config.REFERENCE_DISTANCE_CM,
) -> FrameMetrics:
    distance_cm = estimate_distance_cm(
        smoothed_iris_px, constants, use_fixed_distance, fixed_distance_cm
    )
    return FrameMetrics(
        distance_cm=distance_cm,
        ipd_cm=estimate_ipd_cm(smoothed_ipd_px, distance_cm, constants.focal_length_px),
        warning=warning,
    )


class FrameEstimator:
    """Feeds instantaneous iris and IPD samples into their smoothing streams."""

    def __init__(
        self,
        iris_stream: Optional[RobustStream] = None,
        ipd_stream: Optional[RobustStream] = None,
        off_axis_ratio: float = config.OFF_AXIS_RATIO,
    ) -> None:
        self.iris_stream = iris_stream if iris_stream is not None else RobustStream()
        self.ipd_stream = ipd_stream if ipd_stream is not None else RobustStream()
        self._off_axis_ratio = off_axis_ratio

    def update(
        self,
        left: Optional[IrisMeasurement],
        right: Optional[IrisMeasurement],
    ) -> Tuple[Optional[float], Optional[float], Optional[FrameWarning]]:
        """Return ``(smoothed_iris_px, smoothed_ipd_px, warning)``.

        With no face the streams are left untouched and their last medians
        are reported.  Off-axis gaze drops only the iris sample; the IPD
        sample still goes through since eye centres stay reliable.
        """
        if left is None or right is None:
            return self.iris_stream.last(), self.ipd_stream.last(), FrameWarning.NO_FACE

        warning: Optional[FrameWarning] = None
        iris_sample: Optional[float] = None
        if left.diameter_px > 0 and right.diameter_px > 0:
            if is_off_axis(left.diameter_px, right.diameter_px, self._off_axis_ratio):
                warning = FrameWarning.OFF_AXIS
            else:
                iris_sample = 0.5 * (left.diameter_px + right.diameter_px)

        smoothed_iris = self.iris_stream.add(iris_sample)
        smoothed_ipd = self.ipd_stream.add(ipd_px(left, right))
        return smoothed_iris, smoothed_ipd, warning

    def clear(self) -> None:
        self.iris_stream.clear()
        self.ipd_stream.clear()
