"""
Two-stage pinhole calibration.

1. Focal length: with the subject at the reference distance and an assumed
   iris size, ``f_px = median_iris_px * D / iris_cm``.
2. Personal iris size: with the focal length known, the same relation gives
   ``iris_cm = median_iris_px * D / f_px``.

Both stages sample raw (unsmoothed) iris diameters at a fixed cadence for a
fixed wall-clock window, discarding off-axis frames.  The engine only
computes results; committing them is the session's job.
"""

import logging
import time
from typing import Callable, List, Optional, Tuple

import numpy as np

from ipdmeter import config
from ipdmeter.shared.geometry import is_off_axis
from ipdmeter.shared.types import (
    FOCAL_PROFILE,
    IRIS_PROFILE,
    CalibrationKind,
    CalibrationProfile,
    CalibrationResult,
    CalibrationStatus,
    IrisMeasurement,
)
from ipdmeter.vision.metrics import focal_length_from, real_size_from

logger = logging.getLogger(__name__)

IrisPair = Tuple[IrisMeasurement, IrisMeasurement]
SampleSource = Callable[[], Optional[IrisPair]]
ProgressCallback = Callable[[int], None]


class CalibrationEngine:
    """Collect iris samples and solve the pinhole model."""

    def __init__(
        self,
        reference_distance_cm: float = config.REFERENCE_DISTANCE_CM,
        off_axis_ratio: float = config.OFF_AXIS_RATIO,
        min_samples: int = config.CALIBRATION_MIN_SAMPLES,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        focal_profile: CalibrationProfile = FOCAL_PROFILE,
        iris_profile: CalibrationProfile = IRIS_PROFILE,
    ) -> None:
        self._reference_distance_cm = reference_distance_cm
        self._off_axis_ratio = off_axis_ratio
        self._min_samples = min_samples
        self._clock = clock
        self._sleep = sleep
        self._profiles = {
            CalibrationKind.FOCAL_LENGTH: focal_profile,
            CalibrationKind.IRIS_SIZE: iris_profile,
        }

    @property
    def reference_distance_cm(self) -> float:
        return self._reference_distance_cm

    def profile(self, kind: CalibrationKind) -> CalibrationProfile:
        return self._profiles[kind]

    # ------------------------------------------------------------------
    # Sampling
    # ------------------------------------------------------------------

    def _sample(self, sample_source: SampleSource) -> Optional[float]:
        try:
            pair = sample_source()
        except Exception:
            logger.debug("Sample source error during calibration.", exc_info=True)
            return None
        if pair is None:
            return None
        left, right = pair
        if left.diameter_px <= 0 or right.diameter_px <= 0:
            return None
        if is_off_axis(left.diameter_px, right.diameter_px, self._off_axis_ratio):
            return None
        return 0.5 * (left.diameter_px + right.diameter_px)

    def collect_samples(
        self,
        sample_source: SampleSource,
        profile: CalibrationProfile,
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[float]:
        """Poll *sample_source* until the window closes or the cap is hit."""
        samples: List[float] = []
        t_end = self._clock() + profile.duration_s
        while self._clock() < t_end and len(samples) < profile.sample_cap:
            value = self._sample(sample_source)
            if value is not None:
                samples.append(value)
            self._sleep(profile.interval_s)
            if on_progress is not None:
                on_progress(len(samples))
        return samples

    def _median_or_none(self, samples: List[float]) -> Optional[float]:
        if len(samples) < self._min_samples:
            return None
        return float(np.median(samples))

    # ------------------------------------------------------------------
    # Procedures
    # ------------------------------------------------------------------

    def calibrate_focal_length(
        self,
        sample_source: SampleSource,
        iris_diameter_cm: float,
        profile: Optional[CalibrationProfile] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> CalibrationResult:
        kind = CalibrationKind.FOCAL_LENGTH
        profile = profile or self._profiles[kind]
        samples = self.collect_samples(sample_source, profile, on_progress)
        med = self._median_or_none(samples)
        if med is None:
            logger.warning(
                "Focal-length calibration failed: %d/%d good samples.",
                len(samples), self._min_samples,
            )
            return CalibrationResult(
                kind, CalibrationStatus.INSUFFICIENT_SAMPLES, accepted_samples=len(samples)
            )

        focal_px = focal_length_from(med, iris_diameter_cm, self._reference_distance_cm)
        logger.info(
            "Focal length calibrated: %.2f px (median iris %.2f px, %d samples)",
            focal_px, med, len(samples),
        )
        return CalibrationResult(
            kind, CalibrationStatus.SUCCESS, value=focal_px,
            accepted_samples=len(samples), median_px=med,
        )

    def calibrate_iris_size(
        self,
        sample_source: SampleSource,
        focal_length_px: Optional[float],
        profile: Optional[CalibrationProfile] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> CalibrationResult:
        kind = CalibrationKind.IRIS_SIZE
        profile = profile or self._profiles[kind]
        if not focal_length_px:
            logger.warning("Iris calibration needs a focal length; calibrate f_px first.")
            return CalibrationResult(kind, CalibrationStatus.PRECONDITION_UNMET)

        samples = self.collect_samples(sample_source, profile, on_progress)
        med = self._median_or_none(samples)
        if med is None:
            logger.warning(
                "Iris calibration failed: %d/%d good samples.",
                len(samples), self._min_samples,
            )
            return CalibrationResult(
                kind, CalibrationStatus.INSUFFICIENT_SAMPLES, accepted_samples=len(samples)
            )

        iris_cm = real_size_from(med, focal_length_px, self._reference_distance_cm)
        logger.info(
            "Personal iris diameter calibrated: %.3f cm (median %.2f px, %d samples)",
            iris_cm, med, len(samples),
        )
        return CalibrationResult(
            kind, CalibrationStatus.SUCCESS, value=iris_cm,
            accepted_samples=len(samples), median_px=med,
        )
