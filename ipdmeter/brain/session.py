"""Measurement session for IPD Meter.

A ``MeasurementSession`` owns everything that persists between frames: the
calibration constants, the two smoothing streams, the mode state machine and
an optional store.  The live loop calls ``process_frame`` once per frame;
calibration procedures take over sampling until they finish.
"""

import dataclasses
import logging
from typing import Any, Callable, Optional, Sequence

from ipdmeter import config
from ipdmeter.brain.state_machine import ModeStateMachine
from ipdmeter.shared.geometry import iris_measurement
from ipdmeter.shared.persistence import CalibrationStore
from ipdmeter.shared.smoothing import RobustStream
from ipdmeter.shared.timing import FpsCounter
from ipdmeter.shared.types import (
    CalibrationConstants,
    CalibrationKind,
    CalibrationProfile,
    CalibrationResult,
    CalibrationStatus,
    DistanceMode,
    FrameReport,
    SessionMode,
)
from ipdmeter.vision.calibration import (
    CalibrationEngine,
    IrisPair,
    ProgressCallback,
    SampleSource,
)
from ipdmeter.vision.metrics import FrameEstimator, estimate_metrics

logger = logging.getLogger(__name__)


class MeasurementSession:
    """Calibration state plus smoothing for one camera/subject pairing."""

    def __init__(
        self,
        constants: Optional[CalibrationConstants] = None,
        store: Optional[CalibrationStore] = None,
        engine: Optional[CalibrationEngine] = None,
        stream_window: int = config.STREAM_WINDOW,
        stream_k: float = config.STREAM_K,
        fixed_distance_cm: float = config.REFERENCE_DISTANCE_CM,
        off_axis_ratio: float = config.OFF_AXIS_RATIO,
        left_iris: Sequence[int] = config.LEFT_IRIS,
        right_iris: Sequence[int] = config.RIGHT_IRIS,
        fps_counter: Optional[FpsCounter] = None,
    ) -> None:
        self._store = store
        if constants is None:
            constants = store.load() if store is not None else CalibrationConstants()
        self._constants = dataclasses.replace(constants)

        self._engine = engine if engine is not None else CalibrationEngine(
            reference_distance_cm=fixed_distance_cm,
            off_axis_ratio=off_axis_ratio,
        )
        self._estimator = FrameEstimator(
            RobustStream(stream_window, stream_k),
            RobustStream(stream_window, stream_k),
            off_axis_ratio=off_axis_ratio,
        )
        self._state_machine = ModeStateMachine()
        self._fps = fps_counter if fps_counter is not None else FpsCounter()

        self._fixed_distance_cm = fixed_distance_cm
        self._left_iris = tuple(left_iris)
        self._right_iris = tuple(right_iris)
        self._required_landmarks = max(self._left_iris + self._right_iris) + 1

        self.use_fixed_distance: bool = False
        self._generation: int = 0

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def constants(self) -> CalibrationConstants:
        return dataclasses.replace(self._constants)

    @property
    def reference_distance_cm(self) -> float:
        return self._engine.reference_distance_cm

    def calibration_profile(self, kind: CalibrationKind) -> CalibrationProfile:
        return self._engine.profile(kind)

    @property
    def mode(self) -> SessionMode:
        return self._state_machine.mode

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def iris_stream(self) -> RobustStream:
        return self._estimator.iris_stream

    @property
    def ipd_stream(self) -> RobustStream:
        return self._estimator.ipd_stream

    @property
    def distance_mode(self) -> DistanceMode:
        return DistanceMode.FIXED if self.use_fixed_distance else DistanceMode.ESTIMATED

    def toggle_fixed_distance(self) -> bool:
        self.use_fixed_distance = not self.use_fixed_distance
        logger.info("Distance mode: %s", self.distance_mode.name)
        return self.use_fixed_distance

    # ------------------------------------------------------------------
    # Live path
    # ------------------------------------------------------------------

    def measure_irises(
        self, landmarks: Optional[Sequence[Any]], width: int, height: int
    ) -> Optional[IrisPair]:
        """Fit both iris rings, or return None when there is no usable face."""
        if landmarks is None:
            return None
        if len(landmarks) < self._required_landmarks:
            logger.debug(
                "Landmark set too small for iris rings (%d < %d).",
                len(landmarks), self._required_landmarks,
            )
            return None
        left = iris_measurement(landmarks, self._left_iris, width, height)
        right = iris_measurement(landmarks, self._right_iris, width, height)
        return left, right

    def process_frame(
        self, landmarks: Optional[Sequence[Any]], width: int, height: int
    ) -> FrameReport:
        """Update the streams from one detector result and report metrics.

        *landmarks* is the detector's normalised landmark list, or None when
        no face was found.  Raises ``ModeError`` while a calibration owns the
        streams.
        """
        self._state_machine.require_live_path()
        if self._state_machine.mode is SessionMode.IDLE:
            self._state_machine.start_live()
        self._fps.tick()

        pair = self.measure_irises(landmarks, width, height)
        left, right = pair if pair is not None else (None, None)
        smoothed_iris, smoothed_ipd, warning = self._estimator.update(left, right)

        metrics = estimate_metrics(
            smoothed_iris,
            smoothed_ipd,
            self._constants,
            use_fixed_distance=self.use_fixed_distance,
            warning=warning,
            fixed_distance_cm=self._fixed_distance_cm,
        )
        return FrameReport(
            proc_fps=self._fps.fps,
            frame_size=(width, height),
            focal_length_px=self._constants.focal_length_px,
            iris_diameter_cm=self._constants.iris_diameter_cm,
            distance_cm=metrics.distance_cm,
            distance_mode=self.distance_mode,
            ipd_px=smoothed_ipd,
            ipd_cm=metrics.ipd_cm,
            warning=metrics.warning,
            iris_centers=(left.center, right.center) if pair is not None else None,
        )

    # ------------------------------------------------------------------
    # Calibration
    # ------------------------------------------------------------------

    def calibrate_focal_length(
        self,
        sample_source: SampleSource,
        on_progress: Optional[ProgressCallback] = None,
    ) -> CalibrationResult:
        """Solve for focal length with the subject at the reference distance."""
        iris_cm = self._constants.iris_diameter_cm
        return self._run_calibration(
            CalibrationKind.FOCAL_LENGTH,
            lambda: self._engine.calibrate_focal_length(
                sample_source, iris_cm, on_progress=on_progress
            ),
        )

    def calibrate_iris_size(
        self,
        sample_source: SampleSource,
        on_progress: Optional[ProgressCallback] = None,
    ) -> CalibrationResult:
        """Solve for the subject's iris size; needs a calibrated focal length."""
        focal_px = self._constants.focal_length_px
        if focal_px is None:
            return self._engine.calibrate_iris_size(sample_source, None)
        return self._run_calibration(
            CalibrationKind.IRIS_SIZE,
            lambda: self._engine.calibrate_iris_size(
                sample_source, focal_px, on_progress=on_progress
            ),
        )

    def reset(self) -> None:
        """Forget calibration, restore the default iris size, clear smoothing."""
        self._generation += 1
        self._constants = CalibrationConstants()
        self._estimator.clear()
        logger.info("Calibration reset to defaults.")
        self._persist()

    def _run_calibration(
        self,
        kind: CalibrationKind,
        procedure: Callable[[], CalibrationResult],
    ) -> CalibrationResult:
        generation = self._generation
        self._state_machine.begin_calibration(kind)
        try:
            result = procedure()
        finally:
            self._state_machine.end_calibration()
            self._estimator.clear()

        if not result.ok:
            return result
        if generation != self._generation:
            logger.warning("%s calibration discarded: reset during sampling.", kind.name)
            return dataclasses.replace(result, status=CalibrationStatus.SUPERSEDED)

        if kind is CalibrationKind.FOCAL_LENGTH:
            self._constants.focal_length_px = result.value
        else:
            self._constants.iris_diameter_cm = result.value
        self._persist()
        return result

    def _persist(self) -> None:
        if self._store is None:
            return
        try:
            self._store.save(self._constants)
        except OSError:
            logger.exception("Failed to save calibration.")
