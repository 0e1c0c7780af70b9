"""
Live measurement loop.

``run_live(...)`` opens the camera, runs the landmark detector on every new
frame, feeds the session, and draws the HUD in an OpenCV window.  Keys
trigger the two calibration procedures, reset, and the fixed-distance
toggle.  While a calibration runs it pulls frames itself and the live path
is paused.
"""

import logging
import time
from typing import Optional

import cv2
import numpy as np

from ipdmeter import config
from ipdmeter.brain.session import MeasurementSession
from ipdmeter.display.hud import (
    CONTROLS_LINE,
    calibration_progress_line,
    calibration_result_line,
    draw_hud,
    hud_lines,
)
from ipdmeter.shared.persistence import CalibrationStore
from ipdmeter.shared.types import CalibrationKind, CalibrationResult
from ipdmeter.vision.calibration import IrisPair
from ipdmeter.vision.camera import CameraCapture

logger = logging.getLogger(__name__)

# Target loop period (seconds).
_TARGET_PERIOD = 1.0 / config.CAMERA_FPS
_MESSAGE_HOLD_S = 3.0


class LiveApp:
    """Wires camera, detector, session and HUD together."""

    def __init__(
        self,
        camera: CameraCapture,
        detector,
        session: MeasurementSession,
        window_name: str = config.WINDOW_NAME,
    ) -> None:
        self._camera = camera
        self._detector = detector
        self._session = session
        self._window = window_name
        self._last_frame: Optional[np.ndarray] = None
        self._message: Optional[str] = None
        self._message_until = 0.0

    # ------------------------------------------------------------------
    # Frame helpers
    # ------------------------------------------------------------------

    def _grab(self) -> Optional[np.ndarray]:
        success, frame = self._camera.read()
        if success and frame is not None:
            self._last_frame = frame
            return frame
        return None

    def _detect(self, frame: np.ndarray):
        try:
            return self._detector.detect(frame)
        except Exception:
            logger.debug("Landmark detection error.", exc_info=True)
            return None

    def _sample_irises(self) -> Optional[IrisPair]:
        """One detector invocation for calibration sampling."""
        frame = self._grab()
        if frame is None:
            frame = self._last_frame
        if frame is None:
            return None
        h, w = frame.shape[:2]
        return self._session.measure_irises(self._detect(frame), w, h)

    def _show(self, frame: Optional[np.ndarray], lines, points=()) -> None:
        if frame is None:
            return
        canvas = draw_hud(frame.copy(), lines, points)
        cv2.imshow(self._window, canvas)
        cv2.waitKey(1)

    def _flash(self, message: str) -> None:
        self._message = message
        self._message_until = time.monotonic() + _MESSAGE_HOLD_S

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def _calibrate(self, kind: CalibrationKind) -> CalibrationResult:
        reference_cm = self._session.reference_distance_cm
        sample_cap = self._session.calibration_profile(kind).sample_cap

        def progress(accepted: int) -> None:
            line = calibration_progress_line(kind, accepted, reference_cm, sample_cap)
            self._show(self._last_frame, [line])

        if kind is CalibrationKind.FOCAL_LENGTH:
            result = self._session.calibrate_focal_length(self._sample_irises, progress)
        else:
            result = self._session.calibrate_iris_size(self._sample_irises, progress)
        self._flash(calibration_result_line(result, reference_cm))
        return result

    def handle_key(self, key: int) -> bool:
        """React to a key press; return False when the app should exit."""
        if key in (ord("q"), 27):
            return False
        if key == ord("c"):
            self._calibrate(CalibrationKind.FOCAL_LENGTH)
        elif key == ord("i"):
            self._calibrate(CalibrationKind.IRIS_SIZE)
        elif key == ord("r"):
            self._session.reset()
            self._flash("Calibration reset.")
        elif key == ord("f"):
            self._session.toggle_fixed_distance()
        return True

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    def step(self) -> None:
        """Process one new camera frame, if any, and redraw."""
        frame = self._grab()
        if frame is None:
            return
        h, w = frame.shape[:2]
        report = self._session.process_frame(self._detect(frame), w, h)

        lines = hud_lines(report, personalized=self._session.constants.is_personalized)
        if self._message and time.monotonic() < self._message_until:
            lines.append(self._message)
        points = report.iris_centers or ()
        cv2.imshow(self._window, draw_hud(frame.copy(), lines, points))

    def run(self) -> None:
        logger.info("Live loop ready. %s", CONTROLS_LINE)
        while True:
            loop_start = time.monotonic()
            self.step()
            key = cv2.waitKey(1) & 0xFF
            if key != 0xFF and not self.handle_key(key):
                logger.info("Quit requested.")
                return
            _sleep_remaining(loop_start)


def run_live(
    device_index: int = config.CAMERA_INDEX,
    width: int = config.CAMERA_WIDTH,
    height: int = config.CAMERA_HEIGHT,
    use_fixed_distance: bool = False,
    store: Optional[CalibrationStore] = None,
) -> None:
    """Open the camera and run the measurement loop until quit."""
    logger.info("IPD Meter starting.")
    camera: Optional[CameraCapture] = None
    detector = None

    try:
        from ipdmeter.vision.landmark_detector import LandmarkDetector

        camera = CameraCapture(device_index=device_index, width=width, height=height)
        if not camera.is_opened:
            logger.error("No camera available; exiting.")
            return
        detector = LandmarkDetector()
        session = MeasurementSession(store=store if store is not None else CalibrationStore())
        session.use_fixed_distance = use_fixed_distance
        LiveApp(camera, detector, session).run()
    except KeyboardInterrupt:
        logger.info("Interrupted.")
    finally:
        logger.info("Shutting down.")
        if detector is not None:
            detector.close()
        if camera is not None:
            camera.release()
        cv2.destroyAllWindows()


def _sleep_remaining(loop_start: float) -> None:
    """Sleep for the remainder of the target frame period."""
    elapsed = time.monotonic() - loop_start
    remaining = _TARGET_PERIOD - elapsed
    if remaining > 0:
        time.sleep(remaining)
