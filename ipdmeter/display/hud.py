"""HUD text and overlay drawing for the live view."""

from typing import List, Optional, Sequence

import cv2
import numpy as np

from ipdmeter import config
from ipdmeter.shared.types import (
    CalibrationKind,
    CalibrationResult,
    CalibrationStatus,
    DistanceMode,
    FrameReport,
    FrameWarning,
    PixelPoint,
)

_TEXT_COLOR = (255, 255, 255)      # BGR
_SHADOW_COLOR = (0, 0, 0)
_POINT_COLOR = (255, 209, 0)       # cyan-ish in BGR
_FONT = cv2.FONT_HERSHEY_SIMPLEX
_FONT_SCALE = 0.55
_LINE_HEIGHT = 22
_MARGIN = 12

CONTROLS_LINE = "Keys: [c] calibrate f_px  [i] calibrate iris  [r] reset  [f] fixed 30 cm  [q] quit"

_WARNING_TEXT = {
    FrameWarning.OFF_AXIS: "off-axis gaze (iris mismatch)",
    FrameWarning.NO_FACE: "no face detected",
}


def format_value(value: Optional[float], digits: int = 2) -> str:
    """Fixed-point text for *value*, or ``"N/A"`` when unavailable."""
    if value is None or not np.isfinite(value):
        return "N/A"
    return f"{value:.{digits}f}"


def hud_lines(report: FrameReport, personalized: bool = False) -> List[str]:
    """Build the HUD text block for one frame report."""
    w, h = report.frame_size
    if report.focal_length_px is not None:
        focal = f"f_px: {format_value(report.focal_length_px)} px"
    else:
        focal = "f_px: N/A (calibrate)"

    iris = f"iris_cm: {format_value(report.iris_diameter_cm, 3)} cm"
    if personalized:
        iris += " (personalized)"

    if report.distance_cm is None:
        dist = "Distance: N/A"
    else:
        tag = "fixed" if report.distance_mode is DistanceMode.FIXED else "est."
        dist = f"Distance: {format_value(report.distance_cm)} cm ({tag})"

    lines = [
        f"Frame: {w}x{h} | Proc FPS: ~{format_value(report.proc_fps, 1)}",
        focal,
        iris,
        dist,
        f"IPD: {format_value(report.ipd_px)} px",
        f"IPD: {format_value(report.ipd_cm)} cm",
        CONTROLS_LINE,
    ]
    if report.warning is not None:
        lines.append(f"Warn: {_WARNING_TEXT[report.warning]}")
    return lines


def calibration_progress_line(
    kind: CalibrationKind,
    accepted: int,
    reference_distance_cm: float = config.REFERENCE_DISTANCE_CM,
    sample_cap: int = config.CALIBRATION_SAMPLE_CAP,
) -> str:
    if kind is CalibrationKind.FOCAL_LENGTH:
        return (
            f"Auto-calibrating f_px at {reference_distance_cm:.1f} cm... "
            f"{accepted}/{sample_cap}"
        )
    return f"Calibrating personal iris size at fixed distance... {accepted}"


def calibration_result_line(
    result: CalibrationResult,
    reference_distance_cm: float = config.REFERENCE_DISTANCE_CM,
) -> str:
    if result.ok:
        if result.kind is CalibrationKind.FOCAL_LENGTH:
            return f"Calibrated f_px = {format_value(result.value)} px"
        return f"Calibrated iris = {format_value(result.value, 3)} cm"
    if result.status is CalibrationStatus.PRECONDITION_UNMET:
        return "Calibrate f_px first."
    if result.status is CalibrationStatus.SUPERSEDED:
        return "Calibration discarded after reset."
    if result.kind is CalibrationKind.FOCAL_LENGTH:
        return (
            "Calibration failed. Try again with steady gaze at "
            f"~{reference_distance_cm:.0f} cm."
        )
    return "Iris calibration failed. Not enough good frames."


def draw_hud(
    frame: np.ndarray,
    lines: Sequence[str],
    points: Sequence[PixelPoint] = (),
) -> np.ndarray:
    """Draw iris centre dots and the text block onto *frame* in place."""
    for x, y in points:
        cv2.circle(frame, (int(round(x)), int(round(y))), 4, _POINT_COLOR, -1, cv2.LINE_AA)

    y = _MARGIN + _LINE_HEIGHT
    for line in lines:
        cv2.putText(frame, line, (_MARGIN + 1, y + 1), _FONT, _FONT_SCALE,
                    _SHADOW_COLOR, 2, cv2.LINE_AA)
        cv2.putText(frame, line, (_MARGIN, y), _FONT, _FONT_SCALE,
                    _TEXT_COLOR, 1, cv2.LINE_AA)
        y += _LINE_HEIGHT
    return frame
