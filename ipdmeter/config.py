"""Global paths, constants, and defaults for IPD Meter."""

import os
from pathlib import Path

# ── Paths ──────────────────────────────────────────────────────────────────
PROJECT_ROOT = Path(os.environ.get("IPDMETER_ROOT", Path(__file__).resolve().parent.parent))
CALIBRATION_DIR = Path(os.environ.get("IPDMETER_CALIBRATION_DIR", PROJECT_ROOT / "calibration"))
CALIBRATION_FILENAME = "ipd_calibration.json"

# ── Camera ─────────────────────────────────────────────────────────────────
CAMERA_INDEX = int(os.environ.get("IPDMETER_CAMERA_INDEX", "0"))
CAMERA_WIDTH = 1280
CAMERA_HEIGHT = 720
CAMERA_FPS = 30

# ── Vision ─────────────────────────────────────────────────────────────────
FACE_DETECTION_CONFIDENCE = 0.5
FACE_TRACKING_CONFIDENCE = 0.5

# Refined MediaPipe face mesh: four points on each iris boundary.
LEFT_IRIS = (468, 469, 470, 471)
RIGHT_IRIS = (473, 474, 475, 476)

# ── Smoothing ──────────────────────────────────────────────────────────────
STREAM_WINDOW = 21
STREAM_K = 3.5
STREAM_MIN_BASELINE = 5

# ── Pinhole model ──────────────────────────────────────────────────────────
REFERENCE_DISTANCE_CM = 30.0
DEFAULT_IRIS_DIAMETER_CM = 1.17
OFF_AXIS_RATIO = 1.15

# ── Calibration ────────────────────────────────────────────────────────────
CALIBRATION_MIN_SAMPLES = 10
CALIBRATION_SAMPLE_CAP = 20
CALIBRATION_INTERVAL_S = 0.03
FOCAL_CALIBRATION_DURATION_S = 3.0
IRIS_CALIBRATION_DURATION_S = 2.0

# ── Display ────────────────────────────────────────────────────────────────
WINDOW_NAME = "IPD Meter"
FPS_WINDOW = 60
