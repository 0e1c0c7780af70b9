"""Camera, landmark detection, calibration and per-frame metrics."""
