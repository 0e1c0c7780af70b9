"""
Calibration persistence.

Stores the two pinhole constants (focal length in pixels and personal iris
diameter in centimetres) as JSON so a calibration survives restarts.
Missing or unreadable files fall back to defaults.
"""

import json
import logging
import math
from pathlib import Path
from typing import Any, Optional

from ipdmeter import config
from ipdmeter.shared.types import CalibrationConstants

logger = logging.getLogger(__name__)


def _positive_float(value: Any) -> Optional[float]:
    """Coerce *value* to a finite positive float, or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        out = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(out) or out <= 0.0:
        return None
    return out


class CalibrationStore:
    """Load and save ``CalibrationConstants`` in a JSON file."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path: Path = (
            Path(path) if path else Path(config.CALIBRATION_DIR) / config.CALIBRATION_FILENAME
        )

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> CalibrationConstants:
        """Read constants from disk, using defaults for anything missing."""
        if not self._path.exists():
            logger.info("No calibration file at %s; using defaults.", self._path)
            return CalibrationConstants()

        try:
            with open(self._path, "r", encoding="utf-8") as fh:
                raw = json.load(fh)
        except (OSError, ValueError):
            logger.warning(
                "Failed to read calibration from %s; using defaults.",
                self._path,
                exc_info=True,
            )
            return CalibrationConstants()

        if not isinstance(raw, dict):
            logger.warning("Calibration file %s is not an object; using defaults.", self._path)
            return CalibrationConstants()

        iris_cm = _positive_float(raw.get("iris_diameter_cm"))
        constants = CalibrationConstants(
            focal_length_px=_positive_float(raw.get("focal_length_px")),
            iris_diameter_cm=iris_cm if iris_cm is not None else config.DEFAULT_IRIS_DIAMETER_CM,
        )
        logger.info(
            "Calibration loaded from %s (f_px=%s, iris=%.3f cm)",
            self._path, constants.focal_length_px, constants.iris_diameter_cm,
        )
        return constants

    def save(self, constants: CalibrationConstants) -> None:
        data = {
            "focal_length_px": constants.focal_length_px,
            "iris_diameter_cm": constants.iris_diameter_cm,
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._path, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2)
        logger.info("Calibration saved to %s", self._path)
