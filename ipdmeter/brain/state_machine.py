"""Session mode state machine for IPD Meter.

IDLE -> LIVE -> CALIBRATING_* -> (back to the mode calibration started from).

Calibration takes exclusive ownership of the detector and the smoothing
streams, so the live per-frame path is refused while it runs.
"""

import logging
from typing import Callable, Optional

from ipdmeter.shared.types import CalibrationKind, SessionMode

logger = logging.getLogger(__name__)

_CALIBRATING_MODES = {
    CalibrationKind.FOCAL_LENGTH: SessionMode.CALIBRATING_FOCAL,
    CalibrationKind.IRIS_SIZE: SessionMode.CALIBRATING_IRIS,
}


class ModeError(RuntimeError):
    """Raised on a mode transition the session does not allow."""


class ModeStateMachine:
    """Tracks whether the session is idle, live, or calibrating."""

    def __init__(self) -> None:
        self._mode: SessionMode = SessionMode.IDLE
        self._resume_mode: SessionMode = SessionMode.IDLE

        self.on_mode_change: Optional[
            Callable[[SessionMode, SessionMode], None]
        ] = None

    @property
    def mode(self) -> SessionMode:
        return self._mode

    @property
    def is_calibrating(self) -> bool:
        return self._mode in _CALIBRATING_MODES.values()

    def start_live(self) -> None:
        if self._mode is SessionMode.LIVE:
            return
        if self._mode is not SessionMode.IDLE:
            raise ModeError(f"Cannot go live from {self._mode.name}")
        self._set_mode(SessionMode.LIVE)

    def stop(self) -> None:
        if self.is_calibrating:
            raise ModeError("Cannot stop while calibrating")
        self._set_mode(SessionMode.IDLE)

    def begin_calibration(self, kind: CalibrationKind) -> None:
        if self.is_calibrating:
            raise ModeError(f"Calibration already running ({self._mode.name})")
        self._resume_mode = self._mode
        self._set_mode(_CALIBRATING_MODES[kind])

    def end_calibration(self) -> None:
        if not self.is_calibrating:
            raise ModeError(f"No calibration running ({self._mode.name})")
        self._set_mode(self._resume_mode)

    def require_live_path(self) -> None:
        """Raise unless per-frame processing is allowed right now."""
        if self.is_calibrating:
            raise ModeError("Per-frame processing is disabled during calibration")

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _set_mode(self, new_mode: SessionMode) -> None:
        old = self._mode
        if old == new_mode:
            return
        logger.info("Mode transition: %s -> %s", old.name, new_mode.name)
        self._mode = new_mode
        if self.on_mode_change:
            self.on_mode_change(old, new_mode)
