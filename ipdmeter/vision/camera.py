"""
Camera capture module with threaded frame acquisition.

A background thread keeps grabbing frames so the consumer always sees the
most recent one, whether it is the live loop or a calibration run polling
for fresh samples.
"""

import logging
import threading
from collections import deque
from typing import Optional, Tuple

import cv2
import numpy as np

from ipdmeter import config

logger = logging.getLogger(__name__)


def parse_resolution(text: str) -> Tuple[int, int]:
    """Parse ``"1280x720"`` into ``(1280, 720)``."""
    try:
        w_str, h_str = text.lower().split("x", 1)
        width, height = int(w_str), int(h_str)
    except ValueError as exc:
        raise ValueError(f"Invalid resolution {text!r}; expected WIDTHxHEIGHT") from exc
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid resolution {text!r}; dimensions must be positive")
    return width, height


class CameraCapture:
    """Threaded camera capture that keeps only the latest frame."""

    def __init__(
        self,
        device_index: int = config.CAMERA_INDEX,
        width: int = config.CAMERA_WIDTH,
        height: int = config.CAMERA_HEIGHT,
        fps: int = config.CAMERA_FPS,
    ):
        self._device_index = device_index
        self._width = width
        self._height = height
        self._fps = fps

        self._cap: Optional[cv2.VideoCapture] = None
        self._frame_buffer: deque = deque(maxlen=1)
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._frame_seq: int = 0           # incremented by capture thread
        self._last_read_seq: int = -1      # last sequence the consumer saw

        self._open()

    @property
    def is_opened(self) -> bool:
        return self._cap is not None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _open(self) -> None:
        """Open the camera device and start the capture thread."""
        logger.info("Opening camera: device=%d", self._device_index)
        self._cap = cv2.VideoCapture(self._device_index)

        if self._cap is None or not self._cap.isOpened():
            logger.warning("Camera %d could not be opened.", self._device_index)
            self._cap = None
            return

        self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, self._width)
        self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self._height)
        self._cap.set(cv2.CAP_PROP_FPS, self._fps)

        actual_w = int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        actual_h = int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        if (actual_w, actual_h) != (self._width, self._height):
            logger.warning(
                "Requested %dx%d but camera delivers %dx%d.",
                self._width, self._height, actual_w, actual_h,
            )
        logger.info(
            "Camera opened: output=%dx%d  fps=%.1f",
            actual_w, actual_h, self._cap.get(cv2.CAP_PROP_FPS),
        )

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._capture_loop, daemon=True)
        self._thread.start()

    def _capture_loop(self) -> None:
        """Continuously grab frames and push the latest into the buffer."""
        while not self._stop_event.is_set():
            if self._cap is None:
                break
            try:
                ret, frame = self._cap.read()
                if ret:
                    self._frame_buffer.append((self._frame_seq, frame))
                    self._frame_seq = (self._frame_seq + 1) & 0xFFFFFFFF
                else:
                    logger.debug("Camera read returned False.")
                    self._stop_event.wait(0.03)
            except Exception:
                logger.exception("Error in camera capture loop")
                self._stop_event.wait(0.1)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def read(self) -> Tuple[bool, Optional[np.ndarray]]:
        """Return the most recent unseen frame.

        Returns:
            (success, frame): *success* is False when no new frame is
            available (camera missing, not ready, or frame already read).
        """
        if self._cap is None:
            return False, None

        try:
            seq, frame = self._frame_buffer[-1]
        except IndexError:
            return False, None
        if seq == self._last_read_seq:
            return False, None
        self._last_read_seq = seq
        return True, frame

    def release(self) -> None:
        """Stop the capture thread and release the camera."""
        self._stop_event.set()

        if self._thread is not None:
            self._thread.join(timeout=2.0)
            self._thread = None

        if self._cap is not None:
            self._cap.release()
            self._cap = None
            logger.info("Camera released.")
