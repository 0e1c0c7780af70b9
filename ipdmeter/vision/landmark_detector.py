"""
Face landmark detection via MediaPipe Face Mesh.

Iris refinement is enabled so the mesh carries the extra ten iris points
(468-477) on top of the 468 face points.
"""

import logging
from typing import List, Optional, Tuple

import cv2
import mediapipe as mp  # type: ignore[import-untyped]
import numpy as np

from ipdmeter import config

logger = logging.getLogger(__name__)

Landmarks = List[Tuple[float, float]]


class LandmarkDetector:
    """Return normalised face-mesh landmarks for the first face in a frame."""

    def __init__(
        self,
        min_detection_confidence: float = config.FACE_DETECTION_CONFIDENCE,
        min_tracking_confidence: float = config.FACE_TRACKING_CONFIDENCE,
    ) -> None:
        self._mesh = mp.solutions.face_mesh.FaceMesh(
            static_image_mode=False,
            max_num_faces=1,
            refine_landmarks=True,
            min_detection_confidence=min_detection_confidence,
            min_tracking_confidence=min_tracking_confidence,
        )
        logger.info("LandmarkDetector using MediaPipe Face Mesh (refined iris).")

    def detect(self, frame: np.ndarray) -> Optional[Landmarks]:
        """Detect landmarks in *frame* (BGR uint8).

        Returns a list of ``(x, y)`` pairs normalised to 0-1, or ``None``
        when no face is found.
        """
        rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        rgb.flags.writeable = False
        results = self._mesh.process(rgb)

        if not results.multi_face_landmarks:
            return None

        face = results.multi_face_landmarks[0]
        return [(float(lm.x), float(lm.y)) for lm in face.landmark]

    def close(self) -> None:
        self._mesh.close()
