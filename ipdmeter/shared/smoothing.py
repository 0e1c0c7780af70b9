"""Robust smoothing for per-frame iris and IPD measurements."""

import math
from collections import deque
from typing import Deque, Optional, Tuple

import numpy as np

from ipdmeter import config

# Scales MAD to a consistent estimate of sigma under Gaussian noise.
MAD_TO_SIGMA = 1.4826
MAD_FLOOR = 1.0


class RobustStream:
    """Running median over a bounded window with MAD outlier rejection.

    Once *min_baseline* samples are buffered, a new sample further than
    ``k * max(MAD, 1.0)`` from the current median is dropped.  Accepted
    samples are evicted oldest-first when the window is full.
    """

    def __init__(
        self,
        win: int = config.STREAM_WINDOW,
        k: float = config.STREAM_K,
        min_baseline: int = config.STREAM_MIN_BASELINE,
    ) -> None:
        if win < 1:
            raise ValueError("win must be at least 1")
        self._win = win
        self._k = k
        self._min_baseline = min_baseline
        self._buf: Deque[float] = deque(maxlen=win)

    @property
    def win(self) -> int:
        return self._win

    @property
    def k(self) -> float:
        return self._k

    @property
    def values(self) -> Tuple[float, ...]:
        return tuple(self._buf)

    def __len__(self) -> int:
        return len(self._buf)

    def add(self, x: Optional[float]) -> Optional[float]:
        """Offer a sample; return the current median afterwards."""
        if x is None or not math.isfinite(x):
            return self.last()

        if len(self._buf) >= self._min_baseline:
            buf = np.asarray(self._buf, dtype=np.float64)
            med = float(np.median(buf))
            mad = MAD_TO_SIGMA * float(np.median(np.abs(buf - med)))
            threshold = self._k * max(mad, MAD_FLOOR)
            if abs(x - med) > threshold:
                return self.last()

        # deque(maxlen=win) evicts the oldest sample on append.
        self._buf.append(float(x))
        return self.last()

    def last(self) -> Optional[float]:
        if not self._buf:
            return None
        return float(np.median(np.asarray(self._buf, dtype=np.float64)))

    def clear(self) -> None:
        self._buf.clear()
