"""Processing-rate bookkeeping for the live loop."""

import time
from collections import deque
from typing import Callable, Deque

from ipdmeter import config


class FpsCounter:
    """Frames per second over the last *window* ticks."""

    def __init__(
        self,
        window: int = config.FPS_WINDOW,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._clock = clock
        self._ticks: Deque[float] = deque(maxlen=window)

    def tick(self) -> None:
        self._ticks.append(self._clock())

    @property
    def fps(self) -> float:
        if len(self._ticks) < 2:
            return 0.0
        span = self._ticks[-1] - self._ticks[0]
        if span <= 0.0:
            return 0.0
        return (len(self._ticks) - 1) / span

    def reset(self) -> None:
        self._ticks.clear()
