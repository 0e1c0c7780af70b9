"""Shared fixtures: a fake clock and synthetic face-mesh landmark sets."""

from typing import List, Tuple

import pytest

from ipdmeter import config
from ipdmeter.shared.types import IrisMeasurement

FRAME_W = 1000
FRAME_H = 1000
MESH_SIZE = 478


class FakeClock:
    """Monotonic clock whose ``sleep`` just advances time."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps = 0

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps += 1
        self.now += seconds


def _ring(cx_px: float, cy_px: float, d_px: float) -> List[Tuple[float, float]]:
    r = d_px / 2.0
    pts = [(cx_px + r, cy_px), (cx_px, cy_px + r), (cx_px - r, cy_px), (cx_px, cy_px - r)]
    return [(x / FRAME_W, y / FRAME_H) for x, y in pts]


def make_landmarks(
    left_d: float = 20.0,
    right_d: float = 20.0,
    left_center: Tuple[float, float] = (400.0, 500.0),
    right_center: Tuple[float, float] = (600.0, 500.0),
) -> List[Tuple[float, float]]:
    """A refined face mesh where only the two iris rings carry meaning."""
    landmarks = [(0.5, 0.5)] * MESH_SIZE
    for idx, pt in zip(config.LEFT_IRIS, _ring(*left_center, left_d)):
        landmarks[idx] = pt
    for idx, pt in zip(config.RIGHT_IRIS, _ring(*right_center, right_d)):
        landmarks[idx] = pt
    return landmarks


def iris_pair(left_d: float, right_d: float):
    return (
        IrisMeasurement(center=(400.0, 500.0), diameter_px=left_d),
        IrisMeasurement(center=(600.0, 500.0), diameter_px=right_d),
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
