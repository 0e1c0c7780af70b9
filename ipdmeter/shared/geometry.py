"""Geometry helpers: landmark scaling and iris circle fitting.

The circle solver enumerates every 2-point and 3-point hypothesis, which is
exact only for the four-point iris rings it is used with.
"""

import logging
import math
from itertools import combinations
from typing import Any, List, Optional, Sequence

from ipdmeter import config
from ipdmeter.shared.types import Circle, IrisMeasurement, PixelPoint

logger = logging.getLogger(__name__)

RING_SIZE = 4
CONTAINMENT_TOLERANCE = 1e-3
COLINEAR_EPSILON = 1e-6


def _xy(landmark: Any) -> PixelPoint:
    """Accept either an ``(x, y)`` pair or an object with ``.x``/``.y``."""
    if hasattr(landmark, "x"):
        return float(landmark.x), float(landmark.y)
    return float(landmark[0]), float(landmark[1])


def landmarks_to_pixels(
    landmarks: Sequence[Any],
    indices: Sequence[int],
    width: int,
    height: int,
) -> List[PixelPoint]:
    """Scale the selected normalised landmarks to pixel coordinates."""
    points: List[PixelPoint] = []
    for i in indices:
        x, y = _xy(landmarks[i])
        points.append((x * width, y * height))
    return points


def distance(a: PixelPoint, b: PixelPoint) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def circle_from_2(a: PixelPoint, b: PixelPoint) -> Circle:
    center = ((a[0] + b[0]) / 2.0, (a[1] + b[1]) / 2.0)
    return Circle(center=center, radius=distance(a, b) / 2.0)


def circle_from_3(a: PixelPoint, b: PixelPoint, c: PixelPoint) -> Optional[Circle]:
    """Circumscribed circle of a triangle, or None if nearly colinear."""
    A = b[0] - a[0]
    B = b[1] - a[1]
    C = c[0] - a[0]
    D = c[1] - a[1]
    E = A * (a[0] + b[0]) + B * (a[1] + b[1])
    F = C * (a[0] + c[0]) + D * (a[1] + c[1])
    G = 2.0 * (A * (c[1] - b[1]) - B * (c[0] - b[0]))
    if abs(G) < COLINEAR_EPSILON:
        return None
    center = ((D * E - B * F) / G, (A * F - C * E) / G)
    return Circle(center=center, radius=distance(center, a))


def _encloses(circle: Circle, points: Sequence[PixelPoint]) -> bool:
    limit = circle.radius + CONTAINMENT_TOLERANCE
    return all(distance(p, circle.center) <= limit for p in points)


def min_enclosing_circle(points: Sequence[PixelPoint]) -> Circle:
    """Smallest circle containing all four *points*.

    Falls back to the centroid with the mean centroid distance as radius
    when no hypothesis encloses every point. That fallback is not minimal.
    """
    if len(points) != RING_SIZE:
        raise ValueError(
            f"min_enclosing_circle expects {RING_SIZE} points, got {len(points)}"
        )

    best: Optional[Circle] = None

    for a, b in combinations(points, 2):
        cand = circle_from_2(a, b)
        if _encloses(cand, points) and (best is None or cand.radius < best.radius):
            best = cand

    for a, b, c in combinations(points, 3):
        cand = circle_from_3(a, b, c)
        if cand is None:
            continue
        if _encloses(cand, points) and (best is None or cand.radius < best.radius):
            best = cand

    if best is not None:
        return best

    logger.debug("No enclosing hypothesis for %s; using centroid fallback.", points)
    n = float(len(points))
    cx = sum(p[0] for p in points) / n
    cy = sum(p[1] for p in points) / n
    radius = sum(distance(p, (cx, cy)) for p in points) / n
    return Circle(center=(cx, cy), radius=radius)


def iris_measurement(
    landmarks: Sequence[Any],
    indices: Sequence[int],
    width: int,
    height: int,
) -> IrisMeasurement:
    """Fit the iris ring at *indices* and return its centre and diameter."""
    circle = min_enclosing_circle(landmarks_to_pixels(landmarks, indices, width, height))
    return IrisMeasurement(center=circle.center, diameter_px=circle.diameter)


def gaze_ratio(left_d: float, right_d: float) -> float:
    """Larger over smaller apparent iris diameter (>= 1 for positive input)."""
    return max(left_d, right_d) / max(1e-6, min(left_d, right_d))


def is_off_axis(
    left_d: float, right_d: float, threshold: float = config.OFF_AXIS_RATIO
) -> bool:
    return gaze_ratio(left_d, right_d) > threshold


def ipd_px(left: IrisMeasurement, right: IrisMeasurement) -> float:
    """Pixel distance between the two iris centres."""
    return distance(left.center, right.center)
