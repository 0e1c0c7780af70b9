import math
from types import SimpleNamespace

import pytest

from ipdmeter import config
from ipdmeter.shared import geometry
from ipdmeter.shared.geometry import (
    circle_from_3,
    gaze_ratio,
    ipd_px,
    iris_measurement,
    is_off_axis,
    landmarks_to_pixels,
    min_enclosing_circle,
)
from ipdmeter.shared.types import IrisMeasurement

from conftest import FRAME_H, FRAME_W, make_landmarks


def test_landmarks_scale_by_frame_size():
    landmarks = [(0.0, 0.0), (0.5, 0.25), (1.0, 1.0)]
    assert landmarks_to_pixels(landmarks, [2, 1], 640, 480) == [(640.0, 480.0), (320.0, 120.0)]


def test_landmarks_accept_attribute_objects():
    landmarks = [SimpleNamespace(x=0.1, y=0.2, z=0.0)]
    (x, y), = landmarks_to_pixels(landmarks, [0], 100, 50)
    assert x == pytest.approx(10.0)
    assert y == pytest.approx(10.0)


def test_square_fits_circumscribed_circle():
    circle = min_enclosing_circle([(1, 1), (1, -1), (-1, 1), (-1, -1)])
    assert circle.center[0] == pytest.approx(0.0)
    assert circle.center[1] == pytest.approx(0.0)
    assert circle.radius == pytest.approx(math.sqrt(2))


def test_colinear_points_use_extreme_pair():
    circle = min_enclosing_circle([(0, 0), (1, 0), (3, 0), (7, 0)])
    assert circle.center == pytest.approx((3.5, 0.0))
    assert circle.radius == pytest.approx(3.5)


def test_colinear_triple_is_rejected():
    assert circle_from_3((0, 0), (1, 1), (2, 2)) is None


def test_triangle_with_interior_point_uses_three_point_circle():
    # Equilateral triangle with its centroid as the fourth point.
    h = math.sqrt(3)
    pts = [(0.0, 0.0), (2.0, 0.0), (1.0, h), (1.0, h / 3)]
    circle = min_enclosing_circle(pts)
    assert circle.radius == pytest.approx(2 / math.sqrt(3))
    assert circle.center == pytest.approx((1.0, h / 3))


def test_result_encloses_all_points():
    pts = [(3.2, 1.0), (5.9, 2.2), (4.1, 4.8), (2.7, 3.3)]
    circle = min_enclosing_circle(pts)
    for p in pts:
        assert math.dist(p, circle.center) <= circle.radius + 1e-3


def test_wrong_point_count_raises():
    with pytest.raises(ValueError):
        min_enclosing_circle([(0, 0), (1, 1), (2, 0)])


def test_centroid_fallback_when_nothing_encloses(monkeypatch):
    monkeypatch.setattr(geometry, "_encloses", lambda circle, points: False)
    circle = min_enclosing_circle([(0, 0), (2, 0), (0, 2), (2, 2)])
    assert circle.center == pytest.approx((1.0, 1.0))
    # Mean distance from the centroid to the corners.
    assert circle.radius == pytest.approx(math.sqrt(2))


def test_iris_measurement_from_mesh():
    landmarks = make_landmarks(left_d=24.0, left_center=(300.0, 400.0))
    m = iris_measurement(landmarks, config.LEFT_IRIS, FRAME_W, FRAME_H)
    assert m.diameter_px == pytest.approx(24.0)
    assert m.center == pytest.approx((300.0, 400.0))


def test_gaze_ratio_and_off_axis():
    assert gaze_ratio(10.0, 13.0) == pytest.approx(1.3)
    assert gaze_ratio(13.0, 10.0) == pytest.approx(1.3)
    assert is_off_axis(10.0, 13.0)
    assert not is_off_axis(10.0, 11.0)
    assert not is_off_axis(10.0, 11.5)


def test_gaze_ratio_guards_zero():
    assert gaze_ratio(0.0, 5.0) == pytest.approx(5.0 / 1e-6)


def test_ipd_px_is_center_distance():
    left = IrisMeasurement(center=(0.0, 0.0), diameter_px=10.0)
    right = IrisMeasurement(center=(3.0, 4.0), diameter_px=10.0)
    assert ipd_px(left, right) == pytest.approx(5.0)
