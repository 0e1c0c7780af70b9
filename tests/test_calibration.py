import pytest

from ipdmeter.shared.types import (
    CalibrationKind,
    CalibrationProfile,
    CalibrationStatus,
)
from ipdmeter.vision.calibration import CalibrationEngine

from conftest import iris_pair


def make_engine(clock, **kwargs):
    return CalibrationEngine(clock=clock, sleep=clock.sleep, **kwargs)


def constant_source(left_d, right_d):
    def source():
        return iris_pair(left_d, right_d)
    return source


def test_focal_length_from_steady_samples(clock):
    engine = make_engine(clock)
    result = engine.calibrate_focal_length(constant_source(20.0, 22.0), iris_diameter_cm=1.17)

    assert result.ok
    assert result.kind is CalibrationKind.FOCAL_LENGTH
    assert result.accepted_samples == 20
    assert result.median_px == pytest.approx(21.0)
    assert result.value == pytest.approx(21.0 * 30.0 / 1.17)


def test_sample_cap_stops_early(clock):
    calls = []

    def source():
        calls.append(clock.now)
        return iris_pair(20.0, 20.0)

    make_engine(clock).calibrate_focal_length(source, iris_diameter_cm=1.17)
    assert len(calls) == 20
    assert clock.now < 3.0


def test_window_limits_duration(clock):
    profile = CalibrationProfile(duration_s=0.3, interval_s=0.03, sample_cap=20)
    samples = make_engine(clock).collect_samples(constant_source(20.0, 20.0), profile)
    assert 9 <= len(samples) <= 11
    assert clock.now == pytest.approx(0.3, abs=0.031)


def test_no_face_window_fails(clock):
    engine = make_engine(clock)
    result = engine.calibrate_focal_length(lambda: None, iris_diameter_cm=1.17)

    assert result.status is CalibrationStatus.INSUFFICIENT_SAMPLES
    assert result.value is None
    assert result.accepted_samples == 0
    assert clock.now >= 3.0


def test_off_axis_samples_are_excluded(clock):
    result = make_engine(clock).calibrate_focal_length(
        constant_source(10.0, 13.0), iris_diameter_cm=1.17
    )
    assert result.status is CalibrationStatus.INSUFFICIENT_SAMPLES
    assert result.accepted_samples == 0


def test_median_ignores_sporadic_bad_frames(clock):
    frames = iter(
        [iris_pair(20.0, 20.0)] * 5
        + [None, iris_pair(10.0, 13.0)] * 3
        + [iris_pair(30.0, 30.0)] * 4
        + [iris_pair(20.0, 20.0)] * 20
    )
    result = make_engine(clock).calibrate_focal_length(lambda: next(frames), 1.17)
    assert result.ok
    assert result.accepted_samples == 20
    assert result.median_px == pytest.approx(20.0)


def test_source_errors_count_as_missing(clock):
    def source():
        raise RuntimeError("detector crashed")

    result = make_engine(clock).calibrate_focal_length(source, 1.17)
    assert result.status is CalibrationStatus.INSUFFICIENT_SAMPLES


def test_minimum_sample_count_boundary(clock):
    profile = CalibrationProfile(duration_s=1.0, interval_s=0.03, sample_cap=10)
    result = make_engine(clock).calibrate_focal_length(
        constant_source(20.0, 20.0), 1.17, profile=profile
    )
    assert result.ok
    assert result.accepted_samples == 10

    profile = CalibrationProfile(duration_s=1.0, interval_s=0.03, sample_cap=9)
    result = make_engine(clock).calibrate_focal_length(
        constant_source(20.0, 20.0), 1.17, profile=profile
    )
    assert result.status is CalibrationStatus.INSUFFICIENT_SAMPLES


def test_iris_size_requires_focal_length(clock):
    calls = []

    def source():
        calls.append(1)
        return iris_pair(20.0, 20.0)

    result = make_engine(clock).calibrate_iris_size(source, focal_length_px=None)
    assert result.status is CalibrationStatus.PRECONDITION_UNMET
    assert result.kind is CalibrationKind.IRIS_SIZE
    assert calls == []
    assert clock.sleeps == 0


def test_iris_size_from_known_focal_length(clock):
    result = make_engine(clock).calibrate_iris_size(
        constant_source(24.0, 24.0), focal_length_px=600.0
    )
    assert result.ok
    assert result.value == pytest.approx(24.0 * 30.0 / 600.0)


def test_two_stage_calibration_is_consistent(clock):
    engine = make_engine(clock)
    focal = engine.calibrate_focal_length(constant_source(21.0, 21.0), 1.17).value
    iris = engine.calibrate_iris_size(constant_source(21.0, 21.0), focal).value
    assert iris == pytest.approx(1.17)


def test_progress_reports_accepted_count(clock):
    seen = []
    make_engine(clock).calibrate_focal_length(
        constant_source(20.0, 20.0), 1.17, on_progress=seen.append
    )
    assert seen == list(range(1, 21))


def test_engine_profiles_apply_when_none_given(clock):
    engine = make_engine(
        clock,
        focal_profile=CalibrationProfile(duration_s=3.0, sample_cap=12),
        iris_profile=CalibrationProfile(duration_s=2.0, sample_cap=15),
    )
    assert engine.profile(CalibrationKind.FOCAL_LENGTH).sample_cap == 12

    focal = engine.calibrate_focal_length(constant_source(20.0, 20.0), iris_diameter_cm=1.17)
    assert focal.accepted_samples == 12
    iris = engine.calibrate_iris_size(constant_source(20.0, 20.0), focal.value)
    assert iris.accepted_samples == 15
