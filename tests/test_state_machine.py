import pytest

from ipdmeter.brain.state_machine import ModeError, ModeStateMachine
from ipdmeter.shared.types import CalibrationKind, SessionMode


def test_starts_idle():
    sm = ModeStateMachine()
    assert sm.mode is SessionMode.IDLE
    assert not sm.is_calibrating


def test_calibration_returns_to_previous_mode():
    sm = ModeStateMachine()
    sm.start_live()
    sm.begin_calibration(CalibrationKind.IRIS_SIZE)
    assert sm.mode is SessionMode.CALIBRATING_IRIS
    sm.end_calibration()
    assert sm.mode is SessionMode.LIVE

    sm.stop()
    sm.begin_calibration(CalibrationKind.FOCAL_LENGTH)
    assert sm.mode is SessionMode.CALIBRATING_FOCAL
    sm.end_calibration()
    assert sm.mode is SessionMode.IDLE


def test_nested_calibration_is_refused():
    sm = ModeStateMachine()
    sm.begin_calibration(CalibrationKind.FOCAL_LENGTH)
    with pytest.raises(ModeError):
        sm.begin_calibration(CalibrationKind.IRIS_SIZE)


def test_illegal_transitions_while_calibrating():
    sm = ModeStateMachine()
    sm.begin_calibration(CalibrationKind.FOCAL_LENGTH)
    with pytest.raises(ModeError):
        sm.start_live()
    with pytest.raises(ModeError):
        sm.stop()
    with pytest.raises(ModeError):
        sm.require_live_path()


def test_end_without_calibration_raises():
    with pytest.raises(ModeError):
        ModeStateMachine().end_calibration()


def test_mode_change_callback():
    sm = ModeStateMachine()
    changes = []
    sm.on_mode_change = lambda old, new: changes.append((old, new))

    sm.start_live()
    sm.start_live()
    sm.begin_calibration(CalibrationKind.FOCAL_LENGTH)
    sm.end_calibration()

    assert changes == [
        (SessionMode.IDLE, SessionMode.LIVE),
        (SessionMode.LIVE, SessionMode.CALIBRATING_FOCAL),
        (SessionMode.CALIBRATING_FOCAL, SessionMode.LIVE),
    ]
