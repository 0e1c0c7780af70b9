import pytest

from ipdmeter.shared.timing import FpsCounter


def test_needs_two_ticks(clock):
    counter = FpsCounter(clock=clock)
    assert counter.fps == 0.0
    counter.tick()
    assert counter.fps == 0.0


def test_steady_rate(clock):
    counter = FpsCounter(clock=clock)
    for _ in range(31):
        counter.tick()
        clock.sleep(1 / 30)
    assert counter.fps == pytest.approx(30.0)


def test_window_forgets_old_ticks(clock):
    counter = FpsCounter(window=5, clock=clock)
    for _ in range(10):
        counter.tick()
        clock.sleep(1.0)
    for _ in range(5):
        counter.tick()
        clock.sleep(0.1)
    assert counter.fps == pytest.approx(10.0)


def test_reset(clock):
    counter = FpsCounter(clock=clock)
    counter.tick()
    clock.sleep(0.5)
    counter.tick()
    counter.reset()
    assert counter.fps == 0.0
