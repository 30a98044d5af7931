"""Tests for the fixed-timestep driver."""

import pytest

from winter_arcade.driver import FIXED_DT, MAX_FRAME_DELTA, FixedStepDriver


def _recording_driver(fixed_dt: float = 0.125, max_frame: float = 0.5):
    steps: list[float] = []
    return FixedStepDriver(steps.append, fixed_dt=fixed_dt, max_frame=max_frame), steps


def test_defaults():
    driver = FixedStepDriver(lambda dt: None)
    assert driver.fixed_dt == FIXED_DT == pytest.approx(1 / 120)
    assert driver.max_frame == MAX_FRAME_DELTA == 0.25


def test_invalid_fixed_dt_rejected():
    with pytest.raises(ValueError):
        FixedStepDriver(lambda dt: None, fixed_dt=0)


def test_first_frame_only_records_time():
    driver, steps = _recording_driver()
    assert driver.frame(100.0) == 0
    assert steps == []


def test_frame_drains_whole_steps():
    driver, steps = _recording_driver()
    driver.frame(0.0)
    assert driver.frame(0.5) == 4
    assert steps == [0.125] * 4
    assert driver.accumulator == 0.0


def test_remainder_carries_to_next_frame():
    driver, steps = _recording_driver()
    driver.frame(0.0)
    assert driver.frame(0.1) == 0
    assert driver.frame(0.15) == 1
    assert len(steps) == 1
    assert driver.accumulator == pytest.approx(0.025)


def test_long_stall_is_clamped():
    """A 10 s stall only feeds max_frame worth of steps."""
    driver, steps = _recording_driver(fixed_dt=0.125, max_frame=0.25)
    driver.frame(0.0)
    assert driver.frame(10.0) == 2
    assert len(steps) == 2


def test_time_going_backwards_adds_nothing():
    driver, steps = _recording_driver()
    driver.frame(5.0)
    assert driver.frame(4.0) == 0
    # the new baseline is the later call
    assert driver.frame(4.25) == 2
    assert len(steps) == 2


def test_steps_run_counts_total():
    driver, _ = _recording_driver()
    driver.frame(0.0)
    driver.frame(0.25)
    driver.frame(0.5)
    assert driver.steps_run == 4


def test_reset_forgets_baseline():
    driver, steps = _recording_driver()
    driver.frame(0.0)
    driver.frame(0.1)
    driver.reset()
    assert driver.accumulator == 0.0
    assert driver.frame(50.0) == 0
    assert steps == []
