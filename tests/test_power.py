import numpy as np
import pytest
from wsn_sim.config import TICKS_PER_HOUR, TICKS_PER_SECOND
from wsn_sim.power import (PowerLog, PowerEvent, BatteryProfile, project_lifetime_h,
                           lifetime_breakdown)
from wsn_sim.sim_env import ConfigurationError


def test_empty_log_uses_no_power(clock):
    log = PowerLog(clock)
    assert log.get_power_usage_avg(0, 100) == 0.0
    np.testing.assert_array_equal(log.get_power_usage(0, 4), np.zeros(4))


def test_events_are_appended_in_order(clock):
    log = PowerLog(clock)
    log.register_drain(5.0)
    clock.t = 3
    log.remove_drain(5.0)
    assert log.events == (PowerEvent(5.0, 0), PowerEvent(-5.0, 3))


def test_register_then_remove_returns_to_zero(clock):
    log = PowerLog(clock)
    clock.t = 2
    log.register_drain(5.0)
    clock.t = 4
    log.remove_drain(5.0)
    np.testing.assert_array_equal(log.get_power_usage(0, 8), [0, 0, 5, 5, 0, 0, 0, 0])


def test_later_events_do_not_change_past_windows(clock):
    log = PowerLog(clock)
    log.register_drain(2.0)
    clock.t = 3
    log.register_drain(1.5)
    clock.t = 5
    before = log.get_power_usage(0, 5)
    avg_before = log.get_power_usage_avg(0, 5)

    clock.t = 6
    log.register_drain(7.0)

    np.testing.assert_array_equal(log.get_power_usage(0, 5), before)
    assert log.get_power_usage_avg(0, 5) == avg_before


def test_sample_interval(clock):
    log = PowerLog(clock)
    log.register_drain(1.0)
    assert log.get_power_usage(0, 10, sample_interval=5).shape == (2,)


def test_constant_drain_for_one_hour_is_its_current_in_mAh(clock):
    log = PowerLog(clock)
    log.register_drain(10.0)
    assert log.get_power_usage_avg(0, 3600 * TICKS_PER_SECOND) == pytest.approx(10.0)
    assert log.get_power_usage_avg(0, 2 * TICKS_PER_HOUR) == pytest.approx(20.0)


def test_window_can_start_after_stabilization(clock):
    log = PowerLog(clock)
    log.register_drain(100.0)
    clock.t = TICKS_PER_HOUR
    log.remove_drain(90.0)
    assert log.get_power_usage_avg(TICKS_PER_HOUR, 2 * TICKS_PER_HOUR) == pytest.approx(10.0)


def test_peukert_weights_bursts(clock):
    log = PowerLog(clock)
    clock.t = 1
    log.register_drain(20.0)
    plain = log.get_power_usage_avg(0, 2, peukert=1.0)
    weighted = log.get_power_usage_avg(0, 2, peukert=1.3)
    assert plain == pytest.approx(10.0 * 2 / TICKS_PER_HOUR)
    assert weighted > plain


def test_peukert_leaves_constant_draw_unchanged(clock):
    log = PowerLog(clock)
    log.register_drain(10.0)
    assert log.get_power_usage_avg(0, TICKS_PER_HOUR, peukert=1.15) == pytest.approx(10.0)


def test_empty_or_inverted_window(clock):
    log = PowerLog(clock)
    log.register_drain(3.0)
    assert log.get_power_usage_avg(10, 10) == 0.0
    assert log.get_power_usage_avg(10, 5) == 0.0


def test_imbalanced_removal_is_clipped(clock):
    log = PowerLog(clock)
    log.remove_drain(4.0)
    assert log.get_power_usage_avg(0, 10, peukert=1.15) == 0.0


def test_lifetime_at_nameplate_draw_is_rated_time():
    battery = BatteryProfile('test', 2500.0, 250.0)
    hours = project_lifetime_h(2500.0 / 250.0, battery, peukert=1.15)
    assert hours == pytest.approx(250.0)


def test_higher_draw_dies_sooner():
    battery = BatteryProfile('test', 240.0, 1263.0)
    assert project_lifetime_h(1.0, battery) < project_lifetime_h(0.1, battery)


@pytest.mark.parametrize('draw', [0.0, -1.0, None, float('nan')])
def test_no_projection_without_positive_draw(draw):
    assert project_lifetime_h(draw, BatteryProfile('test', 240.0, 1263.0)) is None


@pytest.mark.parametrize('hours', [0, 23, 24, 8759, 8760, 123456.7])
def test_lifetime_breakdown_round_trips(hours):
    lifetime = lifetime_breakdown(hours)
    assert lifetime.total_hours == int(hours)
    assert 0 <= lifetime.days < 365
    assert 0 <= lifetime.hours < 24


def test_first_death_round_trips_through_breakdown():
    battery = BatteryProfile('test', 2500.0, 250.0)
    hours = project_lifetime_h(0.05, battery)
    b = lifetime_breakdown(hours)
    assert b.years * 365 * 24 + b.days * 24 + b.hours == int(hours)
    assert str(b) == f"{b.years} years, {b.days} days and {b.hours} hours"


def test_battery_profile_validation():
    with pytest.raises(ConfigurationError):
        BatteryProfile('broken', 0.0, 10.0)
    preset = BatteryProfile.from_config({'name': 'coin', 'capacity_mAh': 240.0, 'drainage_time_h': 1263.0})
    assert preset.capacity_mAh == 240.0
