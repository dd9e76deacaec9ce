from __future__ import annotations

from datetime import timedelta

import pytest

from scopehealth.core.analyzer import analyze
from scopehealth.core.models import Trend
from scopehealth.core.trend import analyze_trend, compute_trends
from tests.helpers.clock import NOW


def test_short_series_is_stable():
    assert analyze_trend([10.0, 50.0], 99.0) == Trend.STABLE


def test_fluctuation_wins_over_direction():
    # std is well above 20% of the mean
    assert analyze_trend([10, 40, 5, 50, 8], 10) == Trend.FLUCTUATING


def test_rising_and_falling():
    assert analyze_trend([20, 20, 22, 23, 24], 24) == Trend.RISING
    assert analyze_trend([24, 23, 22, 20, 20], 20) == Trend.FALLING


def test_small_change_is_stable():
    assert analyze_trend([20, 20, 20.2, 20.3, 20.1], 20) == Trend.STABLE


def test_lower_is_better_metrics_report_improving_or_degrading():
    assert analyze_trend([1.0, 1.0, 1.2, 1.3, 1.3], 1.3, lower_is_better=True) == Trend.DEGRADING
    assert analyze_trend([1.3, 1.3, 1.2, 1.0, 1.0], 1.0, lower_is_better=True) == Trend.IMPROVING


def test_negative_mean_is_not_fluctuating_by_sign():
    # camera sensor held at about -10 C
    assert analyze_trend([-10.0, -10.1, -9.9, -10.0, -10.05], -10.0) == Trend.STABLE


def test_all_zero_series_is_stable():
    assert analyze_trend([0, 0, 0, 0, 0], 0) == Trend.STABLE


def test_current_value_does_not_enter_statistics():
    assert analyze_trend([20, 20, 20, 20, 20], 500) == Trend.STABLE


@pytest.mark.parametrize("prior", [0, 1, 4])
def test_compute_trends_needs_full_window(mount, make_sample, prior):
    history = []
    for i in range(prior):
        s = make_sample(timestamp=NOW + timedelta(minutes=i), temperature=10.0 + 10 * i)
        history.append(analyze(mount, s, history, [], s.timestamp))

    trends = compute_trends(history, make_sample(temperature=90))

    assert trends.temperature == Trend.STABLE
    assert trends.power == Trend.STABLE


def test_compute_trends_uses_last_five_records(mount, make_sample):
    history = []
    temps = [35.0, 35.0, 20.0, 20.0, 21.0, 22.0, 23.0]
    for i, t in enumerate(temps):
        s = make_sample(timestamp=NOW + timedelta(minutes=i), temperature=t)
        history.append(analyze(mount, s, list(history), [], s.timestamp))

    # window is [20, 20, 21, 22, 23]: rising, and the earlier 35s are ignored
    trends = compute_trends(history, make_sample(temperature=23))
    assert trends.temperature == Trend.RISING
    assert trends.accuracy == Trend.STABLE
