"""
Test Suite for Pearson correlation over metric series

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import math
import random
from datetime import timedelta

import pytest

from conftest import T0
from observatory.temporal.correlation import correlate_series, pearson
from observatory.temporal.series import DataPoint, TimeSeries


def _series(name, values):
    ts = TimeSeries(name)
    for i, v in enumerate(values):
        ts.add_point(DataPoint(timestamp=T0 + timedelta(seconds=i), value=float(v)))
    return ts


def test_pearson_perfect_positive_and_negative():
    a = list(range(10))
    assert pearson(a, [2 * x for x in a]) == pytest.approx(1.0, abs=0.01)
    assert pearson(a, [5 - x for x in a]) == pytest.approx(-1.0, abs=0.01)


def test_pearson_zero_variance_is_zero():
    assert pearson([3, 3, 3], [1, 2, 3]) == 0.0
    assert pearson([], []) == 0.0


def test_pearson_truncates_to_shorter_input():
    assert pearson([1, 2, 3, 100], [1, 2, 3]) == pytest.approx(1.0)


def test_pearson_never_nan():
    assert pearson([1.0, float("nan"), 3.0], [1.0, 2.0, 3.0]) == 0.0


def test_pearson_bounded_for_random_inputs():
    rng = random.Random(7)
    for _ in range(50):
        n = rng.randint(2, 30)
        a = [rng.uniform(-1e6, 1e6) for _ in range(n)]
        b = [rng.uniform(-1e-3, 1e-3) for _ in range(n)]
        c = pearson(a, b)
        assert not math.isnan(c)
        assert -1.0 <= c <= 1.0


def test_correlate_series_window_and_sample_size():
    a = _series("a", range(10))
    b = _series("b", [2 * x for x in range(10)])
    corr = correlate_series(a, b, T0, T0 + timedelta(seconds=9))
    assert corr.metric_a == "a"
    assert corr.metric_b == "b"
    assert corr.sample_size == 10
    assert corr.coefficient == pytest.approx(1.0, abs=0.01)

    narrow = correlate_series(a, b, T0 + timedelta(seconds=2), T0 + timedelta(seconds=4))
    assert narrow.sample_size == 3
    assert narrow.to_dict()["start_time"] == (T0 + timedelta(seconds=2)).isoformat()


def test_correlate_series_undersampled_returns_none():
    a = _series("a", [1])
    b = _series("b", [1, 2, 3])
    assert correlate_series(a, b, T0, T0 + timedelta(seconds=5)) is None
    # a floor below two samples is raised to two
    assert correlate_series(a, b, T0, T0 + timedelta(seconds=5), min_samples=0) is None
    assert correlate_series(b, b, T0, T0 + timedelta(seconds=5), min_samples=5) is None
