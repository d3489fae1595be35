import logging

import numpy as np
import pytest

from mipmap.series import InvariantViolation, Series


def test_series_is_read_only_copy():
    t = np.arange(5, dtype=np.float64)
    x = np.array([3.0, 1.0, 4.0, 1.0, 5.0])
    series = Series.from_arrays(t, x, handle="rpm")
    x[0] = 100.0
    assert series.x[0] == 3.0
    assert not series.t.flags.writeable
    assert not series.x.flags.writeable
    assert len(series) == 5
    assert series.time_extent == (0.0, 4.0)


def test_time_going_backwards_is_rejected():
    with pytest.raises(InvariantViolation, match="backwards at sample 2"):
        Series.from_arrays([0.0, 1.0, 0.5, 2.0], [1, 2, 3, 4])


def test_unsigned_time_going_backwards_is_rejected():
    t = np.array([5, 3], dtype=np.uint64)
    with pytest.raises(InvariantViolation):
        Series.from_arrays(t, [1.0, 2.0])


def test_ties_in_time_are_allowed():
    series = Series.from_arrays([0, 1, 1, 2], [1.0, 2.0, 3.0, 4.0])
    assert len(series) == 4


def test_length_mismatch_and_shape_errors():
    with pytest.raises(InvariantViolation):
        Series.from_arrays([0, 1, 2], [1.0, 2.0])
    with pytest.raises(InvariantViolation):
        Series.from_arrays(np.zeros((2, 2)), np.zeros((2, 2)))
    with pytest.raises(InvariantViolation):
        Series.from_arrays(["a", "b"], [1.0, 2.0])


def test_nan_time_is_rejected():
    with pytest.raises(InvariantViolation, match="NaN"):
        Series.from_arrays([0.0, np.nan, 2.0], [1.0, 2.0, 3.0])


def test_nan_values_are_dropped(caplog):
    with caplog.at_level(logging.WARNING, logger="mipmap.series"):
        series = Series.from_arrays(
            [0.0, 1.0, 2.0, 3.0], [1.0, np.nan, np.inf, np.nan], handle="temp"
        )
    np.testing.assert_array_equal(series.t, [0.0, 2.0])
    np.testing.assert_array_equal(series.x, [1.0, np.inf])
    assert "Dropping 2 NaN sample(s)" in caplog.text


def test_empty_series():
    series = Series.from_arrays([], [])
    assert series.is_empty
    assert series.time_extent is None


def test_generated_handles_are_unique():
    a = Series.from_arrays([0], [1])
    b = Series.from_arrays([0], [1])
    assert a.handle != b.handle


class _Entry:
    def __init__(self, ts_ns, duty):
        self.ts_ns = ts_ns
        self.duty = duty


def test_from_entries_uses_extractors():
    entries = [_Entry(10, 0.5), _Entry(20, 0.25), _Entry(30, 0.75)]
    series = Series.from_entries(
        entries, lambda e: e.ts_ns, lambda e: e.duty, handle=("status", 1), name="duty"
    )
    np.testing.assert_array_equal(series.t, [10.0, 20.0, 30.0])
    np.testing.assert_array_equal(series.x, [0.5, 0.25, 0.75])
    assert series.handle == ("status", 1)
    assert series.name == "duty"


class _ListSource:
    def __init__(self, t, x):
        self._t = t
        self._x = x

    def timestamps(self):
        return iter(self._t)

    def values(self):
        return iter(self._x)


def test_from_source_reads_protocol_object():
    series = Series.from_source(_ListSource([0, 1, 2], [9, 8, 7]), handle="pid")
    np.testing.assert_array_equal(series.x, [9.0, 8.0, 7.0])
    assert series.handle == "pid"
