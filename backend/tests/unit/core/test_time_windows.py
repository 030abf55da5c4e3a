"""Unit tests for wall-clock window helpers."""

from datetime import date, time

import pytest

from classbook.core.time_windows import (
    add_minutes,
    iter_days,
    parse_hhmm,
    window_to_minutes,
    windows_overlap,
)


class TestParseHHMM:
    @pytest.mark.parametrize(
        "value,expected",
        [("09:00", time(9, 0)), ("9:05", time(9, 5)), ("23:59", time(23, 59)), ("00:00", time(0, 0))],
    )
    def test_accepts_24_hour_times(self, value, expected):
        assert parse_hhmm(value) == expected

    @pytest.mark.parametrize("value", ["24:00", "12:60", "9am", "", "12:5", "12:00:00"])
    def test_rejects_malformed_times(self, value):
        with pytest.raises(ValueError):
            parse_hhmm(value)


class TestWindowArithmetic:
    def test_add_minutes_wraps_past_midnight(self):
        assert add_minutes(time(23, 30), 60) == time(0, 30)
        assert add_minutes(time(9, 0), 45) == time(9, 45)

    def test_wrapped_window_is_clamped_to_end_of_day(self):
        assert window_to_minutes(time(23, 30), time(0, 30)) == (23 * 60 + 30, 24 * 60)

    def test_touching_windows_do_not_overlap(self):
        assert not windows_overlap(time(9, 0), time(10, 0), time(10, 0), time(11, 0))
        assert not windows_overlap(time(10, 0), time(11, 0), time(9, 0), time(10, 0))

    def test_partial_and_nested_windows_overlap(self):
        assert windows_overlap(time(9, 0), time(10, 0), time(9, 30), time(10, 30))
        assert windows_overlap(time(9, 0), time(12, 0), time(10, 0), time(11, 0))

    def test_wrapped_window_overlaps_late_class(self):
        assert windows_overlap(time(23, 0), time(0, 30), time(23, 45), time(23, 55))


def test_iter_days_is_inclusive():
    days = list(iter_days(date(2030, 1, 30), date(2030, 2, 2)))
    assert days == [date(2030, 1, 30), date(2030, 1, 31), date(2030, 2, 1), date(2030, 2, 2)]
