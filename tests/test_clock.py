"""Tests for the weekly cycle and ordering window calculations."""

import calendar
from datetime import datetime, timedelta, timezone

import pytest

from services.clock import (
    DEFAULT_WINDOW,
    Countdown,
    OrderingWindow,
    current_cycle_key,
    is_window_open,
    next_window_start,
    parse_hhmm,
    resolve_window,
    time_until_next_window,
)
from tests.conftest import FRIDAY, TIRANE, at

MONDAY = FRIDAY - timedelta(days=4)
SATURDAY = FRIDAY + timedelta(days=1)


class TestCurrentCycleKey:
    def test_friday_is_its_own_cycle(self):
        assert current_cycle_key(at(FRIDAY, 0, 0)) == FRIDAY
        assert current_cycle_key(at(FRIDAY, 23, 59)) == FRIDAY

    def test_weekday_points_to_coming_friday(self):
        assert current_cycle_key(at(MONDAY, 12)) == FRIDAY
        assert current_cycle_key(at(FRIDAY - timedelta(days=1), 23, 59)) == FRIDAY

    def test_weekend_points_to_next_week(self):
        assert current_cycle_key(at(SATURDAY, 0, 1)) == FRIDAY + timedelta(days=7)
        assert current_cycle_key(at(SATURDAY + timedelta(days=1), 18)) == FRIDAY + timedelta(days=7)

    def test_converts_into_ordering_timezone(self):
        # 22:30 UTC Thursday is already 00:30 Friday in Tirane (UTC+2 in June)
        utc_moment = datetime(2026, 6, 4, 22, 30, tzinfo=timezone.utc)
        assert current_cycle_key(utc_moment, TIRANE) == FRIDAY

    def test_naive_datetime_is_local_time(self):
        assert current_cycle_key(datetime(2026, 6, 5, 8, 0)) == FRIDAY

    def test_always_a_friday_never_in_the_past(self):
        moment = at(MONDAY, 0)
        for _ in range(14 * 24):
            key = current_cycle_key(moment)
            assert key.weekday() == calendar.FRIDAY
            assert key >= moment.date()
            if moment.weekday() != calendar.FRIDAY:
                assert key > moment.date()
            moment += timedelta(hours=1, minutes=7)


class TestIsWindowOpen:
    @pytest.mark.parametrize('hour, minute, expected', [
        (8, 59, False),
        (9, 0, True),
        (10, 0, True),
        (12, 30, True),
        (12, 31, False),
    ])
    def test_bounds_are_inclusive(self, hour, minute, expected):
        window = resolve_window('09:00', '12:30')
        assert is_window_open(at(FRIDAY, hour, minute), window) is expected

    def test_closing_minute_seconds_still_open(self):
        assert is_window_open(at(FRIDAY, 12, 30, 59), DEFAULT_WINDOW)

    @pytest.mark.parametrize('offset', [1, 2, 3, 4, 5, 6])
    def test_closed_on_other_days(self, offset):
        day = FRIDAY + timedelta(days=offset)
        whole_day = OrderingWindow(0, 23 * 60 + 59)
        for hour in range(24):
            assert not is_window_open(at(day, hour, 15), whole_day)

    def test_uses_ordering_timezone(self):
        # 07:00 UTC is 09:00 in Tirane
        assert is_window_open(datetime(2026, 6, 5, 7, 0, tzinfo=timezone.utc), DEFAULT_WINDOW, TIRANE)
        assert not is_window_open(datetime(2026, 6, 5, 6, 59, tzinfo=timezone.utc), DEFAULT_WINDOW, TIRANE)


class TestTimeUntilNextWindow:
    def test_before_start_on_friday(self):
        assert time_until_next_window(at(FRIDAY, 8, 0), DEFAULT_WINDOW) == Countdown(0, 1, 0)

    def test_after_window_waits_a_week(self):
        countdown = time_until_next_window(at(FRIDAY, 13, 0), DEFAULT_WINDOW)
        assert countdown == Countdown(6, 20, 0)
        assert next_window_start(at(FRIDAY, 13, 0), DEFAULT_WINDOW) == at(FRIDAY + timedelta(days=7), 9, 0)

    def test_inside_window_points_to_next_week(self):
        assert time_until_next_window(at(FRIDAY, 9, 0), DEFAULT_WINDOW) == Countdown(7, 0, 0)
        assert time_until_next_window(at(FRIDAY, 10, 0), DEFAULT_WINDOW) == Countdown(6, 23, 0)

    def test_midweek(self):
        assert time_until_next_window(at(MONDAY, 9, 0), DEFAULT_WINDOW) == Countdown(4, 0, 0)
        assert time_until_next_window(at(SATURDAY, 0, 0), DEFAULT_WINDOW) == Countdown(6, 9, 0)

    def test_units_are_floored(self):
        assert time_until_next_window(at(FRIDAY, 8, 59, 30), DEFAULT_WINDOW) == Countdown(0, 0, 0)
        assert time_until_next_window(at(FRIDAY, 7, 15, 1), DEFAULT_WINDOW) == Countdown(0, 1, 44)

    def test_follows_configured_start(self):
        window = resolve_window('11:15', '13:00')
        assert time_until_next_window(at(FRIDAY, 10, 0), window) == Countdown(0, 1, 15)


class TestCountdownLabel:
    def test_label_drops_leading_zero_units(self):
        assert Countdown(2, 3, 15).label() == '2d 3h 15m'
        assert Countdown(0, 3, 15).label() == '3h 15m'
        assert Countdown(0, 0, 15).label() == '15m'
        assert Countdown(0, 0, 0).label() == '0m'


class TestResolveWindow:
    def test_parse_hhmm(self):
        assert parse_hhmm('09:00') == 540
        assert parse_hhmm('12:30') == 750
        assert parse_hhmm(' 7:05 ') == 425
        for bad in (None, '', '9', '24:00', '12:60', 'ab:cd', '-1:30', '12:30:00', 930):
            assert parse_hhmm(bad) is None

    def test_missing_values_use_defaults(self):
        window = resolve_window()
        assert (window.start, window.end) == ('09:00', '12:30')

    def test_malformed_values_use_defaults(self):
        assert resolve_window('soon', '25:00') == DEFAULT_WINDOW

    def test_each_key_falls_back_on_its_own(self):
        assert resolve_window('10:00', None) == OrderingWindow(600, 750)
        assert resolve_window(None, '11:00') == OrderingWindow(540, 660)

    def test_empty_window_uses_defaults(self):
        assert resolve_window('12:00', '12:00') == DEFAULT_WINDOW
        assert resolve_window('13:00', '10:00') == DEFAULT_WINDOW

    def test_configured_window(self):
        window = resolve_window('08:45', '11:00')
        assert (window.start, window.end) == ('08:45', '11:00')
