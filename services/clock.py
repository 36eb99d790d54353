"""
Recurrence Clock

Pure date arithmetic for the weekly ordering cycle: which Friday the
current cycle belongs to, whether the ordering window is open right now,
and how long until it opens next.

Every function takes ``now`` and the window explicitly; nothing here
reads settings or keeps state. Differences are computed on wall-clock
time in the ordering timezone, so daylight saving transitions can skew
a countdown by an hour.
"""

import logging
from datetime import datetime, time, timedelta
from typing import NamedTuple, Optional
from zoneinfo import ZoneInfo

from constants import DEFAULT_END_TIME, DEFAULT_START_TIME, DEFAULT_TIMEZONE, TARGET_WEEKDAY

logger = logging.getLogger(__name__)

ORDERING_TZ = ZoneInfo(DEFAULT_TIMEZONE)


def parse_hhmm(value) -> Optional[int]:
    """
    Parse an ``HH:MM`` string into minutes since midnight.

    Returns None for anything that isn't a valid wall-clock time.
    """
    if not isinstance(value, str):
        return None
    parts = value.strip().split(':')
    if len(parts) != 2:
        return None
    hours, minutes = parts
    if not (hours.isdigit() and minutes.isdigit()):
        return None
    hours, minutes = int(hours), int(minutes)
    if hours > 23 or minutes > 59:
        return None
    return hours * 60 + minutes


def format_hhmm(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


class OrderingWindow(NamedTuple):
    """Daily window on the ordering day, as minutes since midnight (inclusive)."""
    start_minutes: int
    end_minutes: int

    @property
    def start(self) -> str:
        return format_hhmm(self.start_minutes)

    @property
    def end(self) -> str:
        return format_hhmm(self.end_minutes)

    @property
    def start_time(self) -> time:
        return time(self.start_minutes // 60, self.start_minutes % 60)

    def contains(self, minute_of_day: int) -> bool:
        return self.start_minutes <= minute_of_day <= self.end_minutes


DEFAULT_WINDOW = OrderingWindow(parse_hhmm(DEFAULT_START_TIME), parse_hhmm(DEFAULT_END_TIME))


def resolve_window(start_value=None, end_value=None) -> OrderingWindow:
    """
    Build an OrderingWindow from raw setting strings.

    Missing or malformed values fall back to the defaults one key at a
    time. If the result doesn't satisfy start < end, the whole default
    window is used instead. Never raises.
    """
    start = parse_hhmm(start_value)
    end = parse_hhmm(end_value)

    if start is None:
        if start_value is not None:
            logger.warning("Malformed ordering start time %r, using %s", start_value, DEFAULT_START_TIME)
        start = DEFAULT_WINDOW.start_minutes
    if end is None:
        if end_value is not None:
            logger.warning("Malformed ordering end time %r, using %s", end_value, DEFAULT_END_TIME)
        end = DEFAULT_WINDOW.end_minutes

    if start >= end:
        logger.warning(
            "Ordering window %s-%s is empty, using %s-%s",
            format_hhmm(start), format_hhmm(end), DEFAULT_START_TIME, DEFAULT_END_TIME,
        )
        return DEFAULT_WINDOW
    return OrderingWindow(start, end)


class Countdown(NamedTuple):
    days: int
    hours: int
    minutes: int

    def label(self) -> str:
        """Short display form: '2d 3h 15m', '3h 15m' or '15m'."""
        if self.days > 0:
            return f"{self.days}d {self.hours}h {self.minutes}m"
        if self.hours > 0:
            return f"{self.hours}h {self.minutes}m"
        return f"{self.minutes}m"

    def to_dict(self):
        return {'days': self.days, 'hours': self.hours, 'minutes': self.minutes}


def current_time(tz=ORDERING_TZ) -> datetime:
    """The real clock, in the ordering timezone."""
    return datetime.now(tz)


def to_local(now: datetime, tz=ORDERING_TZ) -> datetime:
    """Convert to the ordering timezone. Naive values are taken as local wall-clock time."""
    if now.tzinfo is None:
        return now.replace(tzinfo=tz)
    return now.astimezone(tz)


def minute_of_day(moment: datetime) -> int:
    return moment.hour * 60 + moment.minute


def days_until_target(weekday: int) -> int:
    return (TARGET_WEEKDAY - weekday) % 7


def current_cycle_key(now: datetime, tz=ORDERING_TZ):
    """
    Date of the Friday the current cycle belongs to.

    On a Friday this is today; on any other day it is the coming Friday.
    """
    local = to_local(now, tz)
    return local.date() + timedelta(days=days_until_target(local.weekday()))


def is_window_open(now: datetime, window: OrderingWindow = DEFAULT_WINDOW, tz=ORDERING_TZ) -> bool:
    """True on the ordering day between window start and end, both minutes included."""
    local = to_local(now, tz)
    if local.weekday() != TARGET_WEEKDAY:
        return False
    return window.contains(minute_of_day(local))


def next_window_start(now: datetime, window: OrderingWindow = DEFAULT_WINDOW, tz=ORDERING_TZ) -> datetime:
    """
    Wall-clock moment the next window opens.

    On the ordering day before the start that is today; once the start
    has been reached (inside the window or after it) it is a week later.
    """
    local = to_local(now, tz)
    if local.weekday() == TARGET_WEEKDAY:
        days_ahead = 0 if minute_of_day(local) < window.start_minutes else 7
    else:
        days_ahead = days_until_target(local.weekday())
    target_date = local.date() + timedelta(days=days_ahead)
    return datetime.combine(target_date, window.start_time, tzinfo=local.tzinfo)


def time_until_next_window(now: datetime, window: OrderingWindow = DEFAULT_WINDOW, tz=ORDERING_TZ) -> Countdown:
    local = to_local(now, tz)
    target = next_window_start(local, window, tz)

    # Wall-clock difference; both sides share the same tzinfo object
    remaining = int((target.replace(tzinfo=None) - local.replace(tzinfo=None)).total_seconds())
    remaining = max(remaining, 0)

    days, remaining = divmod(remaining, 86400)
    hours, remaining = divmod(remaining, 3600)
    minutes = remaining // 60
    return Countdown(days, hours, minutes)
