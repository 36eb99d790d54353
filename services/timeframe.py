"""
Ordering Settings Service

Reads and writes the ordering window and other key/value settings.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError

from constants import EVENT_TIMEFRAME_UPDATED, SETTING_END_TIME, SETTING_START_TIME
from models import Settings, db
from .audit import record_event
from .clock import OrderingWindow, parse_hhmm, resolve_window
from .gate import OrderRejected

logger = logging.getLogger(__name__)


class InvalidTimeframe(OrderRejected):
    """Start time must be before end time."""
    status_code = 400
    code = 'invalid_timeframe'


def get_setting(key, default=None):
    row = Settings.query.filter_by(key=key).first()
    if row is None or row.value in (None, ''):
        return default
    return row.value


def set_setting(key, value):
    """Insert or update a single setting row (not committed)."""
    row = Settings.query.filter_by(key=key).first()
    if row is None:
        row = Settings(key=key, value=value)
        db.session.add(row)
    else:
        row.value = value
    return row


def load_ordering_window() -> OrderingWindow:
    """
    Current ordering window from settings.

    Missing keys, bad values and storage errors all resolve to the
    default window.
    """
    try:
        rows = Settings.query.filter(Settings.key.in_([SETTING_START_TIME, SETTING_END_TIME])).all()
    except SQLAlchemyError:
        logger.exception("Could not read ordering window settings, using defaults")
        db.session.rollback()
        return resolve_window()

    values = {row.key: row.value for row in rows}
    return resolve_window(values.get(SETTING_START_TIME), values.get(SETTING_END_TIME))


def save_ordering_window(start, end, admin) -> OrderingWindow:
    """Validate and store a new window, logging a timeframe_updated event."""
    if not start or not end:
        raise InvalidTimeframe('Both start and end times are required')

    start_minutes = parse_hhmm(start)
    end_minutes = parse_hhmm(end)
    if start_minutes is None or end_minutes is None:
        raise InvalidTimeframe('Times must be in HH:MM format')
    if start_minutes >= end_minutes:
        raise InvalidTimeframe()

    window = OrderingWindow(start_minutes, end_minutes)
    set_setting(SETTING_START_TIME, window.start)
    set_setting(SETTING_END_TIME, window.end)
    record_event(EVENT_TIMEFRAME_UPDATED, admin.id, {'start_time': window.start, 'end_time': window.end})
    db.session.commit()

    logger.info("Ordering window set to %s-%s by user %s", window.start, window.end, admin.id)
    return window
