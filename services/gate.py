"""
Order Gate

Decides whether a member may create or change their order for the
current cycle, and says why not when they can't.

Nothing is stored between calls: the caller reads the window state and
the cycle lock fresh for every attempt and hands them in.
"""

import logging
from typing import NamedTuple

from constants import NOTES_MAX_LENGTH

logger = logging.getLogger(__name__)


class OrderRejected(Exception):
    """Base class for refused order attempts. Carries the HTTP status and a short error code."""
    status_code = 400
    code = 'order_rejected'

    def __init__(self, message=None):
        super().__init__(message or self.__doc__.strip())

    @property
    def message(self):
        return str(self)


class WindowClosed(OrderRejected):
    """The ordering window is closed."""
    status_code = 403
    code = 'window_closed'


class CycleLocked(OrderRejected):
    """Orders for this Friday have been locked by an administrator."""
    status_code = 403
    code = 'cycle_locked'


class DuplicateOrder(OrderRejected):
    """An order already exists for this Friday."""
    status_code = 409
    code = 'duplicate_order'


class NotesTooLong(OrderRejected):
    """Notes must be 100 characters or less."""
    status_code = 400
    code = 'notes_too_long'


class OrderNotFound(OrderRejected):
    """No order to update for this Friday."""
    status_code = 404
    code = 'order_not_found'


class GateState(NamedTuple):
    window_open: bool
    cycle_locked: bool

    @property
    def can_mutate(self) -> bool:
        return self.window_open and not self.cycle_locked


def check_mutation(state: GateState) -> None:
    """Raise unless the state allows a mutation. The lock wins over an open window."""
    if state.cycle_locked:
        raise CycleLocked()
    if not state.window_open:
        raise WindowClosed()


def validate_notes(notes):
    """
    Enforce the notes length cap on the raw input.

    Returns the trimmed notes, or None when they're empty.
    """
    if notes is None:
        return None
    if not isinstance(notes, str):
        notes = str(notes)
    if len(notes) > NOTES_MAX_LENGTH:
        raise NotesTooLong()
    return notes.strip() or None


def check_create(existing) -> None:
    if existing is not None:
        logger.info("Rejected duplicate order for user %s on %s", existing.user_id, existing.friday_date)
        raise DuplicateOrder()


def check_update(order, user_id, cycle_key) -> None:
    """Only the caller's own order of the current cycle may be changed."""
    if order is None or order.user_id != user_id or order.friday_date != cycle_key:
        raise OrderNotFound()
