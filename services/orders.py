"""
Order Service

Creates, updates and deletes Friday orders. Member mutations go through
the Order Gate; admin mutations skip the window and lock but keep the
one-order-per-Friday and notes rules.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError

from constants import (
    EVENT_ADMIN_ORDER_CREATED,
    EVENT_ADMIN_ORDER_DELETED,
    EVENT_ADMIN_ORDER_UPDATED,
    EVENT_ORDER_CREATED,
    EVENT_ORDER_UPDATED,
    EVENT_ORDERS_LOCKED,
    EVENT_ORDERS_UNLOCKED,
)
from models import MenuItem, Order, User, db
from utils.sanitizer import sanitize_phone
from .audit import record_event
from .clock import ORDERING_TZ, current_cycle_key, is_window_open
from .gate import (
    DuplicateOrder,
    GateState,
    OrderNotFound,
    OrderRejected,
    check_create,
    check_mutation,
    check_update,
    validate_notes,
)
from .timeframe import load_ordering_window

logger = logging.getLogger(__name__)


class InvalidMenuSelection(OrderRejected):
    """Please select both item and variant."""
    status_code = 400
    code = 'invalid_menu_selection'


class OrderingUnavailable(OrderRejected):
    """Orders can't be checked right now, please try again."""
    status_code = 503
    code = 'ordering_unavailable'


class UserNotFound(OrderRejected):
    """User not found."""
    status_code = 404
    code = 'user_not_found'


class NothingToLock(OrderRejected):
    """No orders to lock for this Friday."""
    status_code = 400
    code = 'no_orders'


def find_order(user_id, cycle_key):
    return Order.query.filter_by(user_id=user_id, friday_date=cycle_key).first()


def cycle_orders(cycle_key):
    return Order.query.filter_by(friday_date=cycle_key).order_by(Order.created_at, Order.id).all()


def is_cycle_locked(cycle_key):
    """A cycle is locked when any of its orders carries the lock flag."""
    return db.session.query(Order.id).filter_by(friday_date=cycle_key, locked=True).first() is not None


def read_gate_state(user, cycle_key, window_open):
    """
    Fetch the lock state and the user's existing order for the cycle.

    Storage failures mean the attempt is refused rather than guessed at.
    """
    try:
        locked = is_cycle_locked(cycle_key)
        existing = find_order(user.id, cycle_key)
    except SQLAlchemyError:
        logger.exception("Could not read order state for user %s on %s", user.id, cycle_key)
        db.session.rollback()
        raise OrderingUnavailable()
    return GateState(window_open, locked), existing


def validate_selection(item, variant):
    """Both parts must be chosen and match an active menu entry."""
    item = item.strip() if isinstance(item, str) else ''
    variant = variant.strip() if isinstance(variant, str) else ''
    if not item or not variant:
        raise InvalidMenuSelection()
    try:
        entry = MenuItem.query.filter_by(item=item, variant=variant, active=True).first()
    except SQLAlchemyError:
        logger.exception("Could not read the menu entry %s - %s", item, variant)
        db.session.rollback()
        raise OrderingUnavailable()
    if entry is None:
        raise InvalidMenuSelection(f'"{item} - {variant}" is not on the menu')
    return item, variant


def _update_phone(user, phone):
    if phone is None:
        return
    phone = sanitize_phone(phone)
    if phone and phone != user.phone:
        user.phone = phone


def _order_payload(order):
    return {
        'user_id': order.user_id,
        'friday_date': order.friday_date.isoformat(),
        'item': order.item,
        'variant': order.variant,
        'notes': order.notes,
    }


def _gate(user, now, tz):
    cycle_key = current_cycle_key(now, tz)
    window = load_ordering_window()
    state, existing = read_gate_state(user, cycle_key, is_window_open(now, window, tz))
    try:
        check_mutation(state)
    except OrderRejected as e:
        logger.info("Order attempt by user %s refused: %s", user.id, e.code)
        raise
    return cycle_key, existing


def create_order(user, item, variant, notes, now, tz=ORDERING_TZ, phone=None):
    """Place the member's order for the current cycle."""
    notes = validate_notes(notes)
    item, variant = validate_selection(item, variant)
    cycle_key, existing = _gate(user, now, tz)
    check_create(existing)

    order = Order(user_id=user.id, friday_date=cycle_key, item=item, variant=variant, notes=notes)
    db.session.add(order)
    _update_phone(user, phone)
    record_event(EVENT_ORDER_CREATED, user.id, _order_payload(order))
    db.session.commit()

    logger.info("Order %s created for user %s on %s", order.id, user.id, cycle_key)
    return order


def update_order(user, item, variant, notes, now, tz=ORDERING_TZ, phone=None):
    """Change the member's existing order for the current cycle."""
    notes = validate_notes(notes)
    item, variant = validate_selection(item, variant)
    cycle_key, existing = _gate(user, now, tz)
    check_update(existing, user.id, cycle_key)

    existing.item = item
    existing.variant = variant
    existing.notes = notes
    _update_phone(user, phone)
    record_event(EVENT_ORDER_UPDATED, user.id, {'order_id': existing.id, **_order_payload(existing)})
    db.session.commit()

    logger.info("Order %s updated by user %s", existing.id, user.id)
    return existing


def admin_create_order(admin, target_user_id, item, variant, notes, now, tz=ORDERING_TZ):
    """Create an order on behalf of a team member. New orders inherit the cycle lock."""
    notes = validate_notes(notes)
    item, variant = validate_selection(item, variant)
    try:
        target = db.session.get(User, int(target_user_id))
    except (TypeError, ValueError):
        target = None
    if target is None:
        raise UserNotFound()

    cycle_key = current_cycle_key(now, tz)
    if find_order(target.id, cycle_key) is not None:
        raise DuplicateOrder('This user already has an order for this Friday')

    order = Order(
        user_id=target.id,
        friday_date=cycle_key,
        item=item,
        variant=variant,
        notes=notes,
        locked=is_cycle_locked(cycle_key),
    )
    db.session.add(order)
    record_event(EVENT_ADMIN_ORDER_CREATED, admin.id, {'target_user_id': target.id, **_order_payload(order)})
    db.session.commit()

    logger.info("Admin %s created order %s for user %s", admin.id, order.id, target.id)
    return order


def admin_update_order(admin, order_id, item, variant, notes):
    order = db.session.get(Order, order_id)
    if order is None:
        raise OrderNotFound()
    notes = validate_notes(notes)
    item, variant = validate_selection(item, variant)

    order.item = item
    order.variant = variant
    order.notes = notes
    record_event(EVENT_ADMIN_ORDER_UPDATED, admin.id, {
        'order_id': order.id,
        'target_user_id': order.user_id,
        **_order_payload(order),
    })
    db.session.commit()
    return order


def admin_delete_order(admin, order_id):
    order = db.session.get(Order, order_id)
    if order is None:
        raise OrderNotFound()

    record_event(EVENT_ADMIN_ORDER_DELETED, admin.id, {
        'order_id': order.id,
        'target_user_id': order.user_id,
        'item': order.item,
        'variant': order.variant,
    })
    db.session.delete(order)
    db.session.commit()
    logger.info("Admin %s deleted order %s", admin.id, order_id)


def set_cycle_lock(cycle_key, locked, admin):
    """Lock or unlock every order of the cycle in one update."""
    if locked and not Order.query.filter_by(friday_date=cycle_key).count():
        raise NothingToLock()
    count = Order.query.filter_by(friday_date=cycle_key).update({'locked': locked}, synchronize_session='fetch')
    record_event(EVENT_ORDERS_LOCKED if locked else EVENT_ORDERS_UNLOCKED, admin.id, {
        'friday_date': cycle_key.isoformat(),
        'order_count': count,
    })
    db.session.commit()

    logger.info("Orders for %s %s by admin %s (%d orders)",
                cycle_key, 'locked' if locked else 'unlocked', admin.id, count)
    return count
