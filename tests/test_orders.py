"""Tests for order creation, updates, locking and the settings they depend on."""

from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from models import Event, MenuItem, Order, Settings, db
from services import orders as order_service
from services.gate import CycleLocked, DuplicateOrder, NotesTooLong, OrderNotFound, WindowClosed
from services.orders import (
    InvalidMenuSelection,
    NothingToLock,
    OrderingUnavailable,
    UserNotFound,
    admin_create_order,
    admin_delete_order,
    admin_update_order,
    create_order,
    is_cycle_locked,
    set_cycle_lock,
    update_order,
)
from services.timeframe import InvalidTimeframe, load_ordering_window, save_ordering_window
from tests.conftest import FRIDAY, TIRANE, at

OPEN = at(FRIDAY, 10, 0)


def event_types():
    return [event.type for event in Event.query.order_by(Event.id).all()]


class TestCreateOrder:
    def test_creates_order_and_audit_event(self, member, menu):
        order = create_order(member, 'Burger', 'Beef', ' extra sauce ', OPEN, TIRANE)

        assert order.friday_date == FRIDAY
        assert order.notes == 'extra sauce'
        assert order.locked is False
        event = Event.query.one()
        assert event.type == 'order_created'
        assert event.user_id == member.id
        assert event.payload['friday_date'] == '2026-06-05'
        assert event.payload['item'] == 'Burger'

    def test_second_create_rejected_but_update_succeeds(self, member, menu):
        create_order(member, 'Burger', 'Beef', None, OPEN, TIRANE)

        with pytest.raises(DuplicateOrder):
            create_order(member, 'Salad', 'Greek', None, OPEN, TIRANE)
        db.session.rollback()

        updated = update_order(member, 'Salad', 'Greek', 'no feta', OPEN, TIRANE)
        assert Order.query.count() == 1
        assert (updated.item, updated.variant, updated.notes) == ('Salad', 'Greek', 'no feta')
        assert event_types() == ['order_created', 'order_updated']
        assert Event.query.filter_by(type='order_updated').one().payload['order_id'] == updated.id

    def test_window_closed(self, member, menu):
        with pytest.raises(WindowClosed):
            create_order(member, 'Burger', 'Beef', None, at(FRIDAY, 12, 31), TIRANE)
        with pytest.raises(WindowClosed):
            create_order(member, 'Burger', 'Beef', None, at(FRIDAY - timedelta(days=1), 10), TIRANE)
        assert Order.query.count() == 0

    def test_closing_minute_accepted(self, member, menu):
        order = create_order(member, 'Burger', 'Beef', None, at(FRIDAY, 12, 30), TIRANE)
        assert order.id is not None

    def test_locked_cycle(self, member, other_member, menu, place):
        place(other_member, locked=True)
        with pytest.raises(CycleLocked):
            create_order(member, 'Burger', 'Beef', None, OPEN, TIRANE)

    def test_long_notes_rejected_before_storage(self, member, menu, monkeypatch):
        calls = []
        monkeypatch.setattr(order_service, 'read_gate_state', lambda *args: calls.append(args))
        monkeypatch.setattr(order_service, 'load_ordering_window', lambda: calls.append('window'))

        with pytest.raises(NotesTooLong):
            create_order(member, 'Burger', 'Beef', 'x' * 101, OPEN, TIRANE)
        assert calls == []
        assert Order.query.count() == 0

    def test_hundred_character_notes_accepted(self, member, menu):
        order = create_order(member, 'Burger', 'Beef', 'x' * 100, OPEN, TIRANE)
        assert len(order.notes) == 100

    def test_menu_selection_required(self, member, menu):
        with pytest.raises(InvalidMenuSelection):
            create_order(member, 'Burger', '', None, OPEN, TIRANE)
        with pytest.raises(InvalidMenuSelection):
            create_order(member, 'Pizza', 'Margherita', None, OPEN, TIRANE)

    def test_storage_failure_refuses_mutation(self, member, menu, monkeypatch):
        def broken(cycle_key):
            raise OperationalError('SELECT', {}, Exception('database is down'))
        monkeypatch.setattr(order_service, 'is_cycle_locked', broken)

        with pytest.raises(OrderingUnavailable) as exc:
            create_order(member, 'Burger', 'Beef', None, OPEN, TIRANE)
        assert exc.value.status_code == 503

    def test_menu_storage_failure_refuses_mutation(self, member, menu, monkeypatch):
        class BrokenQuery:
            def filter_by(self, **kwargs):
                raise OperationalError('SELECT', {}, Exception('database is down'))

        monkeypatch.setattr(MenuItem, 'query', BrokenQuery())
        with pytest.raises(OrderingUnavailable):
            create_order(member, 'Burger', 'Beef', None, OPEN, TIRANE)
        monkeypatch.undo()
        assert Order.query.count() == 0

    def test_non_text_selection_rejected(self, member, menu):
        with pytest.raises(InvalidMenuSelection):
            create_order(member, ['Burger'], 'Beef', None, OPEN, TIRANE)

    def test_phone_updated_with_order(self, member, menu):
        create_order(member, 'Burger', 'Beef', None, OPEN, TIRANE, phone='+355 69 123-4567')
        assert member.phone == '+355691234567'


class TestUpdateOrder:
    def test_update_without_order(self, member, menu):
        with pytest.raises(OrderNotFound):
            update_order(member, 'Burger', 'Beef', None, OPEN, TIRANE)

    def test_update_blocked_when_locked(self, member, menu, place):
        place(member, locked=True)
        with pytest.raises(CycleLocked):
            update_order(member, 'Salad', 'Greek', None, OPEN, TIRANE)
        assert Order.query.one().item == 'Burger'

    def test_last_weeks_order_is_not_touched(self, member, menu, place):
        old = place(member, friday=FRIDAY - timedelta(days=7))
        with pytest.raises(OrderNotFound):
            update_order(member, 'Salad', 'Greek', None, OPEN, TIRANE)
        assert db.session.get(Order, old.id).item == 'Burger'


class TestOrderingWindowSettings:
    def test_missing_settings_default_window(self, member, menu):
        window = load_ordering_window()
        assert (window.start, window.end) == ('09:00', '12:30')
        assert create_order(member, 'Burger', 'Beef', None, at(FRIDAY, 10, 0), TIRANE).id

    def test_configured_window_is_used(self, admin, member, menu):
        save_ordering_window('11:00', '11:30', admin)
        with pytest.raises(WindowClosed):
            create_order(member, 'Burger', 'Beef', None, at(FRIDAY, 10, 0), TIRANE)
        assert create_order(member, 'Burger', 'Beef', None, at(FRIDAY, 11, 30), TIRANE).id

    def test_malformed_settings_fall_back(self, app):
        db.session.add_all([
            Settings(key='ordering_start_time', value='nine'),
            Settings(key='ordering_end_time', value='12:30'),
        ])
        db.session.commit()
        window = load_ordering_window()
        assert (window.start, window.end) == ('09:00', '12:30')

    def test_storage_failure_falls_back(self, app, monkeypatch):
        class BrokenQuery:
            def filter(self, *args, **kwargs):
                raise OperationalError('SELECT', {}, Exception('database is down'))

        monkeypatch.setattr(Settings, 'query', BrokenQuery())
        window = load_ordering_window()
        assert (window.start, window.end) == ('09:00', '12:30')

    def test_save_records_event(self, admin):
        save_ordering_window('08:30', '11:00', admin)
        values = {row.key: row.value for row in Settings.query.all()}
        assert values == {'ordering_start_time': '08:30', 'ordering_end_time': '11:00'}
        event = Event.query.one()
        assert event.type == 'timeframe_updated'
        assert event.payload == {'start_time': '08:30', 'end_time': '11:00'}

    def test_save_overwrites_existing(self, admin):
        save_ordering_window('08:30', '11:00', admin)
        save_ordering_window('09:15', '10:45', admin)
        assert Settings.query.count() == 2
        assert load_ordering_window().start == '09:15'

    @pytest.mark.parametrize('start, end', [
        ('12:00', '09:00'),
        ('10:00', '10:00'),
        ('', '10:00'),
        ('9am', '10:00'),
    ])
    def test_save_rejects_invalid(self, admin, start, end):
        with pytest.raises(InvalidTimeframe):
            save_ordering_window(start, end, admin)
        assert Settings.query.count() == 0


class TestAdminOrders:
    def test_admin_create_ignores_window(self, admin, member, menu):
        order = admin_create_order(admin, member.id, 'Salad', 'Greek', None, at(FRIDAY, 18, 0), TIRANE)
        assert order.user_id == member.id
        event = Event.query.one()
        assert event.type == 'admin_order_created'
        assert event.user_id == admin.id
        assert event.payload['target_user_id'] == member.id

    def test_admin_create_duplicate(self, admin, member, menu, place):
        place(member)
        with pytest.raises(DuplicateOrder):
            admin_create_order(admin, member.id, 'Salad', 'Greek', None, OPEN, TIRANE)

    def test_admin_create_inherits_lock(self, admin, member, other_member, menu, place):
        place(other_member, locked=True)
        order = admin_create_order(admin, str(member.id), 'Salad', 'Greek', None, OPEN, TIRANE)
        assert order.locked is True

    def test_admin_create_unknown_user(self, admin, menu):
        with pytest.raises(UserNotFound):
            admin_create_order(admin, 999, 'Salad', 'Greek', None, OPEN, TIRANE)
        with pytest.raises(UserNotFound):
            admin_create_order(admin, None, 'Salad', 'Greek', None, OPEN, TIRANE)

    def test_admin_update_and_delete(self, admin, member, menu, place):
        order = place(member, locked=True)
        admin_update_order(admin, order.id, 'Burger', 'Chicken', 'well done')
        assert db.session.get(Order, order.id).variant == 'Chicken'

        admin_delete_order(admin, order.id)
        assert Order.query.count() == 0
        assert event_types() == ['admin_order_updated', 'admin_order_deleted']

    def test_admin_update_missing_order(self, admin, menu):
        with pytest.raises(OrderNotFound):
            admin_update_order(admin, 42, 'Burger', 'Beef', None)


class TestCycleLock:
    def test_lock_and_unlock_whole_cycle(self, admin, member, other_member, place):
        place(member)
        place(other_member)
        previous = place(member, friday=FRIDAY - timedelta(days=7))

        assert set_cycle_lock(FRIDAY, True, admin) == 2
        assert is_cycle_locked(FRIDAY)
        assert all(order.locked for order in Order.query.filter_by(friday_date=FRIDAY))
        assert db.session.get(Order, previous.id).locked is False

        set_cycle_lock(FRIDAY, False, admin)
        assert not is_cycle_locked(FRIDAY)

        locked_event, unlocked_event = Event.query.order_by(Event.id).all()
        assert locked_event.type == 'orders_locked'
        assert locked_event.payload == {'friday_date': '2026-06-05', 'order_count': 2}
        assert unlocked_event.type == 'orders_unlocked'

    def test_empty_cycle_is_unlocked(self, app):
        assert not is_cycle_locked(FRIDAY)

    def test_locking_empty_cycle_refused(self, admin):
        with pytest.raises(NothingToLock) as exc:
            set_cycle_lock(FRIDAY, True, admin)
        assert exc.value.status_code == 400
        assert not is_cycle_locked(FRIDAY)
        assert Event.query.count() == 0
