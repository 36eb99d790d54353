"""
Test configuration and fixtures.

Provides:
- Flask app bound to an in-memory SQLite database (tables rebuilt per test)
- Users, menu and login helpers
- A frozen clock for the app's routes
"""

import os
from datetime import date, datetime
from zoneinfo import ZoneInfo

import pytest

os.environ['FLASK_ENV'] = 'testing'

from app import app as flask_app  # noqa: E402
from models import MenuItem, Order, User, db  # noqa: E402

TIRANE = ZoneInfo('Europe/Tirane')

# A Friday well away from daylight saving changes
FRIDAY = date(2026, 6, 5)


def at(day, hour, minute=0, second=0):
    """Local Tirane time on the given date."""
    return datetime(day.year, day.month, day.day, hour, minute, second, tzinfo=TIRANE)


@pytest.fixture
def app():
    with flask_app.app_context():
        db.create_all()
        yield flask_app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def make_user(email, name, role='member', whitelisted=True, phone=None):
    user = User(email=email, name=name, role=role, whitelisted=whitelisted, phone=phone)
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def member(app):
    return make_user('ana@example.com', 'Ana')


@pytest.fixture
def other_member(app):
    return make_user('ben@example.com', 'Ben')


@pytest.fixture
def admin(app):
    return make_user('boss@example.com', 'Boss', role='admin', phone='+355690000001')


@pytest.fixture
def menu(app):
    items = [
        MenuItem(item='Burger', variant='Beef'),
        MenuItem(item='Burger', variant='Chicken'),
        MenuItem(item='Salad', variant='Greek'),
        MenuItem(item='Pizza', variant='Margherita', active=False),
    ]
    db.session.add_all(items)
    db.session.commit()
    return items


@pytest.fixture
def login(client):
    def _login(user):
        with client.session_transaction() as sess:
            sess['user_id'] = user.id
    return _login


@pytest.fixture
def freeze(monkeypatch):
    """Pin the clock the routes read."""
    def _freeze(moment):
        monkeypatch.setattr('app.current_time', lambda tz=None: moment)
        return moment
    return _freeze


@pytest.fixture
def place(app):
    """Insert an order directly, bypassing the gate."""
    def _place(user, item='Burger', variant='Beef', friday=FRIDAY, locked=False, notes=None):
        order = Order(user_id=user.id, friday_date=friday, item=item, variant=variant,
                      locked=locked, notes=notes)
        db.session.add(order)
        db.session.commit()
        return order
    return _place
