"""
Models Package

Exports all database models and the db instance for use throughout the application.
"""

from .base import db

from .user import User
from .menu import MenuItem
from .order import Order
from .event import Event
from .message import Message
from .settings import Settings

__all__ = [
    'db',
    'User',
    'MenuItem',
    'Order',
    'Event',
    'Message',
    'Settings',
]
