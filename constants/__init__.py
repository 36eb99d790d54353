"""
Constants Package

Exports ordering rules and validation limits used throughout the application.
"""

from .ordering import (
    TARGET_WEEKDAY,
    DEFAULT_TIMEZONE,
    DEFAULT_START_TIME,
    DEFAULT_END_TIME,
    SETTING_START_TIME,
    SETTING_END_TIME,
    SETTING_RESTAURANT_PHONE,
    SETTING_ADMIN_PHONE,
    DEFAULT_PHONE,
    DEFAULT_RESTAURANT_NAME,
    EVENT_ORDER_CREATED,
    EVENT_ORDER_UPDATED,
    EVENT_ADMIN_ORDER_CREATED,
    EVENT_ADMIN_ORDER_UPDATED,
    EVENT_ADMIN_ORDER_DELETED,
    EVENT_ORDERS_LOCKED,
    EVENT_ORDERS_UNLOCKED,
    EVENT_TIMEFRAME_UPDATED,
    EVENT_CSV_EXPORTED,
    EVENT_SMS_SENT,
    EVENT_MENU_ITEM_TOGGLED,
    EVENT_ADMIN_USER_UPDATED,
)

from .validation import (
    VALID_ROLES,
    EDITABLE_USER_FIELDS,
    MAX_LENGTHS,
    NOTES_MAX_LENGTH,
    MESSAGE_MAX_LENGTH,
    CHAT_MESSAGE_LIMIT,
    RECENT_EVENTS_LIMIT,
    INSIGHT_ITEM_LIMIT,
    INSIGHT_USER_LIMIT,
)
