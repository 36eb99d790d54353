"""
Ordering Constants

Weekly cycle rules, setting keys, and audit event types for the
Friday ordering window.
"""

import calendar

# Ordering day (Python weekday numbering: Monday=0 ... Sunday=6)
TARGET_WEEKDAY = calendar.FRIDAY

# Civil timezone every window check is evaluated in
DEFAULT_TIMEZONE = 'Europe/Tirane'

# Built-in window used when settings are missing or malformed
DEFAULT_START_TIME = '09:00'
DEFAULT_END_TIME = '12:30'

# Keys in the settings table
SETTING_START_TIME = 'ordering_start_time'
SETTING_END_TIME = 'ordering_end_time'
SETTING_RESTAURANT_PHONE = 'tony_phone'
SETTING_ADMIN_PHONE = 'admin_phone'

DEFAULT_PHONE = '+355691234567'
DEFAULT_RESTAURANT_NAME = "Tony's (Tirana)"

# Audit event types
EVENT_ORDER_CREATED = 'order_created'
EVENT_ORDER_UPDATED = 'order_updated'
EVENT_ADMIN_ORDER_CREATED = 'admin_order_created'
EVENT_ADMIN_ORDER_UPDATED = 'admin_order_updated'
EVENT_ADMIN_ORDER_DELETED = 'admin_order_deleted'
EVENT_ORDERS_LOCKED = 'orders_locked'
EVENT_ORDERS_UNLOCKED = 'orders_unlocked'
EVENT_TIMEFRAME_UPDATED = 'timeframe_updated'
EVENT_CSV_EXPORTED = 'csv_exported'
EVENT_SMS_SENT = 'sms_sent'
EVENT_MENU_ITEM_TOGGLED = 'menu_item_toggled'
EVENT_ADMIN_USER_UPDATED = 'admin_user_updated'
