"""
Services Package

Business logic modules for the ordering application.
"""

from .clock import (
    Countdown,
    OrderingWindow,
    current_cycle_key,
    current_time,
    is_window_open,
    parse_hhmm,
    resolve_window,
    time_until_next_window,
)

from .gate import (
    CycleLocked,
    DuplicateOrder,
    GateState,
    NotesTooLong,
    OrderNotFound,
    OrderRejected,
    WindowClosed,
    check_mutation,
    validate_notes,
)

from .timeframe import (
    InvalidTimeframe,
    get_setting,
    load_ordering_window,
    save_ordering_window,
)

from .orders import (
    create_order,
    update_order,
    admin_create_order,
    admin_update_order,
    admin_delete_order,
    cycle_orders,
    find_order,
    is_cycle_locked,
    set_cycle_lock,
)

from .reports import (
    export_filename,
    export_orders_csv,
    missing_users,
    order_insights,
    order_summary,
)

from .sms import (
    compose_sms_message,
    dispatch_cycle_sms,
    sms_status,
)

__all__ = [
    # Clock
    'Countdown',
    'OrderingWindow',
    'current_cycle_key',
    'current_time',
    'is_window_open',
    'parse_hhmm',
    'resolve_window',
    'time_until_next_window',
    # Gate
    'CycleLocked',
    'DuplicateOrder',
    'GateState',
    'NotesTooLong',
    'OrderNotFound',
    'OrderRejected',
    'WindowClosed',
    'check_mutation',
    'validate_notes',
    # Settings
    'InvalidTimeframe',
    'get_setting',
    'load_ordering_window',
    'save_ordering_window',
    # Orders
    'create_order',
    'update_order',
    'admin_create_order',
    'admin_update_order',
    'admin_delete_order',
    'cycle_orders',
    'find_order',
    'is_cycle_locked',
    'set_cycle_lock',
    # Reports
    'export_filename',
    'export_orders_csv',
    'missing_users',
    'order_insights',
    'order_summary',
    # SMS
    'compose_sms_message',
    'dispatch_cycle_sms',
    'sms_status',
]
