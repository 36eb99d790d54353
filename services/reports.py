"""
Reports Service

Order summaries, admin insights and the CSV export.
"""

import csv
import io
from collections import Counter
from datetime import timezone

from constants import INSIGHT_ITEM_LIMIT, INSIGHT_USER_LIMIT
from .clock import ORDERING_TZ

CSV_HEADERS = ['Name', 'Email', 'Phone', 'Item', 'Variant', 'Notes', 'Order Time']


def order_summary(orders):
    """
    Count orders per item/variant.

    Returns a list of dicts in the order each combination first appears.
    """
    counts = Counter((order.item, order.variant) for order in orders)
    return [{'item': item, 'variant': variant, 'count': count}
            for (item, variant), count in counts.items()]


def _top(counter, limit):
    return [{'label': label, 'value': value} for label, value in counter.most_common(limit)]


def order_insights(orders):
    """Most ordered dishes and most active people, for the admin dashboard."""
    items = Counter(f"{order.item} – {order.variant}" for order in orders)
    users = Counter((order.user.name if order.user and order.user.name else str(order.user_id))
                    for order in orders)
    return {
        'items': _top(items, INSIGHT_ITEM_LIMIT),
        'users': _top(users, INSIGHT_USER_LIMIT),
    }


def missing_users(users, orders):
    """Whitelisted users who haven't ordered this cycle."""
    ordered = {order.user_id for order in orders}
    return [user for user in users if user.whitelisted and user.id not in ordered]


def format_order_time(created_at, tz=ORDERING_TZ):
    if created_at is None:
        return ''
    # SQLite hands back naive values; they're stored as UTC
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return created_at.astimezone(tz).strftime('%Y-%m-%d %H:%M')


def export_filename(cycle_key):
    return f"friday-orders-{cycle_key.isoformat()}.csv"


def export_orders_csv(orders, tz=ORDERING_TZ):
    """Render the cycle's orders as CSV text with every field quoted."""
    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator='\n')
    writer.writerow(CSV_HEADERS)
    for order in orders:
        user = order.user
        writer.writerow([
            user.name if user else '',
            user.email if user else '',
            (user.phone or '') if user else '',
            order.item,
            order.variant,
            order.notes or '',
            format_order_time(order.created_at, tz),
        ])
    return output.getvalue()
