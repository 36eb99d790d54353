"""
SMS Service

Sends the consolidated Friday order to the restaurant by text message.

Delivery goes through the Twilio REST API when credentials are
configured. Without them the message is only logged, so the rest of the
flow (locking, audit, resend guard) can run in development.
"""

import logging
import time

import requests

from constants import (
    DEFAULT_PHONE,
    DEFAULT_RESTAURANT_NAME,
    EVENT_SMS_SENT,
    SETTING_ADMIN_PHONE,
    SETTING_RESTAURANT_PHONE,
)
from models import Order, db
from .audit import latest_cycle_event, record_event
from .gate import OrderRejected
from .timeframe import get_setting

logger = logging.getLogger(__name__)

TWILIO_MESSAGES_URL = 'https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json'
REQUEST_TIMEOUT = 10


class SmsRejected(OrderRejected):
    """The SMS can't be sent for this Friday."""
    status_code = 400
    code = 'sms_rejected'


class SmsDeliveryError(OrderRejected):
    """The SMS provider did not accept the message."""
    status_code = 502
    code = 'sms_delivery_failed'


def compose_sms_message(orders, contact_phone, restaurant=DEFAULT_RESTAURANT_NAME):
    """
    Build the text sent to the restaurant.

    Example:
        Friday order – Tony's (Tirana): 3 meals. Burger: Beef x2, Salad: Greek x1. Contact: +355...
    """
    counts = {}
    for order in orders:
        key = f"{order.item}: {order.variant}"
        counts[key] = counts.get(key, 0) + 1

    summary = ', '.join(f"{label} x{count}" for label, count in counts.items())
    return f"Friday order – {restaurant}: {len(orders)} meals. {summary}. Contact: {contact_phone or 'N/A'}."


def twilio_configured(config):
    return all(config.get(key) for key in ('TWILIO_ACCOUNT_SID', 'TWILIO_AUTH_TOKEN', 'TWILIO_PHONE_NUMBER'))


def send_sms(to, body, config):
    """
    Send one message. Returns a dict with the provider's 'sid' and 'status'.

    Raises:
        SmsDeliveryError: if the provider call fails
    """
    if not twilio_configured(config):
        logger.info("Mock SMS to %s: %s", to, body)
        return {'sid': f"mock_{int(time.time() * 1000)}", 'status': 'sent'}

    account_sid = config['TWILIO_ACCOUNT_SID']
    try:
        response = requests.post(
            TWILIO_MESSAGES_URL.format(sid=account_sid),
            data={'From': config['TWILIO_PHONE_NUMBER'], 'To': to, 'Body': body},
            auth=(account_sid, config['TWILIO_AUTH_TOKEN']),
            timeout=REQUEST_TIMEOUT,
        )
        response.raise_for_status()
        result = response.json()
    except (requests.RequestException, ValueError) as e:
        logger.exception("Twilio rejected SMS to %s", to)
        raise SmsDeliveryError() from e

    return {'sid': result.get('sid'), 'status': result.get('status')}


def sms_status(cycle_key):
    event = latest_cycle_event(EVENT_SMS_SENT, cycle_key)
    if event is None:
        return {'sent': False, 'timestamp': None}
    return {'sent': True, 'timestamp': event.created_at.isoformat() if event.created_at else None}


def dispatch_cycle_sms(cycle_key, admin, config, resend=False):
    """
    Send the cycle's locked orders to the restaurant once.

    A second send for the same Friday needs resend=True.
    """
    if not resend and latest_cycle_event(EVENT_SMS_SENT, cycle_key) is not None:
        raise SmsRejected('SMS already sent for this Friday')

    orders = Order.query.filter_by(friday_date=cycle_key, locked=True).order_by(Order.created_at, Order.id).all()
    if not orders:
        raise SmsRejected('No locked orders found for this Friday')

    recipient = get_setting(SETTING_RESTAURANT_PHONE, DEFAULT_PHONE)
    contact = get_setting(SETTING_ADMIN_PHONE, DEFAULT_PHONE)
    message = compose_sms_message(orders, contact, config.get('RESTAURANT_NAME', DEFAULT_RESTAURANT_NAME))

    result = send_sms(recipient, message, config)

    record_event(EVENT_SMS_SENT, admin.id, {
        'friday_date': cycle_key.isoformat(),
        'recipient': recipient,
        'message': message,
        'order_count': len(orders),
        'twilio_sid': result['sid'],
        'status': result['status'],
        'resend': resend,
    })
    db.session.commit()

    logger.info("SMS for %s sent to %s (%d orders)", cycle_key, recipient, len(orders))
    return {'order_count': len(orders), 'sid': result['sid'], 'message': message}
