"""
Input Sanitization Module

Cleans free-text user input before it is stored.
"""

import re

CONTROL_CHARS = re.compile(r'[\x00-\x08\x0b-\x1f\x7f-\x9f]')


def clean_text(text, max_length=None):
    """
    Strip control characters and surrounding whitespace from user text.

    Newlines and tabs are kept. Text is stored as entered otherwise; the
    API returns JSON, so no HTML escaping happens here.

    Args:
        text: The text to clean (can be None)
        max_length: Truncate to this many characters when given

    Returns:
        Cleaned string, empty if nothing is left
    """
    if text is None:
        return ''

    if not isinstance(text, str):
        text = str(text)

    text = CONTROL_CHARS.sub('', text).strip()

    if max_length is not None and len(text) > max_length:
        text = text[:max_length]

    return text


def sanitize_name(name, max_length=100):
    """Single-line display name: control characters removed, spaces collapsed."""
    name = clean_text(name)
    name = re.sub(r'\s+', ' ', name)
    return name[:max_length]


def sanitize_phone(phone, max_length=20):
    """
    Normalize a phone number to digits with an optional leading '+'.

    Spaces, dashes, dots and parentheses are dropped. Returns an empty
    string when no digits remain.

    Args:
        phone: Phone number as typed, e.g. '+355 69 123 4567'
        max_length: Maximum stored length (default 20)
    """
    if not phone or not isinstance(phone, str):
        return ''

    phone = phone.strip()
    prefix = '+' if phone.startswith('+') else ''
    digits = re.sub(r'\D', '', phone)
    if not digits:
        return ''

    return (prefix + digits)[:max_length]
