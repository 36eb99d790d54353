"""
Validation Constants

Contains whitelist values and length limits for validating user input.
"""

# Valid user roles (whitelist for security)
VALID_ROLES = {'admin', 'member'}

# Fields an admin may change on another user
EDITABLE_USER_FIELDS = {'name', 'phone', 'role', 'whitelisted'}

# Maximum field lengths
MAX_LENGTHS = {
    'notes': 100,
    'message': 1000,
    'name': 100,
    'phone': 20,
}

NOTES_MAX_LENGTH = MAX_LENGTHS['notes']
MESSAGE_MAX_LENGTH = MAX_LENGTHS['message']

# How many rows list endpoints return
CHAT_MESSAGE_LIMIT = 200
RECENT_EVENTS_LIMIT = 50
INSIGHT_ITEM_LIMIT = 6
INSIGHT_USER_LIMIT = 5
