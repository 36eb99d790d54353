"""
Audit Service

Records events describing every mutation and admin action.
"""

from models import Event, db


def record_event(event_type, user_id, payload=None):
    """Add an audit event to the current session; the caller commits it with the mutation."""
    event = Event(type=event_type, user_id=user_id, payload=payload or {})
    db.session.add(event)
    return event


def recent_events(limit):
    return Event.query.order_by(Event.created_at.desc(), Event.id.desc()).limit(limit).all()


def latest_cycle_event(event_type, cycle_key):
    """Most recent event of a type whose payload names the given Friday."""
    return (
        Event.query
        .filter(Event.type == event_type, Event.payload['friday_date'].as_string() == cycle_key.isoformat())
        .order_by(Event.created_at.desc(), Event.id.desc())
        .first()
    )
