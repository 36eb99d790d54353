"""
Event Model

Audit log of every mutation and admin action.
"""

from .base import db, utcnow


class Event(db.Model):
    """Audit entry: what happened, who did it, and the data involved."""
    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(50), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='SET NULL'), nullable=True)
    payload = db.Column(db.JSON, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, index=True)

    def to_dict(self):
        return {
            'id': self.id,
            'type': self.type,
            'user_id': self.user_id,
            'payload': self.payload,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
