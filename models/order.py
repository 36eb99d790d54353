"""
Order Model

A team member's order for one Friday cycle.
"""

from .base import db, utcnow


class Order(db.Model):
    """
    Order for a single Friday.

    One order per (user, friday_date) is enforced by the ordering service,
    not by a database constraint. The locked flag is set for the whole
    cycle at once by an administrator.
    """
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    friday_date = db.Column(db.Date, nullable=False, index=True)
    item = db.Column(db.String(100), nullable=False)
    variant = db.Column(db.String(100), nullable=False)
    notes = db.Column(db.String(100), nullable=True)
    locked = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)
    user = db.relationship('User', backref=db.backref('orders', passive_deletes=True))

    def to_dict(self):
        data = {
            'id': self.id,
            'user_id': self.user_id,
            'friday_date': self.friday_date.isoformat(),
            'item': self.item,
            'variant': self.variant,
            'notes': self.notes,
            'locked': self.locked,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
        if self.user:
            data['user'] = {'name': self.user.name, 'email': self.user.email}
        return data
