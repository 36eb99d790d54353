"""
Menu Model

Items and variants the restaurant offers.
"""

from .base import db, utcnow


class MenuItem(db.Model):
    """One orderable item/variant pair; inactive rows are hidden from ordering."""
    id = db.Column(db.Integer, primary_key=True)
    item = db.Column(db.String(100), nullable=False, index=True)
    variant = db.Column(db.String(100), nullable=False)
    active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    __table_args__ = (db.UniqueConstraint('item', 'variant', name='uq_menu_item_variant'),)

    def to_dict(self):
        return {'id': self.id, 'item': self.item, 'variant': self.variant, 'active': self.active}
