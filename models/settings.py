"""
Settings Model

Contains the Settings model for application-wide settings storage.
"""

from .base import db, utcnow


class Settings(db.Model):
    """Key-value storage for application settings (ordering window, phone numbers)."""
    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(50), unique=True, nullable=False)
    value = db.Column(db.String(200))
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)
