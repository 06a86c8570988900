from __future__ import annotations

from ..extensions import db
from crm.time_utils import to_utc_z


class Interaction(db.Model):
    """
    Call/meeting log entry against a customer or broker.

    contact_type selects which of customer_id / broker_id is meaningful.
    contacts is a JSON-encoded list of people involved.
    """
    __tablename__ = "interactions"

    id = db.Column(db.String(64), primary_key=True)
    contact_type = db.Column(db.String(16), nullable=False, default="customer")
    customer_id = db.Column(db.String(64), nullable=True)
    broker_id = db.Column(db.String(64), nullable=True)
    type = db.Column(db.String(32), nullable=False, default="call")
    status = db.Column(db.String(32), nullable=False, default="follow_up")
    priority = db.Column(db.String(16), nullable=False, default="medium")
    date = db.Column(db.String(40), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    next_follow_up = db.Column(db.String(40), nullable=True)
    contacts = db.Column(db.Text, nullable=False, default="[]")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "contact_type": self.contact_type,
            "customer_id": self.customer_id,
            "broker_id": self.broker_id,
            "type": self.type,
            "status": self.status,
            "priority": self.priority,
            "date": self.date,
            "notes": self.notes,
            "next_follow_up": self.next_follow_up,
            "contacts": self.contacts,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
