from __future__ import annotations

from ..extensions import db
from crm.time_utils import to_utc_z


CUSTOMER_TYPES = ("customer", "broker", "both")
CONTACT_STATUSES = ("active", "inactive")


class Customer(db.Model):
    """
    Buyer (or buyer-and-broker) master data.

    Ids are assigned by the client. linked_broker_id is a weak cross-link to
    the Broker record of the same person and is never enforced.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.CheckConstraint("type IN ('customer', 'broker', 'both')", name="ck_customers_type"),
        db.CheckConstraint("status IN ('active', 'inactive')", name="ck_customers_status"),
    )

    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(255), nullable=False, default="")
    cnic = db.Column(db.String(32), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    company = db.Column(db.String(255), nullable=True)
    address = db.Column(db.Text, nullable=True)
    type = db.Column(db.String(16), nullable=False, default="customer")
    status = db.Column(db.String(16), nullable=False, default="active")
    linked_broker_id = db.Column(db.String(64), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "cnic": self.cnic,
            "phone": self.phone,
            "email": self.email,
            "company": self.company,
            "address": self.address,
            "type": self.type,
            "status": self.status,
            "linked_broker_id": self.linked_broker_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Broker(db.Model):
    """Sales agent earning commission on projects; mirrors Customer."""
    __tablename__ = "brokers"
    __table_args__ = (
        db.CheckConstraint("status IN ('active', 'inactive')", name="ck_brokers_status"),
    )

    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(255), nullable=False, default="")
    phone = db.Column(db.String(32), nullable=True)
    cnic = db.Column(db.String(32), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    address = db.Column(db.Text, nullable=True)
    company = db.Column(db.String(255), nullable=True)
    commission_rate = db.Column(db.Float, nullable=False, default=1)
    bank_details = db.Column(db.Text, nullable=True)
    notes = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(16), nullable=False, default="active")
    linked_customer_id = db.Column(db.String(64), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "cnic": self.cnic,
            "email": self.email,
            "address": self.address,
            "company": self.company,
            "commission_rate": self.commission_rate,
            "bank_details": self.bank_details,
            "notes": self.notes,
            "status": self.status,
            "linked_customer_id": self.linked_customer_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
