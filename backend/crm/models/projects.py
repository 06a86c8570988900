from __future__ import annotations

from ..extensions import db
from crm.time_utils import to_utc_z


class Project(db.Model):
    """
    A unit sold to one customer, optionally through a broker.

    `received` is a denormalized aggregate over the project's receipts and is
    maintained by receipt_service. `installments` holds the payment schedule
    as JSON-encoded text; it has no table of its own.
    """
    __tablename__ = "projects"
    __table_args__ = (
        db.Index("ix_projects_customer_id", "customer_id"),
        db.Index("ix_projects_broker_id", "broker_id"),
    )

    id = db.Column(db.String(64), primary_key=True)
    customer_id = db.Column(db.String(64), db.ForeignKey("customers.id"), nullable=False)
    broker_id = db.Column(db.String(64), db.ForeignKey("brokers.id"), nullable=True)
    broker_commission_rate = db.Column(db.Float, nullable=False, default=1)
    company_rep_id = db.Column(db.String(64), nullable=True)
    company_rep_commission_rate = db.Column(db.Float, nullable=False, default=1)

    name = db.Column(db.String(255), nullable=False, default="")
    unit = db.Column(db.String(64), nullable=True)
    marlas = db.Column(db.Float, nullable=False, default=0)
    rate = db.Column(db.Float, nullable=False, default=0)
    sale = db.Column(db.Float, nullable=False, default=0)
    received = db.Column(db.Float, nullable=False, default=0)
    status = db.Column(db.String(32), nullable=False, default="active")
    cycle = db.Column(db.String(32), nullable=False, default="bi_annual")
    notes = db.Column(db.Text, nullable=True)
    installments = db.Column(db.Text, nullable=False, default="[]")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    customer = db.relationship("Customer", backref=db.backref("projects", lazy=True))
    broker = db.relationship("Broker", backref=db.backref("projects", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "broker_id": self.broker_id,
            "broker_commission_rate": self.broker_commission_rate,
            "company_rep_id": self.company_rep_id,
            "company_rep_commission_rate": self.company_rep_commission_rate,
            "name": self.name,
            "unit": self.unit,
            "marlas": self.marlas,
            "rate": self.rate,
            "sale": self.sale,
            "received": self.received,
            "status": self.status,
            "cycle": self.cycle,
            "notes": self.notes,
            "installments": self.installments,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class MasterProject(db.Model):
    """
    Rollup of a development (unit counts and money totals).

    Totals are stored as entered; nothing recomputes them from projects.
    """
    __tablename__ = "master_projects"

    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(255), nullable=False, default="")
    description = db.Column(db.Text, nullable=True)
    location = db.Column(db.String(255), nullable=True)

    total_units = db.Column(db.Integer, nullable=False, default=0)
    available_units = db.Column(db.Integer, nullable=False, default=0)
    sold_units = db.Column(db.Integer, nullable=False, default=0)
    reserved_units = db.Column(db.Integer, nullable=False, default=0)
    blocked_units = db.Column(db.Integer, nullable=False, default=0)

    total_sale_value = db.Column(db.Float, nullable=False, default=0)
    total_received = db.Column(db.Float, nullable=False, default=0)
    total_receivable = db.Column(db.Float, nullable=False, default=0)
    total_overdue = db.Column(db.Float, nullable=False, default=0)
    total_broker_commission = db.Column(db.Float, nullable=False, default=0)
    total_broker_commission_paid = db.Column(db.Float, nullable=False, default=0)
    total_company_rep_commission = db.Column(db.Float, nullable=False, default=0)
    total_company_rep_commission_paid = db.Column(db.Float, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "location": self.location,
            "total_units": self.total_units,
            "available_units": self.available_units,
            "sold_units": self.sold_units,
            "reserved_units": self.reserved_units,
            "blocked_units": self.blocked_units,
            "total_sale_value": self.total_sale_value,
            "total_received": self.total_received,
            "total_receivable": self.total_receivable,
            "total_overdue": self.total_overdue,
            "total_broker_commission": self.total_broker_commission,
            "total_broker_commission_paid": self.total_broker_commission_paid,
            "total_company_rep_commission": self.total_company_rep_commission,
            "total_company_rep_commission_paid": self.total_company_rep_commission_paid,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class CommissionPayment(db.Model):
    """
    Commission owed to a broker or company representative for a project.

    recipient_id points at brokers or company reps depending on recipient_type.
    """
    __tablename__ = "commission_payments"
    __table_args__ = (
        db.Index("ix_commission_payments_project_id", "project_id"),
    )

    id = db.Column(db.String(64), primary_key=True)
    project_id = db.Column(db.String(64), db.ForeignKey("projects.id"), nullable=True)
    recipient_id = db.Column(db.String(64), nullable=True)
    recipient_type = db.Column(db.String(32), nullable=True)
    recipient_name = db.Column(db.String(255), nullable=True)
    amount = db.Column(db.Float, nullable=False, default=0)
    paid_amount = db.Column(db.Float, nullable=False, default=0)
    remaining_amount = db.Column(db.Float, nullable=False, default=0)
    payment_date = db.Column(db.String(40), nullable=True)
    payment_method = db.Column(db.String(32), nullable=True)
    payment_reference = db.Column(db.String(128), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(32), nullable=False, default="pending")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "recipient_id": self.recipient_id,
            "recipient_type": self.recipient_type,
            "recipient_name": self.recipient_name,
            "amount": self.amount,
            "paid_amount": self.paid_amount,
            "remaining_amount": self.remaining_amount,
            "payment_date": self.payment_date,
            "payment_method": self.payment_method,
            "payment_reference": self.payment_reference,
            "notes": self.notes,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
