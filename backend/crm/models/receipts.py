from __future__ import annotations

from ..extensions import db
from crm.time_utils import to_utc_z


class Receipt(db.Model):
    """
    Money received from a customer, optionally against a project.

    Every receipt with a project_id contributes its amount to
    Project.received (see receipt_service).
    """
    __tablename__ = "receipts"
    __table_args__ = (
        db.Index("ix_receipts_project_id", "project_id"),
        db.Index("ix_receipts_customer_id", "customer_id"),
    )

    id = db.Column(db.String(64), primary_key=True)
    customer_id = db.Column(db.String(64), nullable=True)
    project_id = db.Column(db.String(64), db.ForeignKey("projects.id"), nullable=True)
    installment_id = db.Column(db.String(64), nullable=True)
    amount = db.Column(db.Float, nullable=False, default=0)
    date = db.Column(db.String(40), nullable=True)
    method = db.Column(db.String(32), nullable=False, default="cash")
    reference = db.Column(db.String(128), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    receipt_number = db.Column(db.String(64), nullable=True)
    customer_name = db.Column(db.String(255), nullable=True)
    project_name = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    project = db.relationship("Project", backref=db.backref("receipts", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "project_id": self.project_id,
            "installment_id": self.installment_id,
            "amount": self.amount,
            "date": self.date,
            "method": self.method,
            "reference": self.reference,
            "notes": self.notes,
            "receipt_number": self.receipt_number,
            "customer_name": self.customer_name,
            "project_name": self.project_name,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
