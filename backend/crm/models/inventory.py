from __future__ import annotations

from ..extensions import db
from crm.time_utils import to_utc_z


class InventoryItem(db.Model):
    """Plot/shop available for sale. customer_id is set once sold."""
    __tablename__ = "inventory"

    id = db.Column(db.String(64), primary_key=True)
    project_name = db.Column(db.String(255), nullable=True)
    block = db.Column(db.String(64), nullable=True)
    unit_shop_number = db.Column(db.String(64), nullable=True)
    unit = db.Column(db.String(64), nullable=True)
    unit_type = db.Column(db.String(64), nullable=True)
    marlas = db.Column(db.Float, nullable=False, default=0)
    rate_per_marla = db.Column(db.Float, nullable=False, default=0)
    total_value = db.Column(db.Float, nullable=False, default=0)
    sale_value = db.Column(db.Float, nullable=False, default=0)
    # JSON-encoded list of feature tags
    plot_features = db.Column(db.Text, nullable=False, default="[]")
    plot_feature = db.Column(db.String(128), nullable=True)
    status = db.Column(db.String(32), nullable=False, default="available")
    transaction_id = db.Column(db.String(64), nullable=True)
    customer_id = db.Column(db.String(64), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "project_name": self.project_name,
            "block": self.block,
            "unit_shop_number": self.unit_shop_number,
            "unit": self.unit,
            "unit_type": self.unit_type,
            "marlas": self.marlas,
            "rate_per_marla": self.rate_per_marla,
            "total_value": self.total_value,
            "sale_value": self.sale_value,
            "plot_features": self.plot_features,
            "plot_feature": self.plot_feature,
            "status": self.status,
            "transaction_id": self.transaction_id,
            "customer_id": self.customer_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
