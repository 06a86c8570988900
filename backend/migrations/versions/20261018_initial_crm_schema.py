"""Initial CRM schema: contacts, projects, receipts, activity, inventory, settings

Revision ID: 20261018_initial_crm
Revises:
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261018_initial_crm"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
    ]


def upgrade():
    op.create_table(
        "customers",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("cnic", sa.String(32), nullable=True),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("company", sa.String(255), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("type", sa.String(16), nullable=False, server_default="customer"),
        sa.Column("status", sa.String(16), nullable=False, server_default="active"),
        sa.Column("linked_broker_id", sa.String(64), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("type IN ('customer', 'broker', 'both')", name="ck_customers_type"),
        sa.CheckConstraint("status IN ('active', 'inactive')", name="ck_customers_status"),
    )

    op.create_table(
        "brokers",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column("cnic", sa.String(32), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("company", sa.String(255), nullable=True),
        sa.Column("commission_rate", sa.Float(), nullable=False, server_default=sa.text("1")),
        sa.Column("bank_details", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="active"),
        sa.Column("linked_customer_id", sa.String(64), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("status IN ('active', 'inactive')", name="ck_brokers_status"),
    )

    op.create_table(
        "projects",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("customer_id", sa.String(64), nullable=False),
        sa.Column("broker_id", sa.String(64), nullable=True),
        sa.Column("broker_commission_rate", sa.Float(), nullable=False, server_default=sa.text("1")),
        sa.Column("company_rep_id", sa.String(64), nullable=True),
        sa.Column("company_rep_commission_rate", sa.Float(), nullable=False, server_default=sa.text("1")),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("unit", sa.String(64), nullable=True),
        sa.Column("marlas", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("rate", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("sale", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("received", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("status", sa.String(32), nullable=False, server_default="active"),
        sa.Column("cycle", sa.String(32), nullable=False, server_default="bi_annual"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("installments", sa.Text(), nullable=False, server_default="[]"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.ForeignKeyConstraint(["broker_id"], ["brokers.id"]),
        sa.PrimaryKeyConstraint("id"),
    )

    with op.batch_alter_table("projects", schema=None) as batch_op:
        batch_op.create_index("ix_projects_customer_id", ["customer_id"], unique=False)
        batch_op.create_index("ix_projects_broker_id", ["broker_id"], unique=False)

    op.create_table(
        "receipts",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("customer_id", sa.String(64), nullable=True),
        sa.Column("project_id", sa.String(64), nullable=True),
        sa.Column("installment_id", sa.String(64), nullable=True),
        sa.Column("amount", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("date", sa.String(40), nullable=True),
        sa.Column("method", sa.String(32), nullable=False, server_default="cash"),
        sa.Column("reference", sa.String(128), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("receipt_number", sa.String(64), nullable=True),
        sa.Column("customer_name", sa.String(255), nullable=True),
        sa.Column("project_name", sa.String(255), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"]),
        sa.PrimaryKeyConstraint("id"),
    )

    with op.batch_alter_table("receipts", schema=None) as batch_op:
        batch_op.create_index("ix_receipts_project_id", ["project_id"], unique=False)
        batch_op.create_index("ix_receipts_customer_id", ["customer_id"], unique=False)

    op.create_table(
        "interactions",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("contact_type", sa.String(16), nullable=False, server_default="customer"),
        sa.Column("customer_id", sa.String(64), nullable=True),
        sa.Column("broker_id", sa.String(64), nullable=True),
        sa.Column("type", sa.String(32), nullable=False, server_default="call"),
        sa.Column("status", sa.String(32), nullable=False, server_default="follow_up"),
        sa.Column("priority", sa.String(16), nullable=False, server_default="medium"),
        sa.Column("date", sa.String(40), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("next_follow_up", sa.String(40), nullable=True),
        sa.Column("contacts", sa.Text(), nullable=False, server_default="[]"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "inventory",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("project_name", sa.String(255), nullable=True),
        sa.Column("block", sa.String(64), nullable=True),
        sa.Column("unit_shop_number", sa.String(64), nullable=True),
        sa.Column("unit", sa.String(64), nullable=True),
        sa.Column("unit_type", sa.String(64), nullable=True),
        sa.Column("marlas", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("rate_per_marla", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_value", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("sale_value", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("plot_features", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("plot_feature", sa.String(128), nullable=True),
        sa.Column("status", sa.String(32), nullable=False, server_default="available"),
        sa.Column("transaction_id", sa.String(64), nullable=True),
        sa.Column("customer_id", sa.String(64), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "master_projects",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("total_units", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("available_units", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("sold_units", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("reserved_units", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("blocked_units", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_sale_value", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_received", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_receivable", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_overdue", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_broker_commission", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_broker_commission_paid", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_company_rep_commission", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_company_rep_commission_paid", sa.Float(), nullable=False, server_default=sa.text("0")),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "commission_payments",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("project_id", sa.String(64), nullable=True),
        sa.Column("recipient_id", sa.String(64), nullable=True),
        sa.Column("recipient_type", sa.String(32), nullable=True),
        sa.Column("recipient_name", sa.String(255), nullable=True),
        sa.Column("amount", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("paid_amount", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("remaining_amount", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("payment_date", sa.String(40), nullable=True),
        sa.Column("payment_method", sa.String(32), nullable=True),
        sa.Column("payment_reference", sa.String(128), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(32), nullable=False, server_default="pending"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"]),
        sa.PrimaryKeyConstraint("id"),
    )

    with op.batch_alter_table("commission_payments", schema=None) as batch_op:
        batch_op.create_index("ix_commission_payments_project_id", ["project_id"], unique=False)

    op.create_table(
        "settings",
        sa.Column("key", sa.String(128), nullable=False),
        sa.Column("value", sa.Text(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.PrimaryKeyConstraint("key"),
    )


def downgrade():
    op.drop_table("settings")
    with op.batch_alter_table("commission_payments", schema=None) as batch_op:
        batch_op.drop_index("ix_commission_payments_project_id")
    op.drop_table("commission_payments")
    op.drop_table("master_projects")
    op.drop_table("inventory")
    op.drop_table("interactions")
    with op.batch_alter_table("receipts", schema=None) as batch_op:
        batch_op.drop_index("ix_receipts_customer_id")
        batch_op.drop_index("ix_receipts_project_id")
    op.drop_table("receipts")
    with op.batch_alter_table("projects", schema=None) as batch_op:
        batch_op.drop_index("ix_projects_broker_id")
        batch_op.drop_index("ix_projects_customer_id")
    op.drop_table("projects")
    op.drop_table("brokers")
    op.drop_table("customers")
