"""order idempotency key and request fingerprint

Revision ID: 0002_order_idempotency
Revises: 0001_storefront
Create Date: 2026-10-14
"""

from alembic import op
import sqlalchemy as sa

revision = "0002_order_idempotency"
down_revision = "0001_storefront"
branch_labels = None
depends_on = None


def upgrade() -> None:
    with op.batch_alter_table("orders") as batch_op:
        batch_op.add_column(sa.Column("idempotency_key", sa.String(length=64), nullable=True))
        batch_op.add_column(sa.Column("request_fingerprint", sa.String(length=64), nullable=True))
        batch_op.create_unique_constraint("uq_orders_customer_idempotency_key", ["customer_id", "idempotency_key"])


def downgrade() -> None:
    with op.batch_alter_table("orders") as batch_op:
        batch_op.drop_constraint("uq_orders_customer_idempotency_key", type_="unique")
        batch_op.drop_column("request_fingerprint")
        batch_op.drop_column("idempotency_key")
