"""Create order, customer and email log tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates orders, order_frame_items, order_paperweight_items,
       customers and email_logs.
How:   Column names keep the record store's field names; ids are 15-char
       strings generated by the application.

Rollback: downgrade() drops all five tables.
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column(
            "created",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "orders",
        sa.Column("id", sa.String(15), nullable=False),
        sa.Column("orderNo", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.Column("occasionDate", sa.String(32), nullable=False, server_default=""),
        sa.Column("billingAddressLine1", sa.String(255), server_default=""),
        sa.Column("billingAddressLine2", sa.String(255), server_default=""),
        sa.Column("billingTown", sa.String(128), server_default=""),
        sa.Column("billingCounty", sa.String(128), server_default=""),
        sa.Column("billingPostcode", sa.String(32), server_default=""),
        sa.Column("orderStatus", sa.String(32), server_default="draft"),
        sa.Column("payment_status", sa.String(64), server_default=""),
        sa.Column("replacementFlowers", sa.Boolean(), server_default=sa.false()),
        sa.Column("replacementFlowersQty", sa.Float(), nullable=True),
        sa.Column("replacementFlowersPrice", sa.Float(), nullable=True),
        sa.Column("collectionQty", sa.Float(), nullable=True),
        sa.Column("collectionPrice", sa.Float(), nullable=True),
        sa.Column("deliveryQty", sa.Float(), nullable=True),
        sa.Column("deliveryPrice", sa.Float(), nullable=True),
        sa.Column("returnUnusedFlowers", sa.Boolean(), server_default=sa.false()),
        sa.Column("returnUnusedFlowersPrice", sa.Float(), nullable=True),
        sa.Column("artistHours", sa.Float(), nullable=True),
        sa.Column("notes", sa.Text(), server_default=""),
        sa.Column("frameOrderId", sa.JSON(), nullable=True),
        sa.Column("paperweightOrderId", sa.String(15), server_default=""),
        sa.PrimaryKeyConstraint("id"),
    )
    # Export date-range filter and ordering
    op.create_index("idx_orders_created", "orders", ["created"])

    op.create_table(
        "order_frame_items",
        sa.Column("id", sa.String(15), nullable=False),
        sa.Column("sizeX", sa.Float(), nullable=True),
        sa.Column("sizeY", sa.Float(), nullable=True),
        sa.Column("frameType", sa.String(64), server_default=""),
        sa.Column("layout", sa.String(64), server_default=""),
        sa.Column("preservationType", sa.String(64), server_default=""),
        sa.Column("glassType", sa.String(64), server_default=""),
        sa.Column("frameMountColour", sa.String(64), server_default=""),
        sa.Column("inclusions", sa.String(32), server_default=""),
        sa.Column("glassEngraving", sa.Text(), server_default=""),
        sa.Column("artworkComplete", sa.Boolean(), server_default=sa.false()),
        sa.Column("framingComplete", sa.Boolean(), server_default=sa.false()),
        sa.Column("preservationDate", sa.String(32), server_default=""),
        sa.Column("price", sa.Float(), nullable=True),
        sa.Column("extras", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "order_paperweight_items",
        sa.Column("id", sa.String(15), nullable=False),
        sa.Column("quantity", sa.Float(), nullable=True),
        sa.Column("price", sa.Float(), nullable=True),
        sa.Column("paperweightReceived", sa.Boolean(), server_default=sa.false()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "customers",
        sa.Column("id", sa.String(15), nullable=False),
        sa.Column("title", sa.String(32), server_default=""),
        sa.Column("firstName", sa.String(128), server_default=""),
        sa.Column("surname", sa.String(128), server_default=""),
        sa.Column("email", sa.String(255), server_default=""),
        sa.Column("phoneNumber", sa.String(64), server_default=""),
        sa.Column("orderId", sa.String(15), server_default=""),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_customers_order_id", "customers", ["orderId"])

    op.create_table(
        "email_logs",
        sa.Column("id", sa.String(15), nullable=False),
        sa.Column("channel", sa.String(32), server_default="email"),
        sa.Column("status", sa.String(32), server_default="attempted"),
        sa.Column("sentAt", sa.TIMESTAMP(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("error", sa.Text(), server_default=""),
        sa.Column("toEmail", sa.String(255), server_default=""),
        sa.Column("toName", sa.String(255), server_default=""),
        sa.Column("subject", sa.String(255), server_default=""),
        sa.Column("templateKey", sa.String(64), server_default=""),
        sa.Column("emailType", sa.String(64), server_default="generic"),
        sa.Column("eventType", sa.String(64), server_default="manual"),
        sa.Column("eventNote", sa.Text(), server_default=""),
        sa.Column("orderId", sa.String(15), server_default=""),
        sa.Column("customerId", sa.String(15), server_default=""),
        sa.Column("frameItemId", sa.String(15), server_default=""),
        sa.Column("paperweightItemId", sa.String(15), server_default=""),
        sa.Column("sentBy", sa.String(64), server_default=""),
        sa.Column("meta", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_email_logs_order_id", "email_logs", ["orderId"])


def downgrade() -> None:
    op.drop_index("idx_email_logs_order_id", table_name="email_logs")
    op.drop_table("email_logs")
    op.drop_index("idx_customers_order_id", table_name="customers")
    op.drop_table("customers")
    op.drop_table("order_paperweight_items")
    op.drop_table("order_frame_items")
    op.drop_index("idx_orders_created", table_name="orders")
    op.drop_table("orders")
