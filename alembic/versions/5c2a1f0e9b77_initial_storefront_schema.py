"""initial storefront schema

Revision ID: 5c2a1f0e9b77
Revises:
Create Date: 2026-10-19 10:12:41.503118

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '5c2a1f0e9b77'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


order_status = sa.Enum("CREATED", "PAID", "SHIPPED", "DELIVERED", "CANCELLED", name="orderstatus")
payment_status = sa.Enum("PENDING", "SUCCESS", "FAILED", "CANCELLED", name="paymentstatus")
payment_method = sa.Enum("TIPTOP_PAY", name="paymentmethod")
product_status = sa.Enum("AVAILABLE", "SOLD", "DELETED", name="productstatus")
user_role = sa.Enum("USER", "ADMIN", name="userrole")
event_actor = sa.Enum("system", "user", "guest", "admin", "webhook", name="ordereventactor")


def upgrade():
    op.create_table(
        "user",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(), nullable=True, unique=True),
        sa.Column("password", sa.String(), nullable=True),
        sa.Column("role", user_role, nullable=False, server_default="USER"),
        sa.Column("language", sa.String(), nullable=True),
        sa.Column("is_guest", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("guest_session_id", sa.String(), nullable=True, unique=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_user_guest_session_id", "user", ["guest_session_id"])

    op.create_table(
        "color",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("hex", sa.String(), nullable=True),
    )
    op.create_table(
        "size",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
    )
    op.create_table(
        "product",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("price_kzt", sa.Integer(), nullable=False),
        sa.Column("price_usd", sa.Integer(), nullable=False),
        sa.Column("status", product_status, nullable=False, server_default="AVAILABLE"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "basketitem",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("product.id"), nullable=False),
        sa.Column("selected_color_id", sa.Integer(), sa.ForeignKey("color.id"), nullable=True),
        sa.Column("selected_size_id", sa.Integer(), sa.ForeignKey("size.id"), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint(
            "user_id", "product_id", "selected_color_id", "selected_size_id",
            name="uq_basket_item_selection",
        ),
        sa.CheckConstraint("quantity >= 1", name="ck_basket_item_quantity"),
    )
    op.create_index("ix_basketitem_user_id", "basketitem", ["user_id"])

    op.create_table(
        "order",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=True),
        sa.Column("recipient_name", sa.String(), nullable=False),
        sa.Column("recipient_address", sa.String(), nullable=False),
        sa.Column("recipient_phone", sa.String(), nullable=True),
        sa.Column("recipient_email", sa.String(), nullable=True),
        sa.Column("payment_method", payment_method, nullable=False, server_default="TIPTOP_PAY"),
        sa.Column("status", order_status, nullable=False, server_default="CREATED"),
        sa.Column("payment_status", payment_status, nullable=True),
        sa.Column("tiptoppay_transaction_id", sa.String(), nullable=True),
        sa.Column("total_kzt", sa.Integer(), nullable=False),
        sa.Column("total_usd", sa.Integer(), nullable=False),
        sa.Column("notes", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_order_user_id", "order", ["user_id"])
    op.create_index("ix_order_status", "order", ["status"])
    op.create_index("ix_order_tiptoppay_transaction_id", "order", ["tiptoppay_transaction_id"])

    op.create_table(
        "orderitem",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("order.id"), nullable=False),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("product.id"), nullable=False),
        sa.Column("selected_color_id", sa.Integer(), sa.ForeignKey("color.id"), nullable=True),
        sa.Column("selected_size_id", sa.Integer(), sa.ForeignKey("size.id"), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("price_kzt", sa.Integer(), nullable=False),
        sa.Column("price_usd", sa.Integer(), nullable=False),
        sa.CheckConstraint("quantity >= 1", name="ck_order_item_quantity"),
    )
    op.create_index("ix_orderitem_order_id", "orderitem", ["order_id"])

    # timeline
    op.create_table(
        "order_event",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("order.id"), nullable=False),
        sa.Column("event_type", sa.String(), nullable=False),
        sa.Column("label", sa.String(), nullable=False),
        sa.Column("transaction_id", sa.String(), nullable=True),
        sa.Column("meta", sa.JSON(), nullable=True),
        sa.Column("created_by", event_actor, nullable=False, server_default="system"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_order_event_order_id", "order_event", ["order_id"])
    op.create_index("ix_order_event_event_type", "order_event", ["event_type"])


def downgrade():
    op.drop_index("ix_order_event_event_type", table_name="order_event")
    op.drop_index("ix_order_event_order_id", table_name="order_event")
    op.drop_table("order_event")
    op.drop_index("ix_orderitem_order_id", table_name="orderitem")
    op.drop_table("orderitem")
    op.drop_index("ix_order_tiptoppay_transaction_id", table_name="order")
    op.drop_index("ix_order_status", table_name="order")
    op.drop_index("ix_order_user_id", table_name="order")
    op.drop_table("order")
    op.drop_index("ix_basketitem_user_id", table_name="basketitem")
    op.drop_table("basketitem")
    op.drop_table("product")
    op.drop_table("size")
    op.drop_table("color")
    op.drop_index("ix_user_guest_session_id", table_name="user")
    op.drop_table("user")

    for enum in (order_status, payment_status, payment_method, product_status, user_role, event_actor):
        enum.drop(op.get_bind(), checkfirst=True)
