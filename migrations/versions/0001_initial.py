"""initial money flow schema

Revision ID: 0001_money_flow
Revises:
Create Date: 2026-10-19
"""

from datetime import datetime, timezone

from alembic import op
import sqlalchemy as sa


revision = "0001_money_flow"
down_revision = None
branch_labels = None
depends_on = None


flow_type_enum = sa.Enum("IN", "OUT", name="flow_type_enum", create_constraint=True)
order_status_enum = sa.Enum(
    "PENDING", "PROCESSING", "DELIVERED", "CANCELLED", "RETURNED",
    name="order_status_enum",
    create_constraint=True,
)


def upgrade() -> None:
    op.create_table(
        "money_flow",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("type", flow_type_enum, nullable=False),
        sa.Column("amount", sa.Numeric(19, 2), nullable=False),
        sa.Column("remaining_balance", sa.Numeric(19, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_money_flow_created_at", "money_flow", ["created_at"])
    op.create_index("idx_money_flow_type", "money_flow", ["type"])
    op.create_index("idx_money_flow_type_created_at", "money_flow", ["type", "created_at"])

    ledger_head = op.create_table(
        "ledger_head",
        sa.Column("scope", sa.String(50), nullable=False),
        sa.Column("balance", sa.Numeric(19, 2), nullable=False),
        sa.Column("last_entry_id", sa.Integer(), nullable=True),
        sa.Column("last_created_at", sa.DateTime(), nullable=True),
        sa.Column("entry_count", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["last_entry_id"], ["money_flow.id"]),
        sa.PrimaryKeyConstraint("scope"),
    )
    # Seed the global head row that appends lock.
    op.bulk_insert(ledger_head, [{
        "scope": "global",
        "balance": 0,
        "last_entry_id": None,
        "last_created_at": None,
        "entry_count": 0,
        "updated_at": datetime.now(timezone.utc).replace(tzinfo=None),
    }])

    op.create_table(
        "audit_log",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("event_type", sa.String(100), nullable=False),
        sa.Column("entity_id", sa.String(50), nullable=True),
        sa.Column("details", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "customers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(200), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    op.create_index("ix_customers_created_at", "customers", ["created_at"])

    op.create_table(
        "orders",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=True),
        sa.Column("total_amount", sa.Numeric(19, 2), nullable=False),
        sa.Column("status", order_status_enum, nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_orders_customer_id", "orders", ["customer_id"])
    op.create_index("ix_orders_created_at", "orders", ["created_at"])

    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("category_id", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_products_category_id", "products", ["category_id"])

    op.create_table(
        "order_items",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("order_id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("subtotal", sa.Numeric(19, 2), nullable=False),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"]),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_order_items_order_id", "order_items", ["order_id"])
    op.create_index("ix_order_items_product_id", "order_items", ["product_id"])


def downgrade() -> None:
    op.drop_index("ix_order_items_product_id", table_name="order_items")
    op.drop_index("ix_order_items_order_id", table_name="order_items")
    op.drop_table("order_items")
    op.drop_index("ix_products_category_id", table_name="products")
    op.drop_table("products")
    op.drop_table("categories")
    op.drop_index("ix_orders_created_at", table_name="orders")
    op.drop_index("ix_orders_customer_id", table_name="orders")
    op.drop_table("orders")
    op.drop_index("ix_customers_created_at", table_name="customers")
    op.drop_table("customers")
    op.drop_table("audit_log")
    op.drop_table("ledger_head")
    op.drop_index("idx_money_flow_type_created_at", table_name="money_flow")
    op.drop_index("idx_money_flow_type", table_name="money_flow")
    op.drop_index("idx_money_flow_created_at", table_name="money_flow")
    op.drop_table("money_flow")
    order_status_enum.drop(op.get_bind(), checkfirst=True)
    flow_type_enum.drop(op.get_bind(), checkfirst=True)
