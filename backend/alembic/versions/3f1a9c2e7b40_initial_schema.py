"""initial schema

Revision ID: 3f1a9c2e7b40
Revises:
Create Date: 2026-10-19
"""
from __future__ import annotations

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

from backend.app.core.config import get_settings

# revision identifiers, used by Alembic.
revision: str = "3f1a9c2e7b40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

PK = sa.BigInteger().with_variant(sa.Integer(), "sqlite")

ARTICLE_CATEGORY = sa.Enum("SERIALIZED", "STANDARD", "CONSUMABLE", name="article_category")
MOVEMENT_TYPE = sa.Enum("IN", "OUT", "ADJUSTMENT", name="movement_type")
SERIAL_STATUS = sa.Enum(
    "IN_STOCK", "RESERVED", "DEPLOYED", "DEFECTIVE", "RETURNED", "DISPOSED", name="serial_number_status"
)
ORDER_STATUS = sa.Enum(
    "NEW", "IN_COMMISSION", "IN_SETUP", "READY_TO_SHIP", "COMPLETED", "CANCELLED", name="order_status"
)
DELIVERY_METHOD = sa.Enum("SHIPPING", "PICKUP", name="delivery_method")
MOBILFUNK_TYPE = sa.Enum("PHONE_AND_SIM", "PHONE_ONLY", "SIM_ONLY", name="mobilfunk_type")
SIM_TYPE = sa.Enum("SIM", "ESIM", name="sim_type")
MOBILFUNK_TARIFF = sa.Enum("STANDARD", "UNLIMITED", name="mobilfunk_tariff")
INVENTORY_STATUS = sa.Enum("IN_PROGRESS", "COMPLETED", "CANCELLED", name="inventory_status")

ENUMS = (
    ARTICLE_CATEGORY,
    MOVEMENT_TYPE,
    SERIAL_STATUS,
    ORDER_STATUS,
    DELIVERY_METHOD,
    MOBILFUNK_TYPE,
    SIM_TYPE,
    MOBILFUNK_TARIFF,
    INVENTORY_STATUS,
)


def _ts(name: str, nullable: bool = True) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable)


def upgrade() -> None:
    op.create_table(
        "warehouse_locations",
        sa.Column("id", PK, primary_key=True),
        sa.Column("name", sa.String(200), nullable=False, unique=True),
        sa.Column("description", sa.Text()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _ts("created_at", nullable=False),
    )

    op.create_table(
        "articles",
        sa.Column("id", PK, primary_key=True),
        sa.Column("sku", sa.String(64), nullable=False, unique=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("category", ARTICLE_CATEGORY, nullable=False),
        sa.Column("product_group", sa.String(128)),
        sa.Column("product_sub_group", sa.String(128)),
        sa.Column("avg_purchase_price", sa.Numeric(14, 2)),
        sa.Column("unit", sa.String(32), nullable=False, server_default="Stk"),
        sa.Column("min_stock_level", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("current_stock", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("incoming_stock", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("notes", sa.Text()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _ts("created_at", nullable=False),
        _ts("updated_at", nullable=False),
        sa.CheckConstraint("current_stock >= 0", name="ck_article_current_stock_nonneg"),
        sa.CheckConstraint("incoming_stock >= 0", name="ck_article_incoming_stock_nonneg"),
        sa.CheckConstraint("min_stock_level >= 0", name="ck_article_min_stock_nonneg"),
    )

    op.create_table(
        "suppliers",
        sa.Column("id", PK, primary_key=True),
        sa.Column("name", sa.String(255), nullable=False, unique=True),
        sa.Column("contact_name", sa.String(255)),
        sa.Column("email", sa.String(255)),
        sa.Column("phone", sa.String(64)),
        sa.Column("website", sa.String(255)),
        sa.Column("notes", sa.Text()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _ts("created_at", nullable=False),
    )

    op.create_table(
        "article_suppliers",
        sa.Column("id", PK, primary_key=True),
        sa.Column("article_id", PK, sa.ForeignKey("articles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("supplier_id", PK, sa.ForeignKey("suppliers.id", ondelete="CASCADE"), nullable=False),
        sa.Column("supplier_sku", sa.String(64)),
        sa.Column("unit_price", sa.Numeric(14, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="EUR"),
        sa.Column("lead_time_days", sa.Integer()),
        sa.Column("min_order_qty", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("is_preferred", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("notes", sa.Text()),
        sa.UniqueConstraint("article_id", "supplier_id", name="uq_article_supplier"),
        sa.CheckConstraint("unit_price >= 0", name="ck_article_supplier_price_nonneg"),
        sa.CheckConstraint("min_order_qty >= 1", name="ck_article_supplier_moq_pos"),
    )

    number_sequences = op.create_table(
        "number_sequences",
        sa.Column("name", sa.String(32), primary_key=True),
        sa.Column("value", sa.Integer(), nullable=False, server_default="0"),
    )
    # one locked row per prefix; the allocator never has to insert the first one
    settings = get_settings()
    op.bulk_insert(
        number_sequences,
        [{"name": n, "value": 0} for n in sorted({settings.ORDER_NUMBER_PREFIX, settings.ARTICLE_NUMBER_PREFIX})],
    )

    op.create_table(
        "orders",
        sa.Column("id", PK, primary_key=True),
        sa.Column("order_number", sa.String(32), nullable=False, unique=True),
        sa.Column("ordered_by", sa.String(200), nullable=False),
        sa.Column("ordered_for", sa.String(200), nullable=False),
        sa.Column("cost_center", sa.String(64), nullable=False),
        sa.Column("delivery_method", DELIVERY_METHOD, nullable=False),
        sa.Column("shipping_company", sa.String(255)),
        sa.Column("shipping_street", sa.String(255)),
        sa.Column("shipping_zip", sa.String(16)),
        sa.Column("shipping_city", sa.String(128)),
        sa.Column("pickup_by", sa.String(200)),
        sa.Column("notes", sa.Text()),
        sa.Column("status", ORDER_STATUS, nullable=False, server_default="NEW"),
        sa.Column("technician_name", sa.String(200)),
        _ts("proc_done_at"),
        _ts("setup_done_at"),
        _ts("tech_done_at"),
        _ts("shipped_at"),
        sa.Column("shipped_by", sa.String(200)),
        sa.Column("tracking_number", sa.String(128)),
        _ts("created_at", nullable=False),
        _ts("updated_at", nullable=False),
    )
    op.create_index("ix_orders_status_created", "orders", ["status", "created_at"])

    op.create_table(
        "order_items",
        sa.Column("id", PK, primary_key=True),
        sa.Column("order_id", PK, sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("article_id", PK, sa.ForeignKey("articles.id", ondelete="RESTRICT")),
        sa.Column("free_text", sa.String(500)),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("needs_ordering", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("supplier_id", PK, sa.ForeignKey("suppliers.id", ondelete="SET NULL")),
        sa.Column("supplier_order_no", sa.String(128)),
        _ts("ordered_at"),
        sa.Column("ordered_by", sa.String(200)),
        sa.Column("received_qty", sa.Integer(), nullable=False, server_default="0"),
        _ts("received_at"),
        sa.Column("picked_qty", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("picked_by", sa.String(200)),
        _ts("picked_at"),
        sa.CheckConstraint("quantity > 0", name="ck_order_item_qty_pos"),
        sa.CheckConstraint("picked_qty >= 0 AND picked_qty <= quantity", name="ck_order_item_picked_le_qty"),
        sa.CheckConstraint("received_qty >= 0", name="ck_order_item_received_nonneg"),
        sa.CheckConstraint(
            "article_id IS NOT NULL OR free_text IS NOT NULL", name="ck_order_item_article_or_free_text"
        ),
    )
    op.create_index("ix_order_items_order_id", "order_items", ["order_id"])

    op.create_table(
        "order_mobilfunk",
        sa.Column("id", PK, primary_key=True),
        sa.Column("order_id", PK, sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", MOBILFUNK_TYPE, nullable=False),
        sa.Column("sim_type", SIM_TYPE),
        sa.Column("tariff", MOBILFUNK_TARIFF),
        sa.Column("phone_note", sa.Text()),
        sa.Column("sim_note", sa.Text()),
        sa.Column("ordered", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("ordered_by", sa.String(200)),
        _ts("ordered_at"),
        sa.Column("provider_order_no", sa.String(128)),
        sa.Column("received", sa.Boolean(), nullable=False, server_default=sa.false()),
        _ts("received_at"),
        sa.Column("setup_done", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("setup_by", sa.String(200)),
        _ts("setup_at"),
        sa.Column("imei", sa.String(32)),
        sa.Column("phone_number", sa.String(32)),
        sa.Column("delivered", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index("ix_order_mobilfunk_order_id", "order_mobilfunk", ["order_id"])

    op.create_table(
        "stock_movements",
        sa.Column("id", PK, primary_key=True),
        sa.Column("article_id", PK, sa.ForeignKey("articles.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("type", MOVEMENT_TYPE, nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("reason", sa.String(255)),
        sa.Column("performed_by", sa.String(200)),
        sa.Column("order_id", PK, sa.ForeignKey("orders.id", ondelete="SET NULL")),
        sa.Column("order_item_id", PK, sa.ForeignKey("order_items.id", ondelete="SET NULL")),
        _ts("created_at", nullable=False),
    )
    op.create_index("ix_stock_movements_article_id", "stock_movements", ["article_id"])
    op.create_index("ix_stock_movements_article_time", "stock_movements", ["article_id", "created_at"])

    op.create_table(
        "serial_numbers",
        sa.Column("id", PK, primary_key=True),
        sa.Column("serial_no", sa.String(128), nullable=False),
        sa.Column("article_id", PK, sa.ForeignKey("articles.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("status", SERIAL_STATUS, nullable=False, server_default="IN_STOCK"),
        sa.Column("is_used", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("location_id", PK, sa.ForeignKey("warehouse_locations.id", ondelete="SET NULL")),
        sa.Column("order_item_id", PK, sa.ForeignKey("order_items.id", ondelete="SET NULL")),
        sa.Column("notes", sa.Text()),
        _ts("created_at", nullable=False),
        sa.UniqueConstraint("serial_no", name="uq_serial_number_serial_no"),
    )
    op.create_index("ix_serial_numbers_article_id", "serial_numbers", ["article_id"])

    op.create_table(
        "inventories",
        sa.Column("id", PK, primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("started_by", sa.String(200), nullable=False),
        sa.Column("status", INVENTORY_STATUS, nullable=False, server_default="IN_PROGRESS"),
        sa.Column("notes", sa.Text()),
        _ts("completed_at"),
        _ts("created_at", nullable=False),
    )

    op.create_table(
        "inventory_items",
        sa.Column("id", PK, primary_key=True),
        sa.Column("inventory_id", PK, sa.ForeignKey("inventories.id", ondelete="CASCADE"), nullable=False),
        sa.Column("article_id", PK, sa.ForeignKey("articles.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("expected_qty", sa.Integer(), nullable=False),
        sa.Column("counted_qty", sa.Integer()),
        sa.Column("difference", sa.Integer()),
        sa.Column("checked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("checked_by", sa.String(200)),
        _ts("checked_at"),
        sa.Column("notes", sa.Text()),
        sa.UniqueConstraint("inventory_id", "article_id", name="uq_inventory_item_article"),
        sa.CheckConstraint("counted_qty IS NULL OR counted_qty >= 0", name="ck_inventory_item_counted_nonneg"),
    )
    op.create_index("ix_inventory_items_inventory_id", "inventory_items", ["inventory_id"])


def downgrade() -> None:
    for table in (
        "inventory_items",
        "inventories",
        "serial_numbers",
        "stock_movements",
        "order_mobilfunk",
        "order_items",
        "orders",
        "number_sequences",
        "article_suppliers",
        "suppliers",
        "articles",
        "warehouse_locations",
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum in ENUMS:
        enum.drop(bind, checkfirst=True)
