from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String,
    Integer,
    DateTime,
    Boolean,
    ForeignKey,
    Numeric,
    Text,
    Enum,
    UniqueConstraint,
    Index,
    CheckConstraint,
    event,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.core.config import get_settings
from backend.app.db.base import Base, BigIntPK, utcnow
from backend.app.db.models.core_types import (
    ArticleCategory,
    MovementType,
    SerialNumberStatus,
    OrderStatus,
    DeliveryMethod,
    MobilfunkType,
    SimType,
    MobilfunkTariff,
    InventoryStatus,
)


def _enum(enum_cls, name: str) -> Enum:
    # persist the enum values ("IN", "NEW", ...) rather than the member names
    return Enum(enum_cls, name=name, values_callable=lambda e: [m.value for m in e])


# ---------- MASTER DATA ----------
class WarehouseLocation(Base):
    __tablename__ = "warehouse_locations"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    name: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class Article(Base):
    __tablename__ = "articles"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    sku: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    category: Mapped[ArticleCategory] = mapped_column(_enum(ArticleCategory, "article_category"), nullable=False)
    product_group: Mapped[str | None] = mapped_column(String(128))
    product_sub_group: Mapped[str | None] = mapped_column(String(128))
    avg_purchase_price: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    unit: Mapped[str] = mapped_column(String(32), default="Stk", nullable=False)
    min_stock_level: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # denormalized ledger counters, written only by the stock services
    current_stock: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    incoming_stock: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    notes: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    serial_numbers: Mapped[list["SerialNumber"]] = relationship(back_populates="article")
    suppliers: Mapped[list["ArticleSupplier"]] = relationship(back_populates="article")

    __table_args__ = (
        CheckConstraint("current_stock >= 0", name="ck_article_current_stock_nonneg"),
        CheckConstraint("incoming_stock >= 0", name="ck_article_incoming_stock_nonneg"),
        CheckConstraint("min_stock_level >= 0", name="ck_article_min_stock_nonneg"),
    )


class Supplier(Base):
    __tablename__ = "suppliers"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    contact_name: Mapped[str | None] = mapped_column(String(255))
    email: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(64))
    website: Mapped[str | None] = mapped_column(String(255))
    notes: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class ArticleSupplier(Base):
    __tablename__ = "article_suppliers"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    article_id: Mapped[int] = mapped_column(ForeignKey("articles.id", ondelete="CASCADE"), nullable=False)
    supplier_id: Mapped[int] = mapped_column(ForeignKey("suppliers.id", ondelete="CASCADE"), nullable=False)
    supplier_sku: Mapped[str | None] = mapped_column(String(64))
    unit_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="EUR", nullable=False)
    lead_time_days: Mapped[int | None] = mapped_column(Integer)
    min_order_qty: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    is_preferred: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)

    article: Mapped[Article] = relationship(back_populates="suppliers")
    supplier: Mapped[Supplier] = relationship()

    __table_args__ = (
        UniqueConstraint("article_id", "supplier_id", name="uq_article_supplier"),
        CheckConstraint("unit_price >= 0", name="ck_article_supplier_price_nonneg"),
        CheckConstraint("min_order_qty >= 1", name="ck_article_supplier_moq_pos"),
    )


# ---------- NUMBERING ----------
class NumberSequence(Base):
    """One row per counter (order numbers, article SKUs); locked on every allocation."""

    __tablename__ = "number_sequences"
    name: Mapped[str] = mapped_column(String(32), primary_key=True)
    value: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


@event.listens_for(NumberSequence.__table__, "after_create")
def _seed_number_sequences(table, connection, **kw):
    # allocation expects one row per prefix to lock
    settings = get_settings()
    names = {settings.ORDER_NUMBER_PREFIX, settings.ARTICLE_NUMBER_PREFIX}
    connection.execute(table.insert(), [{"name": n, "value": 0} for n in sorted(names)])


# ---------- ORDERS ----------
class Order(Base):
    __tablename__ = "orders"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    order_number: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    ordered_by: Mapped[str] = mapped_column(String(200), nullable=False)
    ordered_for: Mapped[str] = mapped_column(String(200), nullable=False)
    cost_center: Mapped[str] = mapped_column(String(64), nullable=False)
    delivery_method: Mapped[DeliveryMethod] = mapped_column(
        _enum(DeliveryMethod, "delivery_method"), nullable=False
    )
    shipping_company: Mapped[str | None] = mapped_column(String(255))
    shipping_street: Mapped[str | None] = mapped_column(String(255))
    shipping_zip: Mapped[str | None] = mapped_column(String(16))
    shipping_city: Mapped[str | None] = mapped_column(String(128))
    pickup_by: Mapped[str | None] = mapped_column(String(200))
    notes: Mapped[str | None] = mapped_column(Text)

    status: Mapped[OrderStatus] = mapped_column(
        _enum(OrderStatus, "order_status"),
        default=OrderStatus.new,
        nullable=False,
    )
    technician_name: Mapped[str | None] = mapped_column(String(200))

    # pipeline milestones
    proc_done_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    setup_done_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    tech_done_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    shipped_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    shipped_by: Mapped[str | None] = mapped_column(String(200))
    tracking_number: Mapped[str | None] = mapped_column(String(128))

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    items: Mapped[list["OrderItem"]] = relationship(
        back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.id"
    )
    mobilfunk: Mapped[list["OrderMobilfunk"]] = relationship(
        back_populates="order", cascade="all, delete-orphan", order_by="OrderMobilfunk.id"
    )

    __table_args__ = (Index("ix_orders_status_created", "status", "created_at"),)


class OrderItem(Base):
    __tablename__ = "order_items"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    order_id: Mapped[int] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    article_id: Mapped[int | None] = mapped_column(ForeignKey("articles.id", ondelete="RESTRICT"))
    free_text: Mapped[str | None] = mapped_column(String(500))
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    needs_ordering: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # procurement
    supplier_id: Mapped[int | None] = mapped_column(ForeignKey("suppliers.id", ondelete="SET NULL"))
    supplier_order_no: Mapped[str | None] = mapped_column(String(128))
    ordered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    ordered_by: Mapped[str | None] = mapped_column(String(200))

    # receiving
    received_qty: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    received_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # picking
    picked_qty: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    picked_by: Mapped[str | None] = mapped_column(String(200))
    picked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    order: Mapped[Order] = relationship(back_populates="items")
    article: Mapped[Article | None] = relationship()
    supplier: Mapped[Supplier | None] = relationship()
    serial_numbers: Mapped[list["SerialNumber"]] = relationship(back_populates="order_item")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_order_item_qty_pos"),
        CheckConstraint("picked_qty >= 0 AND picked_qty <= quantity", name="ck_order_item_picked_le_qty"),
        CheckConstraint("received_qty >= 0", name="ck_order_item_received_nonneg"),
        CheckConstraint(
            "article_id IS NOT NULL OR free_text IS NOT NULL",
            name="ck_order_item_article_or_free_text",
        ),
    )


class OrderMobilfunk(Base):
    __tablename__ = "order_mobilfunk"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    order_id: Mapped[int] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type: Mapped[MobilfunkType] = mapped_column(_enum(MobilfunkType, "mobilfunk_type"), nullable=False)
    sim_type: Mapped[SimType | None] = mapped_column(_enum(SimType, "sim_type"))
    tariff: Mapped[MobilfunkTariff | None] = mapped_column(_enum(MobilfunkTariff, "mobilfunk_tariff"))
    phone_note: Mapped[str | None] = mapped_column(Text)
    sim_note: Mapped[str | None] = mapped_column(Text)

    ordered: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    ordered_by: Mapped[str | None] = mapped_column(String(200))
    ordered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    provider_order_no: Mapped[str | None] = mapped_column(String(128))

    received: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    received_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    setup_done: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    setup_by: Mapped[str | None] = mapped_column(String(200))
    setup_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    imei: Mapped[str | None] = mapped_column(String(32))
    phone_number: Mapped[str | None] = mapped_column(String(32))

    delivered: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    order: Mapped[Order] = relationship(back_populates="mobilfunk")


# ---------- INVENTORY ----------
class StockMovement(Base):
    """Append-only ledger row. Never updated, never deleted."""

    __tablename__ = "stock_movements"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)

    article_id: Mapped[int] = mapped_column(
        ForeignKey("articles.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    type: Mapped[MovementType] = mapped_column(_enum(MovementType, "movement_type"), nullable=False)
    # signed for IN/OUT, absolute new stock for ADJUSTMENT
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str | None] = mapped_column(String(255))
    performed_by: Mapped[str | None] = mapped_column(String(200))

    order_id: Mapped[int | None] = mapped_column(ForeignKey("orders.id", ondelete="SET NULL"))
    order_item_id: Mapped[int | None] = mapped_column(ForeignKey("order_items.id", ondelete="SET NULL"))

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    article: Mapped[Article] = relationship()

    __table_args__ = (Index("ix_stock_movements_article_time", "article_id", "created_at"),)


class SerialNumber(Base):
    __tablename__ = "serial_numbers"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    serial_no: Mapped[str] = mapped_column(String(128), nullable=False)
    article_id: Mapped[int] = mapped_column(
        ForeignKey("articles.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    status: Mapped[SerialNumberStatus] = mapped_column(
        _enum(SerialNumberStatus, "serial_number_status"),
        default=SerialNumberStatus.in_stock,
        nullable=False,
    )
    is_used: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    location_id: Mapped[int | None] = mapped_column(ForeignKey("warehouse_locations.id", ondelete="SET NULL"))
    order_item_id: Mapped[int | None] = mapped_column(ForeignKey("order_items.id", ondelete="SET NULL"))
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    article: Mapped[Article] = relationship(back_populates="serial_numbers")
    location: Mapped[WarehouseLocation | None] = relationship()
    order_item: Mapped[OrderItem | None] = relationship(back_populates="serial_numbers")

    __table_args__ = (UniqueConstraint("serial_no", name="uq_serial_number_serial_no"),)


class Inventory(Base):
    __tablename__ = "inventories"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    started_by: Mapped[str] = mapped_column(String(200), nullable=False)
    status: Mapped[InventoryStatus] = mapped_column(
        _enum(InventoryStatus, "inventory_status"),
        default=InventoryStatus.in_progress,
        nullable=False,
    )
    notes: Mapped[str | None] = mapped_column(Text)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    items: Mapped[list["InventoryItem"]] = relationship(
        back_populates="inventory", cascade="all, delete-orphan", order_by="InventoryItem.id"
    )


class InventoryItem(Base):
    __tablename__ = "inventory_items"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    inventory_id: Mapped[int] = mapped_column(
        ForeignKey("inventories.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    article_id: Mapped[int] = mapped_column(ForeignKey("articles.id", ondelete="RESTRICT"), nullable=False)
    expected_qty: Mapped[int] = mapped_column(Integer, nullable=False)
    counted_qty: Mapped[int | None] = mapped_column(Integer)
    difference: Mapped[int | None] = mapped_column(Integer)
    checked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    checked_by: Mapped[str | None] = mapped_column(String(200))
    checked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    notes: Mapped[str | None] = mapped_column(Text)

    inventory: Mapped[Inventory] = relationship(back_populates="items")
    article: Mapped[Article] = relationship()

    __table_args__ = (
        UniqueConstraint("inventory_id", "article_id", name="uq_inventory_item_article"),
        CheckConstraint("counted_qty IS NULL OR counted_qty >= 0", name="ck_inventory_item_counted_nonneg"),
    )
