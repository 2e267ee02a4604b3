"""
Order intake and order-level transitions.

Fulfillment of single lines (pick / receive / order) lives in
``fulfillment``, ``procurement`` and ``receiving``; this module owns the
order itself: creation with number allocation, listing with the derived
status, cancellation, manual completion and free-text resolution.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from sqlalchemy import or_, select
from sqlalchemy.orm import Session, selectinload

from backend.app.db.models.core_types import ArticleCategory, OrderStatus, StockAvailability
from backend.app.db.models.models_v1 import Article, Order, OrderItem, OrderMobilfunk
from backend.app.schemas.order import OrderCreate
from backend.services.errors import (
    ItemAlreadyResolved,
    NotFound,
    OrderClosed,
    OrderNotCancellable,
    ValidationFailed,
)
from backend.services import inventory
from backend.services.numbering import allocate_order_number
from backend.services.order_status import can_cancel_order, compute_order_status, sync_order_status

logger = logging.getLogger(__name__)


def _order_options():
    return (
        selectinload(Order.items).selectinload(OrderItem.article),
        selectinload(Order.items).selectinload(OrderItem.supplier),
        selectinload(Order.mobilfunk),
    )


# ---------- availability ----------
def calculate_stock_availability(items: Iterable) -> StockAvailability:
    """
    Traffic light for an order's article lines.

    green   current stock covers the requested quantity of every line
    yellow  the shortfall is covered once incoming stock arrives
    red     an unresolved free-text line, or a shortfall beyond incoming stock

    Lines are compared on their full ``quantity``; what the technician can
    still pick is ``compute_pick_availability``.
    """
    short = []
    for item in items:
        if item.article is None:
            # free text, not in the catalog yet
            return StockAvailability.red
        if item.article.current_stock < item.quantity:
            short.append(item)

    if not short:
        return StockAvailability.green
    if all(i.article.current_stock + i.article.incoming_stock >= i.quantity for i in short):
        return StockAvailability.yellow
    return StockAvailability.red


@dataclass
class OrderView:
    order: Order
    computed_status: OrderStatus
    stock_availability: StockAvailability


def order_view(order: Order) -> OrderView:
    return OrderView(
        order=order,
        computed_status=compute_order_status(order),
        stock_availability=calculate_stock_availability(order.items),
    )


# ---------- lookups ----------
def get_order(db: Session, order_id: int) -> Order:
    order = db.execute(select(Order).where(Order.id == order_id).options(*_order_options())).scalar_one_or_none()
    if order is None:
        raise NotFound("Order", order_id)
    return order


def lock_order(db: Session, order_id: int) -> Order:
    order = db.execute(select(Order).where(Order.id == order_id).with_for_update()).scalars().first()
    if order is None:
        raise NotFound("Order", order_id)
    return order


def get_order_item(db: Session, order_item_id: int) -> OrderItem:
    item = db.execute(select(OrderItem).where(OrderItem.id == order_item_id).with_for_update()).scalars().first()
    if item is None:
        raise NotFound("Order item", order_item_id)
    return item


def get_mobilfunk(db: Session, mobilfunk_id: int) -> OrderMobilfunk:
    mf = db.get(OrderMobilfunk, mobilfunk_id)
    if mf is None:
        raise NotFound("Mobilfunk", mobilfunk_id)
    return mf


def ensure_open(order: Order) -> None:
    status = OrderStatus.parse(order.status)
    if status.is_terminal:
        raise OrderClosed(order.order_number, status)


def list_orders(db: Session, *, status: OrderStatus | None = None, search: str | None = None) -> list[OrderView]:
    """Newest first. ``status`` filters on the derived status, not the stored one."""
    stmt = select(Order).options(*_order_options()).order_by(Order.created_at.desc(), Order.id.desc())
    if search:
        pattern = f"%{search.strip()}%"
        stmt = stmt.where(
            or_(
                Order.order_number.ilike(pattern),
                Order.ordered_by.ilike(pattern),
                Order.ordered_for.ilike(pattern),
                Order.cost_center.ilike(pattern),
            )
        )
    views = [order_view(o) for o in db.execute(stmt).scalars().all()]
    if status is not None:
        views = [v for v in views if v.computed_status is status]
    return views


# ---------- creation ----------
def _needs_ordering(lines: list[tuple[OrderItem, Article | None]]) -> bool:
    # procurement is skipped only when the whole order is consumable stock
    pure_consumable = all(
        article is not None and article.category is ArticleCategory.consumable for _, article in lines
    )
    return not pure_consumable


def create_order(db: Session, payload: OrderCreate) -> Order:
    lines: list[tuple[OrderItem, Article | None]] = []
    errors = []
    for pos, item in enumerate(payload.items, start=1):
        article = None
        if item.article_id is not None:
            article = db.get(Article, item.article_id)
            if article is None:
                raise NotFound("Article", item.article_id)
            if not article.is_active:
                errors.append(f"items.{pos}: article {article.sku} is inactive")
        lines.append(
            (
                OrderItem(article_id=item.article_id, free_text=item.free_text, quantity=item.quantity),
                article,
            )
        )
    if errors:
        raise ValidationFailed.from_messages(errors)

    needs_ordering = _needs_ordering(lines)
    order = Order(
        order_number=allocate_order_number(db),
        **payload.model_dump(exclude={"items", "mobilfunk"}),
        status=OrderStatus.new,
    )
    for line, _ in lines:
        line.needs_ordering = needs_ordering
        order.items.append(line)
    for mf in payload.mobilfunk:
        order.mobilfunk.append(OrderMobilfunk(**mf.model_dump()))

    db.add(order)
    db.flush()
    sync_order_status(db, order.id)
    logger.info(
        "order %s created by %s for %s (%s items, %s mobilfunk, needs_ordering=%s)",
        order.order_number,
        order.ordered_by,
        order.ordered_for,
        len(order.items),
        len(order.mobilfunk),
        needs_ordering,
    )
    return order


# ---------- transitions ----------
def cancel_order(db: Session, order_id: int) -> Order:
    order = lock_order(db, order_id)
    ensure_open(order)
    db.refresh(order, attribute_names=["items", "mobilfunk"])
    if not can_cancel_order(order):
        raise OrderNotCancellable(order.order_number)

    order.status = OrderStatus.cancelled
    db.flush()
    logger.info("order %s cancelled", order.order_number)
    return order


def complete_order(db: Session, order_id: int) -> Order:
    order = lock_order(db, order_id)
    ensure_open(order)
    order.status = OrderStatus.completed
    db.flush()
    logger.info("order %s completed manually", order.order_number)
    return order


def resolve_freetext_item(db: Session, order_item_id: int, article_id: int) -> OrderItem:
    """
    Assign a catalog article to a free-text line. One way; there is no un-resolve.

    A line that was already ordered starts counting towards the article's
    incoming stock with whatever has not arrived yet.
    """
    item = get_order_item(db, order_item_id)
    order = lock_order(db, item.order_id)
    ensure_open(order)
    if item.article_id is not None:
        raise ItemAlreadyResolved(item.id)

    article = inventory.lock_article(db, article_id)
    if not article.is_active:
        raise ValidationFailed(f"Article {article.sku} is inactive")

    outstanding = item.quantity - item.received_qty
    if item.ordered_at is not None and outstanding > 0:
        inventory.change_incoming_stock(article, outstanding)

    logger.info("order item %s resolved %r -> %s", item.id, item.free_text, article.sku)
    item.article_id = article.id
    item.free_text = None
    db.flush()
    sync_order_status(db, order.id)
    return item


def set_technician_name(db: Session, order_id: int, name: str) -> Order:
    order = lock_order(db, order_id)
    order.technician_name = name
    db.flush()
    return order


def toggle_mobilfunk_delivered(db: Session, mobilfunk_id: int, delivered: bool) -> OrderMobilfunk:
    mf = get_mobilfunk(db, mobilfunk_id)
    mf.delivered = delivered
    db.flush()
    return mf


def active_mobilfunk(db: Session, search: str | None = None) -> list[OrderMobilfunk]:
    """Set-up mobilfunk records, searchable by IMEI, phone number, order or recipient."""
    stmt = (
        select(OrderMobilfunk)
        .join(Order, Order.id == OrderMobilfunk.order_id)
        .where(OrderMobilfunk.setup_done.is_(True))
        .options(selectinload(OrderMobilfunk.order))
        .order_by(OrderMobilfunk.setup_at.desc())
    )
    if search:
        pattern = f"%{search.strip()}%"
        stmt = stmt.where(
            or_(
                OrderMobilfunk.imei.ilike(pattern),
                OrderMobilfunk.phone_number.ilike(pattern),
                Order.ordered_for.ilike(pattern),
                Order.order_number.ilike(pattern),
            )
        )
    return list(db.execute(stmt).scalars().all())

