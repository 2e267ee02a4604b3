"""
Receiving stream: goods arriving for ordered lines.

``receive_order_item`` is all or nothing. Stock counters, the IN movement,
the line's received quantity and every new serial number are written in one
unit of work; a duplicate serial number aborts the lot.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from backend.app.db.base import utcnow
from backend.app.db.models.core_types import MovementType, OrderStatus
from backend.app.db.models.models_v1 import Order, OrderItem, OrderMobilfunk
from backend.services import inventory, serials
from backend.services.errors import DomainRuleViolation, QuantityExceeded, ValidationFailed
from backend.services.order_status import sync_order_status
from backend.services.orders import get_mobilfunk, get_order_item, lock_order
from backend.services.procurement import ensure_not_cancelled

logger = logging.getLogger(__name__)


def receive_order_item(
    db: Session,
    order_item_id: int,
    *,
    quantity: int,
    performed_by: str | None = None,
    serial_numbers: Iterable[serials.SerialEntry] = (),
) -> OrderItem:
    if quantity < 1:
        raise ValidationFailed("Quantity must be at least 1")

    item = get_order_item(db, order_item_id)
    order = lock_order(db, item.order_id)
    ensure_not_cancelled(order)
    if item.article_id is None:
        raise DomainRuleViolation("Free-text items are received with receive_freetext_item")

    outstanding = item.quantity - item.received_qty
    if outstanding <= 0:
        raise DomainRuleViolation(f"Order item {item.id} was already received in full")
    if quantity > outstanding:
        raise QuantityExceeded(f"Cannot receive {quantity}: only {outstanding} outstanding")

    entries = list(serial_numbers)
    if len(entries) > quantity:
        raise ValidationFailed("More serial numbers than received units")

    article = inventory.lock_article(db, item.article_id)
    inventory.record_movement(
        db,
        article,
        MovementType.incoming,
        quantity,
        reason=f"Goods receipt for order {order.order_number}",
        performed_by=performed_by,
        order_id=order.id,
        order_item_id=item.id,
    )
    if item.ordered_at is not None:
        inventory.change_incoming_stock(article, -quantity)
    if entries:
        serials.register_serial_numbers(db, article, entries, order_item_id=item.id)

    item.received_qty += quantity
    item.received_at = utcnow()
    db.flush()

    sync_order_status(db, order.id)
    logger.info(
        "received %s x %s for %s item %s by %s (%s serials)",
        quantity,
        article.sku,
        order.order_number,
        item.id,
        performed_by,
        len(entries),
    )
    return item


def receive_freetext_item(db: Session, order_item_id: int, *, performed_by: str | None = None) -> OrderItem:
    """A free-text line arrives in full; nothing is booked to stock."""
    item = get_order_item(db, order_item_id)
    order = lock_order(db, item.order_id)
    ensure_not_cancelled(order)
    if item.article_id is not None:
        raise DomainRuleViolation("Article lines are received with receive_order_item")

    item.received_qty = item.quantity
    item.received_at = utcnow()
    db.flush()

    sync_order_status(db, order.id)
    logger.info("free-text item %s of %s received by %s", item.id, order.order_number, performed_by)
    return item


def receive_mobilfunk(db: Session, mobilfunk_id: int) -> OrderMobilfunk:
    mf = get_mobilfunk(db, mobilfunk_id)
    order = lock_order(db, mf.order_id)
    ensure_not_cancelled(order)

    mf.received = True
    mf.received_at = utcnow()
    db.flush()

    sync_order_status(db, order.id)
    logger.info("mobilfunk %s of %s received", mf.id, order.order_number)
    return mf


# ---------- queue ----------
@dataclass
class ReceivingView:
    order: Order
    pending_items: list[OrderItem]
    pending_mobilfunk: list[OrderMobilfunk]
    total_pending: int
    total_done: int


def pending_receipts(db: Session) -> list[ReceivingView]:
    """Orders with ordered lines or mobilfunk records that have not arrived yet."""
    orders = (
        db.execute(
            select(Order)
            .where(Order.status != OrderStatus.cancelled)
            .options(
                selectinload(Order.items).selectinload(OrderItem.article),
                selectinload(Order.items).selectinload(OrderItem.supplier),
                selectinload(Order.mobilfunk),
            )
            .order_by(Order.created_at, Order.id)
        )
        .scalars()
        .all()
    )

    views = []
    for order in orders:
        ordered_items = [i for i in order.items if i.needs_ordering and i.ordered_at]
        ordered_mf = [m for m in order.mobilfunk if m.ordered]
        pending_items = [i for i in ordered_items if i.received_qty < i.quantity]
        pending_mf = [m for m in ordered_mf if not m.received]
        total_pending = len(pending_items) + len(pending_mf)
        if not total_pending:
            continue
        views.append(
            ReceivingView(
                order=order,
                pending_items=pending_items,
                pending_mobilfunk=pending_mf,
                total_pending=total_pending,
                total_done=len(ordered_items) + len(ordered_mf) - total_pending,
            )
        )
    return views
