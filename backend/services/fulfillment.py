"""
Technician stream: picking stock for order lines, mobilfunk setup and the
hand-over milestones.

Every function here is one step of a unit of work: it locks what it
touches, writes ledger / serial / order rows, resyncs the order status and
leaves the commit to the caller.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from backend.app.db.base import utcnow
from backend.app.db.models.core_types import (
    ArticleCategory,
    MovementType,
    OrderStatus,
    StockAvailability,
)
from backend.app.db.models.models_v1 import Order, OrderItem, OrderMobilfunk, SerialNumber
from backend.services import inventory, serials
from backend.services.errors import (
    DomainRuleViolation,
    NothingToUnpick,
    QuantityExceeded,
    SerialNumberRequired,
    ValidationFailed,
)
from backend.services.order_status import compute_order_status, sync_order_status
from backend.services.orders import ensure_open, get_mobilfunk, get_order_item, lock_order

logger = logging.getLogger(__name__)


# ---------- picking ----------
def pick_item(
    db: Session,
    order_item_id: int,
    *,
    quantity: int,
    technician_name: str,
    serial_number_ids: Sequence[int] = (),
) -> OrderItem:
    """
    Take ``quantity`` units of the line's article out of stock.

    SERIALIZED articles need exactly one serial number per unit; those
    serials move IN_STOCK -> DEPLOYED and are linked to the line. Picks
    accumulate on the line and never exceed its quantity.
    """
    if quantity < 1:
        raise ValidationFailed("Quantity must be at least 1")

    item = get_order_item(db, order_item_id)
    order = lock_order(db, item.order_id)
    ensure_open(order)
    if item.article_id is None:
        raise DomainRuleViolation("Free-text items must be resolved to an article before picking")

    remaining = item.quantity - item.picked_qty
    if quantity > remaining:
        raise QuantityExceeded(
            f"Cannot pick {quantity}: only {remaining} of {item.quantity} left on the line"
        )

    article = inventory.lock_article(db, item.article_id)
    ids = list(dict.fromkeys(serial_number_ids))
    if article.category is ArticleCategory.serialized:
        if not ids:
            raise SerialNumberRequired(f"Article {article.sku} requires a serial number")
        if len(ids) != quantity:
            raise SerialNumberRequired(f"Article {article.sku} requires {quantity} serial numbers, got {len(ids)}")
    elif ids and len(ids) != quantity:
        raise ValidationFailed("Number of serial numbers does not match the quantity")

    inventory.record_movement(
        db,
        article,
        MovementType.outgoing,
        -quantity,
        reason=f"Pick for order {order.order_number}",
        performed_by=technician_name,
        order_id=order.id,
        order_item_id=item.id,
    )
    item.picked_qty += quantity
    item.picked_by = technician_name
    item.picked_at = utcnow()
    if ids:
        serials.deploy_serials(db, article, item, ids)
    db.flush()

    sync_order_status(db, order.id)
    logger.info(
        "picked %s x %s for %s item %s by %s", quantity, article.sku, order.order_number, item.id, technician_name
    )
    return item


def unpick_item(db: Session, order_item_id: int, *, technician_name: str) -> OrderItem:
    """
    Put everything picked on the line back into stock.

    The credited quantity is what the line records as picked, so a second
    unpick finds nothing and fails instead of crediting stock twice.
    """
    item = get_order_item(db, order_item_id)
    order = lock_order(db, item.order_id)
    ensure_open(order)
    if item.article_id is None or item.picked_qty <= 0:
        raise NothingToUnpick(item.id)

    article = inventory.lock_article(db, item.article_id)
    quantity = item.picked_qty
    inventory.record_movement(
        db,
        article,
        MovementType.incoming,
        quantity,
        reason=f"Pick reversed for order {order.order_number}",
        performed_by=technician_name,
        order_id=order.id,
        order_item_id=item.id,
    )
    released = serials.release_serials(db, item)

    item.picked_qty = 0
    item.picked_by = None
    item.picked_at = None
    db.flush()

    sync_order_status(db, order.id)
    logger.info(
        "unpicked %s x %s for %s item %s by %s (%s serials released)",
        quantity,
        article.sku,
        order.order_number,
        item.id,
        technician_name,
        len(released),
    )
    return item


# ---------- mobilfunk setup ----------
def setup_mobilfunk(
    db: Session,
    mobilfunk_id: int,
    *,
    technician_name: str,
    imei: str | None = None,
    phone_number: str | None = None,
) -> OrderMobilfunk:
    mf = get_mobilfunk(db, mobilfunk_id)
    order = lock_order(db, mf.order_id)
    ensure_open(order)

    mf.imei = imei or None
    mf.phone_number = phone_number or None
    mf.setup_done = True
    mf.setup_by = technician_name
    mf.setup_at = utcnow()
    db.flush()

    sync_order_status(db, order.id)
    logger.info("mobilfunk %s of %s set up by %s", mf.id, order.order_number, technician_name)
    return mf


def reset_mobilfunk_setup(db: Session, mobilfunk_id: int) -> OrderMobilfunk:
    mf = get_mobilfunk(db, mobilfunk_id)
    order = lock_order(db, mf.order_id)
    ensure_open(order)

    mf.imei = None
    mf.phone_number = None
    mf.setup_done = False
    mf.setup_by = None
    mf.setup_at = None
    db.flush()

    sync_order_status(db, order.id)
    logger.info("mobilfunk %s of %s setup reset", mf.id, order.order_number)
    return mf


# ---------- milestones ----------
def mark_setup_done(db: Session, order_id: int) -> Order:
    order = lock_order(db, order_id)
    ensure_open(order)
    order.setup_done_at = utcnow()
    db.flush()
    sync_order_status(db, order.id)
    logger.info("order %s setup done", order.order_number)
    return order


def finish_tech_work(
    db: Session,
    order_id: int,
    *,
    technician_name: str,
    tracking_number: str | None = None,
) -> Order:
    """Hand-over: shipped or picked up. The order derives to COMPLETED."""
    order = lock_order(db, order_id)
    ensure_open(order)

    now = utcnow()
    order.tech_done_at = now
    order.shipped_at = now
    order.shipped_by = technician_name
    order.tracking_number = tracking_number or None
    db.flush()

    sync_order_status(db, order.id)
    logger.info(
        "order %s handed over by %s (tracking %s)", order.order_number, technician_name, order.tracking_number
    )
    return order


# ---------- technician queue ----------
def compute_pick_availability(items: Iterable) -> StockAvailability:
    """
    Can the technician pick what is still open?

    green   every open line is covered with room to spare
    yellow  covered, but some article's stock equals the open quantity
    red     a free-text line is still open, or stock is short
    """
    tight = False
    for item in items:
        remaining = item.quantity - (item.picked_qty or 0)
        if remaining <= 0:
            continue
        if item.article is None:
            return StockAvailability.red
        if item.article.current_stock < remaining:
            return StockAvailability.red
        if item.article.current_stock == remaining:
            tight = True
    return StockAvailability.yellow if tight else StockAvailability.green


@dataclass
class TechOrderView:
    order: Order
    computed_status: OrderStatus
    total_items: int
    picked_items: int
    total_mobilfunk: int
    setup_mobilfunk: int
    availability: StockAvailability


def technician_orders(db: Session) -> list[TechOrderView]:
    """Open orders still waiting for the technician, oldest first. Orders whose stock is short are hidden."""
    orders = (
        db.execute(
            select(Order)
            .where(Order.status.not_in([OrderStatus.completed, OrderStatus.cancelled]))
            .where(Order.tech_done_at.is_(None))
            .options(selectinload(Order.items).selectinload(OrderItem.article), selectinload(Order.mobilfunk))
            .order_by(Order.created_at, Order.id)
        )
        .scalars()
        .all()
    )

    views = []
    for order in orders:
        view = TechOrderView(
            order=order,
            computed_status=compute_order_status(order),
            total_items=sum(i.quantity for i in order.items),
            picked_items=sum(i.picked_qty for i in order.items),
            total_mobilfunk=len(order.mobilfunk),
            setup_mobilfunk=sum(1 for m in order.mobilfunk if m.setup_done),
            availability=compute_pick_availability(order.items),
        )
        if view.availability is not StockAvailability.red:
            views.append(view)
    return views


def pickable_serials(db: Session, order: Order) -> dict[int, list[SerialNumber]]:
    """IN_STOCK serial numbers per article id for the serialized lines of ``order``."""
    result = {}
    for item in order.items:
        if item.article is None or item.article.category is not ArticleCategory.serialized:
            continue
        if item.article_id not in result:
            result[item.article_id] = serials.available_serials(db, item.article_id)
    return result
