"""
Procurement stream.

Marks order lines and mobilfunk records as ordered with the supplier or
provider. ``mark_item_ordered`` is the only writer that raises
``Article.incoming_stock``; receiving lowers it again.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from backend.app.db.base import utcnow
from backend.app.db.models.core_types import OrderStatus
from backend.app.db.models.models_v1 import ArticleSupplier, Order, OrderItem, OrderMobilfunk, Supplier
from backend.services import inventory
from backend.services.errors import DomainRuleViolation, NotFound, OrderClosed
from backend.services.order_status import order_progress, sync_order_status
from backend.services.orders import get_mobilfunk, get_order_item, lock_order

logger = logging.getLogger(__name__)


def ensure_not_cancelled(order: Order) -> None:
    # shipped orders may still have lines waiting for the supplier
    if OrderStatus.parse(order.status) is OrderStatus.cancelled:
        raise OrderClosed(order.order_number, OrderStatus.cancelled)


def mark_item_ordered(
    db: Session,
    order_item_id: int,
    *,
    supplier_id: int,
    supplier_order_no: str,
    ordered_by: str,
) -> OrderItem:
    item = get_order_item(db, order_item_id)
    order = lock_order(db, item.order_id)
    ensure_not_cancelled(order)
    if item.ordered_at is not None:
        raise DomainRuleViolation(f"Order item {item.id} was already ordered")
    if db.get(Supplier, supplier_id) is None:
        raise NotFound("Supplier", supplier_id)

    item.supplier_id = supplier_id
    item.supplier_order_no = supplier_order_no
    item.ordered_at = utcnow()
    item.ordered_by = ordered_by

    # units received before the supplier order never become incoming
    outstanding = item.quantity - item.received_qty
    if item.article_id is not None and outstanding > 0:
        article = inventory.lock_article(db, item.article_id)
        inventory.change_incoming_stock(article, outstanding)
    db.flush()

    sync_order_status(db, order.id)
    logger.info(
        "order item %s of %s ordered at supplier %s (%s) by %s",
        item.id,
        order.order_number,
        supplier_id,
        supplier_order_no,
        ordered_by,
    )
    return item


def mark_mobilfunk_ordered(
    db: Session,
    mobilfunk_id: int,
    *,
    provider_order_no: str,
    ordered_by: str,
) -> OrderMobilfunk:
    mf = get_mobilfunk(db, mobilfunk_id)
    order = lock_order(db, mf.order_id)
    ensure_not_cancelled(order)

    mf.ordered = True
    mf.ordered_by = ordered_by
    mf.ordered_at = utcnow()
    mf.provider_order_no = provider_order_no
    db.flush()

    sync_order_status(db, order.id)
    logger.info("mobilfunk %s of %s ordered (%s) by %s", mf.id, order.order_number, provider_order_no, ordered_by)
    return mf


def finish_procurement(db: Session, order_id: int) -> Order:
    order = lock_order(db, order_id)
    ensure_not_cancelled(order)
    order.proc_done_at = utcnow()
    db.flush()
    sync_order_status(db, order.id)
    logger.info("procurement for %s finished", order.order_number)
    return order


# ---------- queue ----------
@dataclass
class ProcurementView:
    order: Order
    orderable_items: list[OrderItem]
    total_orderable: int
    total_ordered: int
    preferred_suppliers: dict[int, Supplier]


def procurement_queue(db: Session) -> list[ProcurementView]:
    """Orders with lines or mobilfunk records to order, oldest first."""
    orders = (
        db.execute(
            select(Order)
            .where(Order.status != OrderStatus.cancelled)
            .where(Order.proc_done_at.is_(None))
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

    article_ids = {i.article_id for o in orders for i in o.items if i.needs_ordering and i.article_id}
    preferred = {}
    if article_ids:
        links = db.execute(
            select(ArticleSupplier)
            .where(ArticleSupplier.article_id.in_(article_ids), ArticleSupplier.is_preferred.is_(True))
            .options(selectinload(ArticleSupplier.supplier))
        ).scalars()
        for link in links:
            preferred.setdefault(link.article_id, link.supplier)

    views = []
    for order in orders:
        progress = order_progress(order)
        if not progress.needs_procurement:
            continue
        orderable = [i for i in order.items if i.needs_ordering]
        total = len(orderable) + len(order.mobilfunk)
        views.append(
            ProcurementView(
                order=order,
                orderable_items=orderable,
                total_orderable=total,
                total_ordered=total - progress.open_procurement,
                preferred_suppliers={
                    i.article_id: preferred[i.article_id] for i in orderable if i.article_id in preferred
                },
            )
        )
    return views
