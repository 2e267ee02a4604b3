"""
Order status derivation.

``compute_order_status`` is a pure function of an order-shaped object: it
reads ``status``, the item and mobilfunk states and the shipping milestones
and returns the effective pipeline stage. It works on ORM ``Order`` rows and
on ``OrderSnapshot`` values alike and never writes to its argument.

``sync_order_status`` is the only writer: it recomputes and persists the
stored status when it differs. Every fulfillment operation calls it before
its unit of work commits.

Pipeline:
    NEW -> IN_COMMISSION -> IN_SETUP -> READY_TO_SHIP -> COMPLETED
    CANCELLED from any non-terminal stage (see ``can_cancel_order``)
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from backend.app.db.models.core_types import OrderStatus
from backend.app.db.models.models_v1 import Order
from backend.services.errors import NotFound

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ItemState:
    quantity: int
    picked_qty: int = 0
    needs_ordering: bool = True
    ordered_at: datetime | None = None
    received_qty: int = 0


@dataclass(frozen=True)
class MobilfunkState:
    setup_done: bool = False
    ordered: bool = False
    received: bool = False


@dataclass(frozen=True)
class OrderSnapshot:
    status: OrderStatus = OrderStatus.new
    items: tuple[ItemState, ...] = ()
    mobilfunk: tuple[MobilfunkState, ...] = ()
    tech_done_at: datetime | None = None
    setup_done_at: datetime | None = None
    shipped_at: datetime | None = None
    tracking_number: str | None = None

    @classmethod
    def from_order(cls, order) -> "OrderSnapshot":
        return cls(
            status=OrderStatus.parse(order.status),
            items=tuple(
                ItemState(
                    quantity=i.quantity,
                    picked_qty=i.picked_qty or 0,
                    needs_ordering=bool(i.needs_ordering),
                    ordered_at=i.ordered_at,
                    received_qty=i.received_qty or 0,
                )
                for i in order.items
            ),
            mobilfunk=tuple(
                MobilfunkState(setup_done=bool(m.setup_done), ordered=bool(m.ordered), received=bool(m.received))
                for m in order.mobilfunk
            ),
            tech_done_at=order.tech_done_at,
            setup_done_at=order.setup_done_at,
            shipped_at=order.shipped_at,
            tracking_number=order.tracking_number,
        )


@dataclass(frozen=True)
class OrderProgress:
    has_items: bool
    has_mobilfunk: bool
    all_picked: bool
    any_picked: bool
    all_mobilfunk_setup: bool
    any_mobilfunk_setup: bool
    is_shipped: bool
    needs_procurement: bool
    procurement_done: bool
    receiving_done: bool
    open_procurement: int
    pending_receipts: int


def order_progress(order) -> OrderProgress:
    """Per-stream progress flags (technician, procurement, receiving)."""
    items = list(order.items)
    mobilfunk = list(order.mobilfunk)

    orderable = [i for i in items if i.needs_ordering]
    open_procurement = sum(1 for i in orderable if not i.ordered_at) + sum(1 for m in mobilfunk if not m.ordered)
    pending_receipts = sum(
        1 for i in orderable if i.ordered_at and (i.received_qty or 0) < i.quantity
    ) + sum(1 for m in mobilfunk if m.ordered and not m.received)

    needs_procurement = bool(orderable) or bool(mobilfunk)
    all_received = all((i.received_qty or 0) >= i.quantity for i in orderable) and all(
        m.received or not m.ordered for m in mobilfunk
    )

    return OrderProgress(
        has_items=bool(items),
        has_mobilfunk=bool(mobilfunk),
        all_picked=all((i.picked_qty or 0) >= i.quantity for i in items),
        any_picked=any((i.picked_qty or 0) > 0 for i in items),
        all_mobilfunk_setup=all(m.setup_done for m in mobilfunk),
        any_mobilfunk_setup=any(m.setup_done for m in mobilfunk),
        is_shipped=bool(order.tech_done_at or order.shipped_at or order.tracking_number),
        needs_procurement=needs_procurement,
        procurement_done=open_procurement == 0,
        receiving_done=not needs_procurement or all_received,
        open_procurement=open_procurement,
        pending_receipts=pending_receipts,
    )


def compute_order_status(order) -> OrderStatus:
    stored = OrderStatus.parse(order.status)
    if stored is OrderStatus.cancelled:
        return OrderStatus.cancelled

    progress = order_progress(order)
    if stored is OrderStatus.completed or progress.is_shipped:
        return OrderStatus.completed

    if not (progress.has_items or progress.has_mobilfunk):
        return OrderStatus.new

    if progress.all_picked and progress.all_mobilfunk_setup:
        return OrderStatus.ready_to_ship

    started = progress.any_picked or progress.any_mobilfunk_setup
    if progress.all_picked and started:
        return OrderStatus.in_setup

    if started:
        return OrderStatus.in_commission

    return OrderStatus.new


def needs_procurement(order) -> bool:
    """Side signal: some line or mobilfunk record still has to be ordered."""
    if OrderStatus.parse(order.status).is_terminal:
        return False
    return order_progress(order).open_procurement > 0


def can_cancel_order(order) -> bool:
    if OrderStatus.parse(order.status).is_terminal:
        return False
    any_ordered = any(i.ordered_at for i in order.items)
    any_picked = any((i.picked_qty or 0) > 0 for i in order.items)
    any_mf_ordered = any(m.ordered for m in order.mobilfunk)
    return not (any_ordered or any_picked or any_mf_ordered)


def sync_order_status(db: Session, order_id: int) -> OrderStatus:
    order = db.get(Order, order_id)
    if order is None:
        raise NotFound("Order", order_id)

    db.flush()
    db.refresh(order, attribute_names=["items", "mobilfunk"])

    computed = compute_order_status(order)
    stored = OrderStatus.parse(order.status)
    if computed is not stored:
        logger.info("order %s status %s -> %s", order.order_number, stored.value, computed.value)
        order.status = computed
        db.flush()
    return computed
