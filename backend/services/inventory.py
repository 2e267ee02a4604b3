"""
Stock ledger.

Every change of ``Article.current_stock`` goes through ``record_movement``:
one append-only ``StockMovement`` row plus the matching counter update, on a
row locked with ``SELECT ... FOR UPDATE``. ``Article.incoming_stock`` only
moves through ``change_incoming_stock`` (procurement up, receiving down).

Ledger semantics:
    IN / OUT     quantity is the signed delta, counters add it
    ADJUSTMENT   quantity is the new absolute stock, counters take it as is

``reconcile_stock`` replays the ledger with exactly those rules and reports
(or repairs) any drift of the denormalized counters.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from sqlalchemy import select, func
from sqlalchemy.orm import Session, selectinload

from backend.app.db.models.models_v1 import (
    Article,
    OrderItem,
    SerialNumber,
    StockMovement,
)
from backend.app.db.models.core_types import MovementType
from backend.services.errors import InsufficientStock, NotFound, ValidationFailed
from backend.services import serials

logger = logging.getLogger(__name__)


def lock_article(db: Session, article_id: int) -> Article:
    article = (
        db.execute(select(Article).where(Article.id == article_id).with_for_update())
        .scalars()
        .first()
    )
    if article is None:
        raise NotFound("Article", article_id)
    return article


def record_movement(
    db: Session,
    article: Article,
    movement_type: MovementType,
    quantity: int,
    *,
    reason: str | None = None,
    performed_by: str | None = None,
    order_id: int | None = None,
    order_item_id: int | None = None,
) -> StockMovement:
    """
    Append one ledger row and apply it to ``article.current_stock``.
    The caller holds the article lock (``lock_article``).
    """
    if movement_type is MovementType.adjustment:
        if quantity < 0:
            raise ValidationFailed("Stock cannot be negative")
        new_stock = quantity
    else:
        new_stock = article.current_stock + quantity
        if new_stock < 0:
            raise InsufficientStock(available=article.current_stock, requested=-quantity)

    mv = StockMovement(
        article_id=article.id,
        type=movement_type,
        quantity=quantity,
        reason=reason,
        performed_by=performed_by,
        order_id=order_id,
        order_item_id=order_item_id,
    )
    db.add(mv)
    article.current_stock = new_stock
    db.flush()
    return mv


def change_incoming_stock(article: Article, delta: int) -> None:
    new_value = article.incoming_stock + delta
    if new_value < 0:
        # counters drifted; reconcile_stock reports it
        logger.warning(
            "incoming stock of %s would drop below zero (%s %+d), clamping",
            article.sku,
            article.incoming_stock,
            delta,
        )
        new_value = 0
    article.incoming_stock = new_value


# ---------- manual bookings ----------
def record_manual_movement(
    db: Session,
    *,
    article_id: int,
    movement_type: MovementType,
    quantity: int,
    reason: str | None = None,
    performed_by: str | None = None,
) -> StockMovement:
    """
    Stock booking outside any order. ``quantity`` is always given positive:
    IN adds it, OUT removes it, ADJUSTMENT sets the stock to it.
    """
    if quantity < 1:
        raise ValidationFailed("Quantity must be at least 1")

    article = lock_article(db, article_id)
    signed = -quantity if movement_type is MovementType.outgoing else quantity
    mv = record_movement(
        db,
        article,
        movement_type,
        signed,
        reason=reason,
        performed_by=performed_by,
    )
    logger.info("manual %s of %s for %s by %s", movement_type.value, quantity, article.sku, performed_by)
    return mv


def receive_goods(
    db: Session,
    *,
    article_id: int,
    quantity: int,
    reason: str | None = None,
    performed_by: str | None = None,
    serial_numbers: Iterable[serials.SerialEntry] = (),
) -> StockMovement:
    """Goods arriving without an order: IN booking plus optional serial numbers."""
    if quantity < 1:
        raise ValidationFailed("Quantity must be at least 1")

    article = lock_article(db, article_id)
    mv = record_movement(
        db,
        article,
        MovementType.incoming,
        quantity,
        reason=reason or "Goods receipt",
        performed_by=performed_by,
    )
    entries = list(serial_numbers)
    if entries:
        serials.register_serial_numbers(db, article, entries)

    logger.info("received %s x %s (%s serials) by %s", quantity, article.sku, len(entries), performed_by)
    return mv


# ---------- queries ----------
def list_stock_movements(
    db: Session,
    *,
    article_id: int | None = None,
    movement_type: MovementType | None = None,
    limit: int = 50,
    since=None,
) -> list[StockMovement]:
    stmt = (
        select(StockMovement)
        .options(selectinload(StockMovement.article))
        .order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
        .limit(limit)
    )
    if article_id is not None:
        stmt = stmt.where(StockMovement.article_id == article_id)
    if movement_type is not None:
        stmt = stmt.where(StockMovement.type == movement_type)
    if since is not None:
        stmt = stmt.where(StockMovement.created_at >= since)
    return list(db.execute(stmt).scalars().all())


def stock_articles(db: Session) -> list[tuple[Article, list[SerialNumber]]]:
    """Active articles with stock on hand, each with its IN_STOCK serial numbers."""
    articles = (
        db.execute(
            select(Article)
            .where(Article.is_active.is_(True))
            .where(Article.current_stock > 0)
            .order_by(Article.name)
        )
        .scalars()
        .all()
    )
    result = []
    for a in articles:
        result.append((a, serials.available_serials(db, a.id)))
    return result


# ---------- reconciliation ----------
@dataclass(frozen=True)
class StockDrift:
    article_id: int
    sku: str
    current_stock: int
    ledger_stock: int
    incoming_stock: int
    expected_incoming: int

    @property
    def has_drift(self) -> bool:
        return self.current_stock != self.ledger_stock or self.incoming_stock != self.expected_incoming


def replay_ledger(movements: Iterable[StockMovement]) -> int:
    stock = 0
    for mv in movements:
        if mv.type is MovementType.adjustment:
            stock = mv.quantity
        else:
            stock += mv.quantity
    return stock


def reconcile_stock(
    db: Session,
    *,
    article_ids: Iterable[int] | None = None,
    repair: bool = False,
) -> list[StockDrift]:
    """
    Recompute both counters from their sources of truth.

    Rules:
        current_stock  = ledger replay (IN/OUT additive, ADJUSTMENT absolute)
        incoming_stock = SUM(quantity - received_qty) over article lines
                         that were ordered and are not fully received

    Returns only articles that drifted. With ``repair=True`` the counters are
    overwritten under row lock (no ledger row is written).
    """
    stmt = select(Article).order_by(Article.id)
    if article_ids is not None:
        ids = sorted({int(a) for a in article_ids if a is not None})
        if not ids:
            return []
        stmt = stmt.where(Article.id.in_(ids))
    if repair:
        stmt = stmt.with_for_update()
    articles = db.execute(stmt).scalars().all()
    if not articles:
        return []

    ids = [a.id for a in articles]

    # ---------- ORDERED, NOT YET RECEIVED ----------
    outstanding_rows = db.execute(
        select(
            OrderItem.article_id,
            func.coalesce(func.sum(OrderItem.quantity - OrderItem.received_qty), 0).label("outstanding"),
        )
        .where(OrderItem.article_id.in_(ids))
        .where(OrderItem.ordered_at.is_not(None))
        .where(OrderItem.received_qty < OrderItem.quantity)
        .group_by(OrderItem.article_id)
    ).all()
    outstanding = {int(aid): int(qty) for aid, qty in outstanding_rows}

    drifts = []
    for article in articles:
        movements = (
            db.execute(
                select(StockMovement)
                .where(StockMovement.article_id == article.id)
                .order_by(StockMovement.created_at, StockMovement.id)
            )
            .scalars()
            .all()
        )
        drift = StockDrift(
            article_id=article.id,
            sku=article.sku,
            current_stock=article.current_stock,
            ledger_stock=replay_ledger(movements),
            incoming_stock=article.incoming_stock,
            expected_incoming=outstanding.get(article.id, 0),
        )
        if not drift.has_drift:
            continue

        drifts.append(drift)
        logger.warning(
            "stock drift on %s: current %s vs ledger %s, incoming %s vs expected %s",
            drift.sku,
            drift.current_stock,
            drift.ledger_stock,
            drift.incoming_stock,
            drift.expected_incoming,
        )
        if repair:
            article.current_stock = max(drift.ledger_stock, 0)
            article.incoming_stock = drift.expected_incoming

    if repair:
        db.flush()
    return drifts

