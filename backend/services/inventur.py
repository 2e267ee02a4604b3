"""
Stock-take sessions (Inventur).

A session snapshots ``current_stock`` of every active article as the
expected quantity. Counting fills in ``counted_qty`` and the difference;
applying corrections overwrites stock with the counted value through one
ADJUSTMENT movement per differing article and closes the session.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from backend.app.db.base import utcnow
from backend.app.db.models.core_types import InventoryStatus, MovementType
from backend.app.db.models.models_v1 import Article, Inventory, InventoryItem
from backend.services import inventory as ledger
from backend.services.errors import InventoryNotActive, NotFound, ValidationFailed

logger = logging.getLogger(__name__)


def _lock_inventory(db: Session, inventory_id: int) -> Inventory:
    inv = db.execute(select(Inventory).where(Inventory.id == inventory_id).with_for_update()).scalars().first()
    if inv is None:
        raise NotFound("Inventory", inventory_id)
    return inv


def _ensure_active(inv: Inventory) -> None:
    if inv.status is not InventoryStatus.in_progress:
        raise InventoryNotActive(inv.id)


def start_inventory(db: Session, *, name: str, started_by: str, notes: str | None = None) -> Inventory:
    articles = db.execute(select(Article).where(Article.is_active.is_(True)).order_by(Article.name)).scalars().all()

    inv = Inventory(name=name.strip(), started_by=started_by.strip(), notes=(notes or "").strip() or None)
    for a in articles:
        inv.items.append(InventoryItem(article_id=a.id, expected_qty=a.current_stock))
    db.add(inv)
    db.flush()
    logger.info("inventory %s '%s' started by %s (%s articles)", inv.id, inv.name, inv.started_by, len(articles))
    return inv


def check_inventory_item(
    db: Session,
    inventory_item_id: int,
    *,
    counted_qty: int,
    checked_by: str,
    notes: str | None = None,
) -> InventoryItem:
    if counted_qty < 0:
        raise ValidationFailed("Counted quantity cannot be negative")

    item = db.get(InventoryItem, inventory_item_id)
    if item is None:
        raise NotFound("Inventory item", inventory_item_id)
    _ensure_active(_lock_inventory(db, item.inventory_id))

    item.counted_qty = counted_qty
    item.difference = counted_qty - item.expected_qty
    item.checked = True
    item.checked_by = checked_by.strip()
    item.checked_at = utcnow()
    item.notes = (notes or "").strip() or None
    db.flush()
    return item


def apply_inventory_corrections(db: Session, inventory_id: int, *, performed_by: str) -> list:
    """Returns the ADJUSTMENT movements written, one per checked item with a difference."""
    inv = _lock_inventory(db, inventory_id)
    _ensure_active(inv)

    movements = []
    for item in inv.items:
        if not item.checked or item.counted_qty is None or not item.difference:
            continue
        article = ledger.lock_article(db, item.article_id)
        movements.append(
            ledger.record_movement(
                db,
                article,
                MovementType.adjustment,
                item.counted_qty,
                reason=f"Stock-take correction ({inv.name}): expected {item.expected_qty}, counted {item.counted_qty}",
                performed_by=performed_by,
            )
        )

    inv.status = InventoryStatus.completed
    inv.completed_at = utcnow()
    db.flush()
    logger.info("inventory %s completed by %s with %s corrections", inv.id, performed_by, len(movements))
    return movements


def complete_inventory_without_corrections(db: Session, inventory_id: int) -> Inventory:
    inv = _lock_inventory(db, inventory_id)
    _ensure_active(inv)
    inv.status = InventoryStatus.completed
    inv.completed_at = utcnow()
    db.flush()
    logger.info("inventory %s completed without corrections", inv.id)
    return inv


def cancel_inventory(db: Session, inventory_id: int) -> Inventory:
    inv = _lock_inventory(db, inventory_id)
    _ensure_active(inv)
    inv.status = InventoryStatus.cancelled
    db.flush()
    logger.info("inventory %s cancelled", inv.id)
    return inv


# ---------- queries ----------
@dataclass
class InventorySummary:
    inventory: Inventory
    total_items: int
    checked_items: int
    items_with_difference: int


def list_inventories(db: Session) -> list[InventorySummary]:
    rows = (
        db.execute(select(Inventory).options(selectinload(Inventory.items)).order_by(Inventory.created_at.desc()))
        .scalars()
        .all()
    )
    return [
        InventorySummary(
            inventory=inv,
            total_items=len(inv.items),
            checked_items=sum(1 for i in inv.items if i.checked),
            items_with_difference=sum(1 for i in inv.items if i.checked and i.difference),
        )
        for inv in rows
    ]


def get_inventory(db: Session, inventory_id: int) -> Inventory:
    inv = db.execute(
        select(Inventory)
        .where(Inventory.id == inventory_id)
        .options(selectinload(Inventory.items).selectinload(InventoryItem.article))
    ).scalar_one_or_none()
    if inv is None:
        raise NotFound("Inventory", inventory_id)
    return inv


@dataclass
class CategoryStats:
    count: int = 0
    stock: int = 0
    value: Decimal = Decimal("0")


@dataclass
class InventoryStats:
    article_count: int = 0
    total_stock_units: int = 0
    warehouse_value: Decimal = Decimal("0")
    articles_with_price: int = 0
    articles_without_price: int = 0
    categories: dict[str, CategoryStats] = field(default_factory=dict)
    articles: list[dict] = field(default_factory=list)


def inventory_stats(db: Session) -> InventoryStats:
    """Warehouse value at average purchase price, overall and per category."""
    stats = InventoryStats()
    for a in db.execute(select(Article).where(Article.is_active.is_(True))).scalars():
        price = a.avg_purchase_price or Decimal("0")
        value = price * a.current_stock

        stats.article_count += 1
        stats.total_stock_units += a.current_stock
        stats.warehouse_value += value
        if a.current_stock > 0:
            if price > 0:
                stats.articles_with_price += 1
            else:
                stats.articles_without_price += 1

        cat = stats.categories.setdefault(a.category.value, CategoryStats())
        cat.count += 1
        cat.stock += a.current_stock
        cat.value += value

        stats.articles.append(
            {
                "id": a.id,
                "sku": a.sku,
                "name": a.name,
                "category": a.category.value,
                "current_stock": a.current_stock,
                "unit": a.unit,
                "avg_purchase_price": price,
                "total_value": value,
            }
        )
    stats.articles.sort(key=lambda r: r["total_value"], reverse=True)
    return stats
