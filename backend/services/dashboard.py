from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from backend.app.core.config import get_settings
from backend.app.db.base import utcnow
from backend.app.db.models.core_types import OrderStatus
from backend.app.db.models.models_v1 import Article, Order, OrderItem, StockMovement
from backend.services.inventory import list_stock_movements
from backend.services.order_status import order_progress
from backend.services.orders import OrderView, order_view


@dataclass
class PipelineCounts:
    new: int = 0
    in_commission: int = 0
    in_setup: int = 0
    ready_to_ship: int = 0
    open_procurement: int = 0
    pending_receiving: int = 0


@dataclass
class DashboardData:
    orders: list[OrderView] = field(default_factory=list)
    counts: PipelineCounts = field(default_factory=PipelineCounts)
    low_stock: list[Article] = field(default_factory=list)
    recent_movements: list[StockMovement] = field(default_factory=list)


def low_stock_articles(db: Session, limit: int | None = None) -> list[Article]:
    limit = limit if limit is not None else get_settings().LOW_STOCK_LIMIT
    return list(
        db.execute(
            select(Article)
            .where(Article.is_active.is_(True))
            .where(Article.min_stock_level > 0)
            .where(Article.current_stock <= Article.min_stock_level)
            .order_by(Article.current_stock, Article.name)
            .limit(limit)
        )
        .scalars()
        .all()
    )


def dashboard(db: Session) -> DashboardData:
    settings = get_settings()
    orders = (
        db.execute(
            select(Order)
            .where(Order.status.not_in([OrderStatus.completed, OrderStatus.cancelled]))
            .options(selectinload(Order.items).selectinload(OrderItem.article), selectinload(Order.mobilfunk))
            .order_by(Order.created_at.desc(), Order.id.desc())
        )
        .scalars()
        .all()
    )

    data = DashboardData(orders=[order_view(o) for o in orders])
    buckets = {
        OrderStatus.new: "new",
        OrderStatus.in_commission: "in_commission",
        OrderStatus.in_setup: "in_setup",
        OrderStatus.ready_to_ship: "ready_to_ship",
    }
    for view in data.orders:
        bucket = buckets.get(view.computed_status)
        if bucket:
            setattr(data.counts, bucket, getattr(data.counts, bucket) + 1)
        progress = order_progress(view.order)
        data.counts.open_procurement += progress.open_procurement
        data.counts.pending_receiving += progress.pending_receipts

    data.low_stock = low_stock_articles(db)
    data.recent_movements = list_stock_movements(
        db, since=utcnow() - timedelta(hours=settings.RECENT_MOVEMENT_HOURS), limit=100
    )
    return data
