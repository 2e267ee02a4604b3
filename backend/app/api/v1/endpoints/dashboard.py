from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.app.api.deps import get_db
from backend.app.api.v1.serializers import article_ref, movement_dict, order_header
from backend.services.dashboard import dashboard

router = APIRouter(prefix="/dashboard")


@router.get("")
def get_dashboard(db: Session = Depends(get_db)):
    data = dashboard(db)
    return {
        "counts": asdict(data.counts),
        "orders": [
            {
                **order_header(v.order),
                "computed_status": v.computed_status,
                "stock_availability": v.stock_availability,
            }
            for v in data.orders
        ],
        "low_stock": [{**article_ref(a), "min_stock_level": a.min_stock_level} for a in data.low_stock],
        "recent_movements": [
            {**movement_dict(mv), "article": article_ref(mv.article)} for mv in data.recent_movements
        ],
    }
