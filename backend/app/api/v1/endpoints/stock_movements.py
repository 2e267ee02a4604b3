from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from backend.app.api.deps import get_db
from backend.app.api.v1.serializers import article_ref, movement_dict
from backend.app.db.models.core_types import MovementType
from backend.app.db.session import unit_of_work
from backend.app.schemas.article import StockMovementCreate
from backend.services import inventory

router = APIRouter(prefix="/stock-movements")


@router.get("")
def list_movements(
    article_id: int | None = None,
    type: MovementType | None = None,
    limit: int = Query(default=50, ge=1, le=500),
    db: Session = Depends(get_db),
):
    rows = inventory.list_stock_movements(db, article_id=article_id, movement_type=type, limit=limit)
    return [{**movement_dict(mv), "article": article_ref(mv.article)} for mv in rows]


@router.post("", status_code=201)
def create_movement(payload: StockMovementCreate, db: Session = Depends(get_db)):
    """
    Manual booking. ``quantity`` is positive:
    - IN adds it, OUT removes it (fails on insufficient stock)
    - ADJUSTMENT sets the stock to it
    """
    with unit_of_work(db):
        mv = inventory.record_manual_movement(
            db,
            article_id=payload.article_id,
            movement_type=payload.type,
            quantity=payload.quantity,
            reason=payload.reason,
            performed_by=payload.performed_by,
        )
    return {"success": True, "movement": movement_dict(mv), "current_stock": mv.article.current_stock}
