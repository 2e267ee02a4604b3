from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.app.api.deps import get_db
from backend.app.db.session import unit_of_work
from backend.app.schemas.stock_level import (
    ArticleStockRead,
    SerialNumberRead,
    StockArticleRead,
    StockDriftRead,
)
from backend.services import inventory

router = APIRouter(prefix="/stock")


@router.get(
    "",
    response_model=list[StockArticleRead],
)
def get_stock(db: Session = Depends(get_db)):
    """
    Articles on hand (READ ONLY)
    - current_stock / incoming_stock are ledger-maintained, never written here
    - serialized articles list their IN_STOCK serial numbers
    """
    return [
        StockArticleRead(
            **ArticleStockRead.model_validate(a).model_dump(),
            serial_numbers=[SerialNumberRead.model_validate(sn) for sn in sns],
        )
        for a, sns in inventory.stock_articles(db)
    ]


@router.get("/reconcile", response_model=list[StockDriftRead])
def check_stock(article_id: int | None = None, db: Session = Depends(get_db)):
    ids = [article_id] if article_id is not None else None
    return inventory.reconcile_stock(db, article_ids=ids)


@router.post("/reconcile")
def repair_stock(db: Session = Depends(get_db)):
    with unit_of_work(db):
        drifts = inventory.reconcile_stock(db, repair=True)
    return {"success": True, "repaired": [StockDriftRead.model_validate(d).model_dump() for d in drifts]}
