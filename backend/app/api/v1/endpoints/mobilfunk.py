from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.app.api.deps import get_db
from backend.app.api.v1.serializers import mobilfunk_dict
from backend.services.orders import active_mobilfunk

router = APIRouter(prefix="/mobilfunk")


@router.get("")
def list_active(search: str | None = None, db: Session = Depends(get_db)):
    return [
        {
            **mobilfunk_dict(m),
            "order_number": m.order.order_number,
            "ordered_for": m.order.ordered_for,
            "cost_center": m.order.cost_center,
        }
        for m in active_mobilfunk(db, search)
    ]
