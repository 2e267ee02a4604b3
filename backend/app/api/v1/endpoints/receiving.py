from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.app.api.deps import get_db
from backend.app.api.v1.serializers import mobilfunk_dict, movement_dict, order_header, order_item_dict
from backend.app.db.session import unit_of_work
from backend.app.schemas.article import ReceivingCreate
from backend.app.schemas.order import ActorRequest, ReceiveItem
from backend.services import inventory, receiving
from backend.services.serials import SerialEntry

router = APIRouter(prefix="/receiving")


@router.get("")
def pending_receipts(db: Session = Depends(get_db)):
    return [
        {
            **order_header(v.order),
            "pending_items": [order_item_dict(i) for i in v.pending_items],
            "pending_mobilfunk": [mobilfunk_dict(m) for m in v.pending_mobilfunk],
            "total_pending": v.total_pending,
            "total_done": v.total_done,
        }
        for v in receiving.pending_receipts(db)
    ]


@router.post("/items/{order_item_id}")
def receive_order_item(order_item_id: int, payload: ReceiveItem, db: Session = Depends(get_db)):
    with unit_of_work(db):
        item = receiving.receive_order_item(
            db,
            order_item_id,
            quantity=payload.quantity,
            performed_by=payload.performed_by,
            serial_numbers=[SerialEntry(s.serial_no, s.is_used) for s in payload.serial_numbers],
        )
    return {"success": True, "item": order_item_dict(item)}


@router.post("/items/{order_item_id}/freetext")
def receive_freetext_item(order_item_id: int, payload: ActorRequest, db: Session = Depends(get_db)):
    with unit_of_work(db):
        item = receiving.receive_freetext_item(db, order_item_id, performed_by=payload.performed_by)
    return {"success": True, "item": order_item_dict(item)}


@router.post("/mobilfunk/{mobilfunk_id}")
def receive_mobilfunk(mobilfunk_id: int, db: Session = Depends(get_db)):
    with unit_of_work(db):
        mf = receiving.receive_mobilfunk(db, mobilfunk_id)
    return {"success": True, "mobilfunk": mobilfunk_dict(mf)}


@router.post("/goods")
def receive_goods(payload: ReceivingCreate, db: Session = Depends(get_db)):
    """Goods arriving without an order."""
    with unit_of_work(db):
        mv = inventory.receive_goods(
            db,
            article_id=payload.article_id,
            quantity=payload.quantity,
            reason=payload.reason,
            performed_by=payload.performed_by,
            serial_numbers=[SerialEntry(s.serial_no, s.is_used) for s in payload.serial_numbers],
        )
    return {"success": True, "movement": movement_dict(mv)}
