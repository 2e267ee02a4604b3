from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.app.api.deps import get_db
from backend.app.api.v1.serializers import mobilfunk_dict, order_header, order_item_dict
from backend.app.db.session import unit_of_work
from backend.app.schemas.order import ItemOrdered, MobilfunkOrdered
from backend.services import procurement

router = APIRouter(prefix="/procurement")


@router.get("")
def procurement_queue(db: Session = Depends(get_db)):
    return [
        {
            **order_header(v.order),
            "total_orderable": v.total_orderable,
            "total_ordered": v.total_ordered,
            "items": [
                {
                    **order_item_dict(i),
                    "preferred_supplier": (
                        {"id": v.preferred_suppliers[i.article_id].id, "name": v.preferred_suppliers[i.article_id].name}
                        if i.article_id in v.preferred_suppliers
                        else None
                    ),
                }
                for i in v.orderable_items
            ],
            "mobilfunk": [mobilfunk_dict(m) for m in v.order.mobilfunk],
        }
        for v in procurement.procurement_queue(db)
    ]


@router.post("/items/{order_item_id}/ordered")
def mark_item_ordered(order_item_id: int, payload: ItemOrdered, db: Session = Depends(get_db)):
    with unit_of_work(db):
        item = procurement.mark_item_ordered(
            db,
            order_item_id,
            supplier_id=payload.supplier_id,
            supplier_order_no=payload.supplier_order_no,
            ordered_by=payload.ordered_by,
        )
    return {"success": True, "item": order_item_dict(item)}


@router.post("/mobilfunk/{mobilfunk_id}/ordered")
def mark_mobilfunk_ordered(mobilfunk_id: int, payload: MobilfunkOrdered, db: Session = Depends(get_db)):
    with unit_of_work(db):
        mf = procurement.mark_mobilfunk_ordered(
            db,
            mobilfunk_id,
            provider_order_no=payload.provider_order_no,
            ordered_by=payload.ordered_by,
        )
    return {"success": True, "mobilfunk": mobilfunk_dict(mf)}


@router.post("/{order_id}/finish")
def finish_procurement(order_id: int, db: Session = Depends(get_db)):
    with unit_of_work(db):
        order = procurement.finish_procurement(db, order_id)
    return {"success": True, "proc_done_at": order.proc_done_at}
