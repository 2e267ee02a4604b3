from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.app.api.deps import get_db
from backend.app.api.v1.serializers import mobilfunk_dict, order_dict, order_item_dict, order_header, serial_dict
from backend.app.db.session import unit_of_work
from backend.app.schemas.order import (
    FinishTechWork,
    MobilfunkSetup,
    PickRequest,
    TechnicianAssign,
    UnpickRequest,
)
from backend.services import fulfillment, orders

router = APIRouter(prefix="/techniker")


@router.get("")
def technician_queue(db: Session = Depends(get_db)):
    return [
        {
            **order_header(v.order),
            "computed_status": v.computed_status,
            "availability": v.availability,
            "total_items": v.total_items,
            "picked_items": v.picked_items,
            "total_mobilfunk": v.total_mobilfunk,
            "setup_mobilfunk": v.setup_mobilfunk,
        }
        for v in fulfillment.technician_orders(db)
    ]


@router.get("/{order_id}")
def technician_order(order_id: int, db: Session = Depends(get_db)):
    order = orders.get_order(db, order_id)
    data = order_dict(orders.order_view(order))
    data["availability"] = fulfillment.compute_pick_availability(order.items)
    data["available_serials"] = {
        str(article_id): [serial_dict(sn) for sn in sns]
        for article_id, sns in fulfillment.pickable_serials(db, order).items()
    }
    return data


@router.post("/{order_id}/technician")
def set_technician(order_id: int, payload: TechnicianAssign, db: Session = Depends(get_db)):
    with unit_of_work(db):
        orders.set_technician_name(db, order_id, payload.technician_name)
    return {"success": True}


@router.post("/items/{order_item_id}/pick")
def pick_item(order_item_id: int, payload: PickRequest, db: Session = Depends(get_db)):
    with unit_of_work(db):
        item = fulfillment.pick_item(
            db,
            order_item_id,
            quantity=payload.quantity,
            technician_name=payload.technician_name,
            serial_number_ids=payload.all_serial_number_ids,
        )
    return {"success": True, "item": order_item_dict(item)}


@router.post("/items/{order_item_id}/unpick")
def unpick_item(order_item_id: int, payload: UnpickRequest, db: Session = Depends(get_db)):
    with unit_of_work(db):
        item = fulfillment.unpick_item(db, order_item_id, technician_name=payload.technician_name)
    return {"success": True, "item": order_item_dict(item)}


@router.post("/mobilfunk/{mobilfunk_id}/setup")
def setup_mobilfunk(mobilfunk_id: int, payload: MobilfunkSetup, db: Session = Depends(get_db)):
    with unit_of_work(db):
        mf = fulfillment.setup_mobilfunk(
            db,
            mobilfunk_id,
            technician_name=payload.technician_name,
            imei=payload.imei,
            phone_number=payload.phone_number,
        )
    return {"success": True, "mobilfunk": mobilfunk_dict(mf)}


@router.post("/mobilfunk/{mobilfunk_id}/reset")
def reset_mobilfunk_setup(mobilfunk_id: int, db: Session = Depends(get_db)):
    with unit_of_work(db):
        mf = fulfillment.reset_mobilfunk_setup(db, mobilfunk_id)
    return {"success": True, "mobilfunk": mobilfunk_dict(mf)}


@router.post("/{order_id}/setup-done")
def mark_setup_done(order_id: int, db: Session = Depends(get_db)):
    with unit_of_work(db):
        order = fulfillment.mark_setup_done(db, order_id)
    return {"success": True, "status": order.status}


@router.post("/{order_id}/finish")
def finish_tech_work(order_id: int, payload: FinishTechWork, db: Session = Depends(get_db)):
    with unit_of_work(db):
        order = fulfillment.finish_tech_work(
            db,
            order_id,
            technician_name=payload.technician_name,
            tracking_number=payload.tracking_number,
        )
    return {"success": True, "status": order.status}
