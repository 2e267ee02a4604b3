from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.app.api.deps import get_db
from backend.app.api.v1.serializers import mobilfunk_dict, order_dict, order_item_dict
from backend.app.db.models.core_types import OrderStatus
from backend.app.db.session import unit_of_work
from backend.app.schemas.order import DeliveredToggle, OrderCreate, ResolveFreeText
from backend.services import orders
from backend.services.errors import ValidationFailed
from backend.services.numbering import get_next_order_number

router = APIRouter(prefix="/orders")


@router.post("", status_code=201)
def create_order(payload: OrderCreate, db: Session = Depends(get_db)):
    with unit_of_work(db):
        order = orders.create_order(db, payload)
    return {"success": True, "orderId": order.id, "orderNumber": order.order_number}


@router.get("")
def list_orders(
    status: str | None = None,
    search: str | None = None,
    db: Session = Depends(get_db),
):
    wanted = None
    if status and status.upper() != "ALL":
        try:
            wanted = OrderStatus.parse(status)
        except ValueError as exc:
            raise ValidationFailed(f"Unknown status {status}") from exc
    return [order_dict(v) for v in orders.list_orders(db, status=wanted, search=search)]


@router.get("/next-number")
def next_order_number(db: Session = Depends(get_db)):
    return {"order_number": get_next_order_number(db)}


@router.get("/{order_id}")
def get_order(order_id: int, db: Session = Depends(get_db)):
    return order_dict(orders.order_view(orders.get_order(db, order_id)))


@router.post("/{order_id}/cancel")
def cancel_order(order_id: int, db: Session = Depends(get_db)):
    with unit_of_work(db):
        order = orders.cancel_order(db, order_id)
    return {"success": True, "status": order.status}


@router.post("/{order_id}/complete")
def complete_order(order_id: int, db: Session = Depends(get_db)):
    with unit_of_work(db):
        order = orders.complete_order(db, order_id)
    return {"success": True, "status": order.status}


@router.post("/items/{order_item_id}/resolve")
def resolve_freetext_item(order_item_id: int, payload: ResolveFreeText, db: Session = Depends(get_db)):
    with unit_of_work(db):
        item = orders.resolve_freetext_item(db, order_item_id, payload.article_id)
    return {"success": True, "item": order_item_dict(item)}


@router.post("/mobilfunk/{mobilfunk_id}/delivered")
def toggle_mobilfunk_delivered(mobilfunk_id: int, payload: DeliveredToggle, db: Session = Depends(get_db)):
    with unit_of_work(db):
        mf = orders.toggle_mobilfunk_delivered(db, mobilfunk_id, payload.delivered)
    return {"success": True, "mobilfunk": mobilfunk_dict(mf)}
