from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.app.api.deps import get_db
from backend.app.api.v1.serializers import inventory_header, inventory_item_dict
from backend.app.db.session import unit_of_work
from backend.app.schemas.inventur import InventoryApply, InventoryCheck, InventoryStart
from backend.services import inventur

router = APIRouter(prefix="/inventur")


@router.get("")
def list_inventories(db: Session = Depends(get_db)):
    return [
        {
            **inventory_header(s.inventory),
            "total_items": s.total_items,
            "checked_items": s.checked_items,
            "items_with_difference": s.items_with_difference,
        }
        for s in inventur.list_inventories(db)
    ]


@router.get("/stats")
def inventory_stats(db: Session = Depends(get_db)):
    stats = inventur.inventory_stats(db)
    return {
        "article_count": stats.article_count,
        "total_stock_units": stats.total_stock_units,
        "warehouse_value": stats.warehouse_value,
        "articles_with_price": stats.articles_with_price,
        "articles_without_price": stats.articles_without_price,
        "categories": {
            name: {"count": c.count, "stock": c.stock, "value": c.value} for name, c in stats.categories.items()
        },
        "articles": stats.articles,
    }


@router.post("")
def start_inventory(payload: InventoryStart, db: Session = Depends(get_db)):
    with unit_of_work(db):
        inv = inventur.start_inventory(db, name=payload.name, started_by=payload.started_by, notes=payload.notes)
    return {"success": True, "inventoryId": inv.id}


@router.get("/{inventory_id}")
def get_inventory(inventory_id: int, db: Session = Depends(get_db)):
    inv = inventur.get_inventory(db, inventory_id)
    items = sorted(inv.items, key=lambda i: i.article.name.lower())
    return {**inventory_header(inv), "items": [inventory_item_dict(i) for i in items]}


@router.post("/items/{inventory_item_id}/check")
def check_inventory_item(inventory_item_id: int, payload: InventoryCheck, db: Session = Depends(get_db)):
    with unit_of_work(db):
        item = inventur.check_inventory_item(
            db,
            inventory_item_id,
            counted_qty=payload.counted_qty,
            checked_by=payload.checked_by,
            notes=payload.notes,
        )
    return {"success": True, "difference": item.difference}


@router.post("/{inventory_id}/apply")
def apply_inventory_corrections(inventory_id: int, payload: InventoryApply, db: Session = Depends(get_db)):
    with unit_of_work(db):
        movements = inventur.apply_inventory_corrections(db, inventory_id, performed_by=payload.performed_by)
    return {"success": True, "corrections": len(movements)}


@router.post("/{inventory_id}/complete")
def complete_inventory(inventory_id: int, db: Session = Depends(get_db)):
    with unit_of_work(db):
        inventur.complete_inventory_without_corrections(db, inventory_id)
    return {"success": True}


@router.post("/{inventory_id}/cancel")
def cancel_inventory(inventory_id: int, db: Session = Depends(get_db)):
    with unit_of_work(db):
        inventur.cancel_inventory(db, inventory_id)
    return {"success": True}
