from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.app.api.deps import get_db
from backend.app.api.v1.serializers import supplier_dict
from backend.app.db.session import unit_of_work
from backend.app.schemas.article import SupplierCreate
from backend.services import catalog

router = APIRouter(prefix="/suppliers")


@router.get("")
def list_suppliers(db: Session = Depends(get_db)):
    return [{**supplier_dict(s), "article_count": n} for s, n in catalog.list_suppliers(db)]


@router.post("", status_code=201)
def create_supplier(payload: SupplierCreate, db: Session = Depends(get_db)):
    with unit_of_work(db):
        s = catalog.create_supplier(db, payload)
    return {"success": True, "id": s.id, "name": s.name}


@router.put("/{supplier_id}")
def update_supplier(supplier_id: int, payload: SupplierCreate, db: Session = Depends(get_db)):
    with unit_of_work(db):
        s = catalog.update_supplier(db, supplier_id, payload)
    return {"success": True, "supplier": supplier_dict(s)}


@router.delete("/{supplier_id}")
def deactivate_supplier(supplier_id: int, db: Session = Depends(get_db)):
    with unit_of_work(db):
        catalog.deactivate_supplier(db, supplier_id)
    return {"success": True}
