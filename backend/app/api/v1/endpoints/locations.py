from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.app.api.deps import get_db
from backend.app.api.v1.serializers import location_dict
from backend.app.db.session import unit_of_work
from backend.app.schemas.article import LocationCreate
from backend.services import catalog

router = APIRouter(prefix="/locations")


@router.get("")
def list_locations(db: Session = Depends(get_db)):
    return [location_dict(l) for l in catalog.list_locations(db)]


@router.post("", status_code=201)
def create_location(payload: LocationCreate, db: Session = Depends(get_db)):
    with unit_of_work(db):
        loc = catalog.create_location(db, payload)
    return {"success": True, "id": loc.id, "name": loc.name}


@router.delete("/{location_id}")
def deactivate_location(location_id: int, db: Session = Depends(get_db)):
    with unit_of_work(db):
        catalog.deactivate_location(db, location_id)
    return {"success": True}
