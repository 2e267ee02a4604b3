from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.app.api.deps import get_db
from backend.app.api.v1.serializers import serial_dict
from backend.app.db.session import unit_of_work
from backend.app.schemas.article import SerialNumberCreate, SerialStatusUpdate
from backend.services import serials

router = APIRouter(prefix="/serial-numbers")


@router.get("/available/{article_id}")
def available_serials(article_id: int, db: Session = Depends(get_db)):
    return [serial_dict(sn) for sn in serials.available_serials(db, article_id)]


@router.post("", status_code=201)
def create_serial_number(payload: SerialNumberCreate, db: Session = Depends(get_db)):
    with unit_of_work(db):
        sn = serials.create_serial_number(
            db,
            article_id=payload.article_id,
            serial_no=payload.serial_no,
            is_used=payload.is_used,
            location_id=payload.location_id,
            notes=payload.notes,
        )
    return {"success": True, "serial_number": serial_dict(sn)}


@router.post("/{serial_number_id}/status")
def set_status(serial_number_id: int, payload: SerialStatusUpdate, db: Session = Depends(get_db)):
    with unit_of_work(db):
        sn = serials.set_serial_status(db, serial_number_id, payload.status)
    return {"success": True, "serial_number": serial_dict(sn)}
