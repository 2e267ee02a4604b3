"""
Serial number tracking.

Lifecycle handled here:
    received  -> IN_STOCK  (optionally linked to the receiving order item)
    picked    -> DEPLOYED  (linked to the picking order item)
    unpicked  -> IN_STOCK  (link cleared)

DEFECTIVE / RETURNED / DISPOSED / RESERVED are set by hand via
``set_serial_status``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.app.db.models.models_v1 import Article, OrderItem, SerialNumber, WarehouseLocation
from backend.app.db.models.core_types import SerialNumberStatus
from backend.services.errors import (
    DuplicateSerialNumber,
    NotFound,
    SerialNumberUnavailable,
    ValidationFailed,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SerialEntry:
    serial_no: str
    is_used: bool = False


def _normalize(entries: Iterable[SerialEntry]) -> list[SerialEntry]:
    cleaned = []
    for e in entries:
        serial_no = (e.serial_no or "").strip()
        if not serial_no:
            raise ValidationFailed("Serial number is required")
        cleaned.append(SerialEntry(serial_no=serial_no, is_used=e.is_used))
    return cleaned


def register_serial_numbers(
    db: Session,
    article: Article,
    entries: Iterable[SerialEntry],
    *,
    order_item_id: int | None = None,
    location_id: int | None = None,
) -> list[SerialNumber]:
    """
    Create IN_STOCK serial numbers for ``article``. All or nothing: a value
    that already exists (or repeats within ``entries``) raises
    ``DuplicateSerialNumber`` before anything is written.
    """
    entries = _normalize(entries)
    values = [e.serial_no for e in entries]

    repeated = sorted({v for v in values if values.count(v) > 1})
    if repeated:
        raise DuplicateSerialNumber(repeated)

    existing = db.execute(select(SerialNumber.serial_no).where(SerialNumber.serial_no.in_(values))).scalars().all()
    if existing:
        raise DuplicateSerialNumber(sorted(existing))

    created = [
        SerialNumber(
            serial_no=e.serial_no,
            article_id=article.id,
            is_used=e.is_used,
            status=SerialNumberStatus.in_stock,
            order_item_id=order_item_id,
            location_id=location_id,
        )
        for e in entries
    ]
    db.add_all(created)
    try:
        db.flush()
    except IntegrityError as exc:
        # concurrent insert won the unique constraint
        raise DuplicateSerialNumber(values) from exc
    return created


def create_serial_number(
    db: Session,
    *,
    article_id: int,
    serial_no: str,
    is_used: bool = False,
    location_id: int | None = None,
    notes: str | None = None,
) -> SerialNumber:
    article = db.get(Article, article_id)
    if article is None:
        raise NotFound("Article", article_id)
    if location_id is not None and db.get(WarehouseLocation, location_id) is None:
        raise NotFound("Location", location_id)

    (sn,) = register_serial_numbers(
        db, article, [SerialEntry(serial_no=serial_no, is_used=is_used)], location_id=location_id
    )
    sn.notes = notes
    return sn


def set_serial_status(db: Session, serial_number_id: int, status: SerialNumberStatus) -> SerialNumber:
    sn = db.get(SerialNumber, serial_number_id)
    if sn is None:
        raise NotFound("Serial number", serial_number_id)
    logger.info("serial %s status %s -> %s", sn.serial_no, sn.status.value, status.value)
    sn.status = status
    return sn


def available_serials(db: Session, article_id: int) -> list[SerialNumber]:
    return list(
        db.execute(
            select(SerialNumber)
            .where(SerialNumber.article_id == article_id)
            .where(SerialNumber.status == SerialNumberStatus.in_stock)
            .order_by(SerialNumber.serial_no)
        )
        .scalars()
        .all()
    )


def deploy_serials(
    db: Session,
    article: Article,
    order_item: OrderItem,
    serial_number_ids: Sequence[int],
) -> list[SerialNumber]:
    """IN_STOCK -> DEPLOYED, linked to the picking order item."""
    deployed = []
    for sn_id in serial_number_ids:
        sn = db.execute(select(SerialNumber).where(SerialNumber.id == sn_id).with_for_update()).scalars().first()
        if sn is None:
            raise NotFound("Serial number", sn_id)
        if sn.article_id != article.id:
            raise SerialNumberUnavailable(f"Serial number {sn.serial_no} belongs to another article")
        if sn.status is not SerialNumberStatus.in_stock:
            raise SerialNumberUnavailable(f"Serial number {sn.serial_no} is {sn.status.value}")
        sn.status = SerialNumberStatus.deployed
        sn.order_item_id = order_item.id
        deployed.append(sn)
    db.flush()
    return deployed


def release_serials(db: Session, order_item: OrderItem) -> list[SerialNumber]:
    """DEPLOYED serials of ``order_item`` back to IN_STOCK, link cleared."""
    released = (
        db.execute(
            select(SerialNumber)
            .where(SerialNumber.order_item_id == order_item.id)
            .where(SerialNumber.status == SerialNumberStatus.deployed)
            .with_for_update()
        )
        .scalars()
        .all()
    )
    for sn in released:
        sn.status = SerialNumberStatus.in_stock
        sn.order_item_id = None
    db.flush()
    return list(released)
