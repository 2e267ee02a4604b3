from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.app.api.deps import get_db
from backend.app.api.v1.serializers import article_dict, location_dict, movement_dict, serial_dict
from backend.app.db.models.core_types import ArticleCategory
from backend.app.db.session import unit_of_work
from backend.app.schemas.article import ArticleCreate, ArticleQuickCreate, ArticleSupplierCreate, ArticleUpdate
from backend.services import catalog
from backend.services.errors import ValidationFailed
from backend.services.numbering import get_next_article_number

router = APIRouter(prefix="/articles")


@router.get("")
def list_articles(
    category: str | None = None,
    search: str | None = None,
    include_inactive: bool = False,
    db: Session = Depends(get_db),
):
    cat = None
    if category:
        try:
            cat = ArticleCategory.parse(category)
        except ValueError as exc:
            raise ValidationFailed(f"Unknown category {category}") from exc
    rows = catalog.list_articles(db, category=cat, search=search, active_only=not include_inactive)
    return [article_dict(a) for a in rows]


@router.get("/next-number")
def next_article_number(db: Session = Depends(get_db)):
    return {"sku": get_next_article_number(db)}


@router.get("/groups")
def article_groups(db: Session = Depends(get_db)):
    return catalog.article_group_suggestions(db)


@router.get("/{article_id}")
def get_article(article_id: int, db: Session = Depends(get_db)):
    detail = catalog.article_detail(db, article_id)
    return {
        **article_dict(detail["article"]),
        "serial_numbers": [
            {**serial_dict(sn), "location": location_dict(sn.location) if sn.location else None}
            for sn in detail["serial_numbers"]
        ],
        "movements": [movement_dict(mv) for mv in detail["movements"]],
        "suppliers": [
            {
                "id": link.id,
                "supplier_id": link.supplier_id,
                "supplier_name": link.supplier.name,
                "supplier_sku": link.supplier_sku,
                "unit_price": link.unit_price,
                "currency": link.currency,
                "lead_time_days": link.lead_time_days,
                "min_order_qty": link.min_order_qty,
                "is_preferred": link.is_preferred,
            }
            for link in detail["suppliers"]
        ],
    }


@router.post("", status_code=201)
def create_article(payload: ArticleCreate, db: Session = Depends(get_db)):
    with unit_of_work(db):
        a = catalog.create_article(db, payload)
    return {"success": True, "id": a.id, "sku": a.sku, "name": a.name}


@router.post("/quick", status_code=201)
def quick_create_article(payload: ArticleQuickCreate, db: Session = Depends(get_db)):
    with unit_of_work(db):
        a = catalog.quick_create_article(db, payload)
    return {"success": True, "article": article_dict(a)}


@router.patch("/{article_id}")
def update_article(article_id: int, payload: ArticleUpdate, db: Session = Depends(get_db)):
    with unit_of_work(db):
        a = catalog.update_article(db, article_id, payload)
    return {"success": True, "article": article_dict(a)}


@router.delete("/{article_id}")
def deactivate_article(article_id: int, db: Session = Depends(get_db)):
    with unit_of_work(db):
        catalog.deactivate_article(db, article_id)
    return {"success": True}


@router.post("/{article_id}/suppliers", status_code=201)
def link_supplier(article_id: int, payload: ArticleSupplierCreate, db: Session = Depends(get_db)):
    with unit_of_work(db):
        link = catalog.link_article_supplier(db, article_id, payload)
    return {"success": True, "id": link.id}
