"""Master data: articles, suppliers, article/supplier links, warehouse locations."""
from __future__ import annotations

import logging

from sqlalchemy import or_, select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from backend.app.db.models.models_v1 import (
    Article,
    ArticleSupplier,
    SerialNumber,
    StockMovement,
    Supplier,
    WarehouseLocation,
)
from backend.app.db.models.core_types import ArticleCategory
from backend.app.schemas.article import (
    ArticleCreate,
    ArticleQuickCreate,
    ArticleSupplierCreate,
    ArticleUpdate,
    LocationCreate,
    SupplierCreate,
)
from backend.services.errors import Conflict, NotFound
from backend.services.numbering import allocate_article_number

logger = logging.getLogger(__name__)


def _flush_unique(db: Session, message: str) -> None:
    try:
        db.flush()
    except IntegrityError as exc:
        raise Conflict(message) from exc


def get_article(db: Session, article_id: int) -> Article:
    article = db.get(Article, article_id)
    if article is None:
        raise NotFound("Article", article_id)
    return article


# ---------- ARTICLES ----------
def list_articles(
    db: Session,
    *,
    category: ArticleCategory | None = None,
    search: str | None = None,
    active_only: bool = True,
) -> list[Article]:
    stmt = select(Article).order_by(Article.name)
    if category is not None:
        stmt = stmt.where(Article.category == category)
    if active_only:
        stmt = stmt.where(Article.is_active.is_(True))
    if search:
        pattern = f"%{search.strip()}%"
        stmt = stmt.where(
            or_(
                Article.name.ilike(pattern),
                Article.sku.ilike(pattern),
                Article.description.ilike(pattern),
            )
        )
    return list(db.execute(stmt).scalars().all())


def article_detail(db: Session, article_id: int) -> dict:
    article = db.execute(
        select(Article)
        .where(Article.id == article_id)
        .options(
            selectinload(Article.serial_numbers).selectinload(SerialNumber.location),
            selectinload(Article.suppliers).selectinload(ArticleSupplier.supplier),
        )
    ).scalar_one_or_none()
    if article is None:
        raise NotFound("Article", article_id)

    movements = (
        db.execute(
            select(StockMovement)
            .where(StockMovement.article_id == article_id)
            .order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
            .limit(20)
        )
        .scalars()
        .all()
    )
    return {
        "article": article,
        "serial_numbers": sorted(article.serial_numbers, key=lambda s: s.created_at, reverse=True),
        "movements": list(movements),
        "suppliers": sorted(article.suppliers, key=lambda l: not l.is_preferred),
    }


def create_article(db: Session, payload: ArticleCreate) -> Article:
    exists = db.execute(select(Article).where(Article.sku == payload.sku)).scalar_one_or_none()
    if exists:
        raise Conflict("SKU already exists")

    article = Article(**payload.model_dump())
    db.add(article)
    _flush_unique(db, "SKU already exists")
    logger.info("article %s created (%s)", article.sku, article.category.value)
    return article


def quick_create_article(db: Session, payload: ArticleQuickCreate) -> Article:
    """Create an article with the next free ``ART-NNN`` SKU."""
    article = Article(
        sku=allocate_article_number(db),
        name=payload.name,
        category=payload.category,
        unit=payload.unit,
        min_stock_level=payload.min_stock_level,
    )
    db.add(article)
    _flush_unique(db, "SKU already exists")
    logger.info("article %s quick-created", article.sku)
    return article


def update_article(db: Session, article_id: int, payload: ArticleUpdate) -> Article:
    article = get_article(db, article_id)
    # counters are ledger-owned and not part of ArticleUpdate
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(article, field, value)
    _flush_unique(db, "SKU already exists")
    return article


def deactivate_article(db: Session, article_id: int) -> Article:
    article = get_article(db, article_id)
    article.is_active = False
    return article


def article_group_suggestions(db: Session) -> dict:
    groups = db.execute(
        select(Article.product_group)
        .where(Article.is_active.is_(True), Article.product_group.is_not(None))
        .distinct()
        .order_by(Article.product_group)
    ).scalars().all()
    sub_groups = db.execute(
        select(Article.product_sub_group)
        .where(Article.is_active.is_(True), Article.product_sub_group.is_not(None))
        .distinct()
        .order_by(Article.product_sub_group)
    ).scalars().all()
    return {"groups": list(groups), "sub_groups": list(sub_groups)}


# ---------- SUPPLIERS ----------
def list_suppliers(db: Session) -> list[tuple[Supplier, int]]:
    """Active suppliers with the number of linked articles."""
    rows = db.execute(
        select(Supplier, func.count(ArticleSupplier.id))
        .outerjoin(ArticleSupplier, ArticleSupplier.supplier_id == Supplier.id)
        .where(Supplier.is_active.is_(True))
        .group_by(Supplier.id)
        .order_by(Supplier.name)
    ).all()
    return [(s, int(n)) for s, n in rows]


def get_supplier(db: Session, supplier_id: int) -> Supplier:
    supplier = db.get(Supplier, supplier_id)
    if supplier is None:
        raise NotFound("Supplier", supplier_id)
    return supplier


def create_supplier(db: Session, payload: SupplierCreate) -> Supplier:
    exists = db.execute(select(Supplier).where(Supplier.name == payload.name)).scalar_one_or_none()
    if exists:
        raise Conflict("Supplier already exists")

    s = Supplier(**payload.model_dump())
    db.add(s)
    _flush_unique(db, "Supplier already exists")
    return s


def update_supplier(db: Session, supplier_id: int, payload: SupplierCreate) -> Supplier:
    s = get_supplier(db, supplier_id)
    for field, value in payload.model_dump().items():
        setattr(s, field, value)
    _flush_unique(db, "Supplier already exists")
    return s


def deactivate_supplier(db: Session, supplier_id: int) -> Supplier:
    s = get_supplier(db, supplier_id)
    s.is_active = False
    return s


def link_article_supplier(db: Session, article_id: int, payload: ArticleSupplierCreate) -> ArticleSupplier:
    get_article(db, article_id)
    get_supplier(db, payload.supplier_id)

    link = ArticleSupplier(article_id=article_id, **payload.model_dump())
    db.add(link)
    _flush_unique(db, "Supplier is already linked to this article")
    return link


def preferred_supplier(db: Session, article_id: int) -> Supplier | None:
    return db.execute(
        select(Supplier)
        .join(ArticleSupplier, ArticleSupplier.supplier_id == Supplier.id)
        .where(ArticleSupplier.article_id == article_id, ArticleSupplier.is_preferred.is_(True))
        .limit(1)
    ).scalar_one_or_none()


# ---------- LOCATIONS ----------
def list_locations(db: Session) -> list[WarehouseLocation]:
    return list(
        db.execute(
            select(WarehouseLocation).where(WarehouseLocation.is_active.is_(True)).order_by(WarehouseLocation.name)
        )
        .scalars()
        .all()
    )


def create_location(db: Session, payload: LocationCreate) -> WarehouseLocation:
    exists = db.execute(
        select(WarehouseLocation).where(WarehouseLocation.name == payload.name)
    ).scalar_one_or_none()
    if exists:
        raise Conflict("Location already exists")

    loc = WarehouseLocation(name=payload.name, description=payload.description)
    db.add(loc)
    _flush_unique(db, "Location already exists")
    return loc


def deactivate_location(db: Session, location_id: int) -> WarehouseLocation:
    loc = db.get(WarehouseLocation, location_id)
    if loc is None:
        raise NotFound("Location", location_id)
    loc.is_active = False
    return loc
