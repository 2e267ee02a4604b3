from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy import select

from backend.app.core.config import get_settings
from backend.app.core.logging import setup_logging
from backend.app.db.base import Base
from backend.app.db.session import SessionLocal, engine, unit_of_work
from backend.app.db.models.models_v1 import Article, ArticleSupplier, Supplier, WarehouseLocation
from backend.app.db.models.core_types import ArticleCategory, MovementType
from backend.services import inventory

logger = logging.getLogger(__name__)

LOCATIONS = [
    ("Hauptlager", "Regal A-D"),
    ("Techniklager", "Werkbank und Ersatzteile"),
]

SUPPLIERS = [
    {"name": "Bechtle", "email": "bestellung@bechtle.example", "website": "https://www.bechtle.com"},
    {"name": "Cancom", "email": "order@cancom.example", "website": "https://www.cancom.de"},
]

# sku, name, category, group, price, min level, opening stock
ARTICLES = [
    ("NB-T14", "Lenovo ThinkPad T14", ArticleCategory.serialized, "Notebook", "1149.00", 2, 0),
    ("PH-IP15", "Apple iPhone 15", ArticleCategory.serialized, "Smartphone", "799.00", 2, 0),
    ("MON-27", "Dell Monitor 27\"", ArticleCategory.standard, "Monitor", "229.00", 3, 6),
    ("DOCK-USB", "USB-C Dockingstation", ArticleCategory.standard, "Zubehoer", "149.00", 5, 8),
    ("KB-DE", "Tastatur DE", ArticleCategory.consumable, "Zubehoer", "24.90", 10, 25),
    ("MS-USB", "Maus USB", ArticleCategory.consumable, "Zubehoer", "12.50", 10, 30),
    ("CBL-HDMI", "HDMI Kabel 2m", ArticleCategory.consumable, "Kabel", "6.90", 20, 40),
]


def run_seed(create_schema: bool = False):
    setup_logging(get_settings())
    if create_schema:
        Base.metadata.create_all(engine)

    db = SessionLocal()
    try:
        with unit_of_work(db):
            for name, description in LOCATIONS:
                if not db.scalar(select(WarehouseLocation).where(WarehouseLocation.name == name)):
                    db.add(WarehouseLocation(name=name, description=description))

            suppliers = {}
            for data in SUPPLIERS:
                s = db.scalar(select(Supplier).where(Supplier.name == data["name"]))
                if not s:
                    s = Supplier(**data)
                    db.add(s)
                suppliers[s.name] = s
            db.flush()

            preferred = suppliers["Bechtle"]
            for sku, name, category, group, price, min_level, opening in ARTICLES:
                if db.scalar(select(Article).where(Article.sku == sku)):
                    continue
                a = Article(
                    sku=sku,
                    name=name,
                    category=category,
                    product_group=group,
                    avg_purchase_price=Decimal(price),
                    min_stock_level=min_level,
                )
                db.add(a)
                db.flush()
                db.add(ArticleSupplier(article_id=a.id, supplier_id=preferred.id, unit_price=Decimal(price), is_preferred=True))

                # opening stock goes through the ledger like any other booking
                if opening:
                    inventory.record_movement(
                        db, a, MovementType.incoming, opening, reason="Opening stock", performed_by="seed"
                    )

        logger.info("seed ok: %s locations, %s suppliers, %s articles", len(LOCATIONS), len(SUPPLIERS), len(ARTICLES))
    finally:
        db.close()


if __name__ == "__main__":
    run_seed(create_schema=True)
