import pytest

from backend.app.db.models.core_types import ArticleCategory, MovementType
from backend.app.schemas.article import (
    ArticleCreate,
    ArticleQuickCreate,
    ArticleSupplierCreate,
    ArticleUpdate,
    SupplierCreate,
)
from backend.services import catalog, inventory
from backend.services.errors import Conflict, InsufficientStock


def test_create_article_with_legacy_category(db_session):
    payload = ArticleCreate.model_validate({"sku": "NB-T14", "name": "ThinkPad T14", "category": "high_tier"})

    article = catalog.create_article(db_session, payload)
    db_session.commit()

    assert article.category is ArticleCategory.serialized
    assert article.current_stock == 0
    assert article.incoming_stock == 0


def test_duplicate_sku_is_a_conflict(db_session, make_article):
    make_article(sku="DOCK-USB")

    with pytest.raises(Conflict):
        catalog.create_article(
            db_session, ArticleCreate(sku="DOCK-USB", name="Dock again", category=ArticleCategory.standard)
        )


def test_quick_create_allocates_article_numbers(db_session, make_article):
    make_article(sku="ART-007")

    first = catalog.quick_create_article(
        db_session, ArticleQuickCreate(name="Headset", category=ArticleCategory.standard)
    )
    second = catalog.quick_create_article(
        db_session, ArticleQuickCreate(name="Webcam", category=ArticleCategory.standard)
    )

    assert (first.sku, second.sku) == ("ART-008", "ART-009")


def test_update_never_touches_counters(db_session, make_article):
    article = make_article(stock=4)

    catalog.update_article(db_session, article.id, ArticleUpdate(name="Renamed", min_stock_level=2))
    db_session.commit()

    assert article.name == "Renamed"
    assert article.min_stock_level == 2
    assert article.current_stock == 4
    assert "current_stock" not in ArticleUpdate.model_fields


def test_detail_lists_preferred_supplier_first(db_session, make_article):
    article = make_article(stock=1)
    cheap = catalog.create_supplier(db_session, SupplierCreate(name="Cheap GmbH"))
    main = catalog.create_supplier(db_session, SupplierCreate(name="Main AG", email=""))
    catalog.link_article_supplier(db_session, article.id, ArticleSupplierCreate(supplier_id=cheap.id, unit_price="9.90"))
    catalog.link_article_supplier(
        db_session, article.id, ArticleSupplierCreate(supplier_id=main.id, unit_price="11.00", is_preferred=True)
    )
    db_session.commit()

    detail = catalog.article_detail(db_session, article.id)

    assert [link.supplier.name for link in detail["suppliers"]] == ["Main AG", "Cheap GmbH"]
    assert catalog.preferred_supplier(db_session, article.id).id == main.id
    assert [m.type for m in detail["movements"]] == [MovementType.incoming]
    assert dict((s.name, n) for s, n in catalog.list_suppliers(db_session)) == {"Cheap GmbH": 1, "Main AG": 1}

    with pytest.raises(Conflict):
        catalog.link_article_supplier(db_session, article.id, ArticleSupplierCreate(supplier_id=main.id, unit_price="1"))


def test_manual_movements(db_session, make_article):
    article = make_article(stock=3)

    inventory.record_manual_movement(db_session, article_id=article.id, movement_type=MovementType.outgoing, quantity=2)
    assert article.current_stock == 1

    inventory.record_manual_movement(
        db_session, article_id=article.id, movement_type=MovementType.adjustment, quantity=7, reason="recount"
    )
    assert article.current_stock == 7

    with pytest.raises(InsufficientStock):
        inventory.record_manual_movement(
            db_session, article_id=article.id, movement_type=MovementType.outgoing, quantity=8
        )


def test_list_articles_filters(db_session, make_article):
    make_article(ArticleCategory.consumable, name="HDMI cable")
    make_article(ArticleCategory.standard, name="Monitor")
    gone = make_article(ArticleCategory.consumable, name="VGA cable")
    catalog.deactivate_article(db_session, gone.id)
    db_session.commit()

    assert [a.name for a in catalog.list_articles(db_session, category=ArticleCategory.consumable)] == ["HDMI cable"]
    assert [a.name for a in catalog.list_articles(db_session, search="cable", active_only=False)] == [
        "HDMI cable",
        "VGA cable",
    ]
