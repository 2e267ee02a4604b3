from backend.app.db.models.core_types import ArticleCategory, MobilfunkType
from backend.services import fulfillment, procurement
from backend.services.dashboard import dashboard, low_stock_articles


def test_dashboard_counts_and_low_stock(db_session, make_article, make_order, make_supplier):
    """
    GIVEN
    - a monitor at its minimum level (2 of 2) and a cable well above it
    - one untouched order, one partially picked order, one ordered line waiting for goods

    THEN
    - pipeline counts follow the derived status
    - the monitor is the only low-stock article
    """
    monitor = make_article(ArticleCategory.standard, stock=4, min_stock_level=2, name="Monitor")
    make_article(ArticleCategory.consumable, stock=50, min_stock_level=5, name="Cable")
    supplier = make_supplier()

    make_order(items=[{"article_id": monitor.id, "quantity": 1}])
    picking = make_order(items=[{"article_id": monitor.id, "quantity": 3}])
    fulfillment.pick_item(db_session, picking.items[0].id, quantity=2, technician_name="Tom")
    procurement.mark_item_ordered(
        db_session, picking.items[0].id, supplier_id=supplier.id, supplier_order_no="S-1", ordered_by="Jasmin"
    )
    db_session.commit()

    data = dashboard(db_session)

    assert data.counts.new == 1
    assert data.counts.in_commission == 1
    assert data.counts.open_procurement == 1
    assert data.counts.pending_receiving == 1
    assert [a.name for a in data.low_stock] == ["Monitor"]
    assert len(data.recent_movements) == 3


def test_low_stock_ignores_articles_without_minimum(make_article, db_session):
    make_article(ArticleCategory.standard, stock=0, min_stock_level=0)
    empty = make_article(ArticleCategory.standard, stock=0, min_stock_level=1)

    assert [a.id for a in low_stock_articles(db_session, limit=5)] == [empty.id]


def test_mobilfunk_counts_in_procurement_and_receiving(db_session, make_order):
    order = make_order(mobilfunk=[{"type": MobilfunkType.sim_only, "sim_type": "ESIM"}] * 2)

    assert dashboard(db_session).counts.open_procurement == 2

    procurement.mark_mobilfunk_ordered(
        db_session, order.mobilfunk[0].id, provider_order_no="VF-77", ordered_by="Jasmin"
    )
    db_session.commit()

    counts = dashboard(db_session).counts
    assert counts.open_procurement == 1
    assert counts.pending_receiving == 1
