import pytest
from sqlalchemy import func, select

from backend.app.db.models.core_types import ArticleCategory, MobilfunkType, OrderStatus, SerialNumberStatus
from backend.app.db.models.models_v1 import SerialNumber, StockMovement
from backend.services import inventory, orders, procurement, receiving, serials
from backend.services.errors import (
    DomainRuleViolation,
    DuplicateSerialNumber,
    OrderClosed,
    QuantityExceeded,
    ValidationFailed,
)


@pytest.fixture
def ordered_line(db_session, make_article, make_order, make_supplier):
    """SERIALIZED line of 3 units, ordered at the supplier."""

    def _make(quantity=3, stock=0):
        article = make_article(ArticleCategory.serialized, stock=stock)
        supplier = make_supplier()
        order = make_order(items=[{"article_id": article.id, "quantity": quantity}])
        item = order.items[0]
        procurement.mark_item_ordered(
            db_session, item.id, supplier_id=supplier.id, supplier_order_no="SUP-77", ordered_by="Jasmin"
        )
        db_session.commit()
        return article, order, item

    return _make


def _count(db_session, model):
    return db_session.scalar(select(func.count()).select_from(model))


def test_receive_books_stock_and_lowers_incoming(db_session, ordered_line):
    """
    GIVEN
    - a line of 3 ordered (incoming 3)

    THEN
    - receiving 2 with serials: stock 2, incoming 1, received 2, serials IN_STOCK linked to the line
    - receiving the last unit: stock 3, incoming 0
    """

    # ---------- ARRANGE ----------
    article, order, item = ordered_line()
    assert article.incoming_stock == 3

    # ---------- ACT ----------
    receiving.receive_order_item(
        db_session,
        item.id,
        quantity=2,
        performed_by="Lager",
        serial_numbers=[serials.SerialEntry("R-1"), serials.SerialEntry("R-2", is_used=True)],
    )
    db_session.commit()

    # ---------- ASSERT ----------
    assert article.current_stock == 2
    assert article.incoming_stock == 1
    assert item.received_qty == 2
    created = serials.available_serials(db_session, article.id)
    assert [s.serial_no for s in created] == ["R-1", "R-2"]
    assert all(s.status is SerialNumberStatus.in_stock and s.order_item_id == item.id for s in created)
    assert created[1].is_used is True

    receiving.receive_order_item(db_session, item.id, quantity=1, serial_numbers=[serials.SerialEntry("R-3")])
    db_session.commit()
    assert article.current_stock == 3
    assert article.incoming_stock == 0
    assert receiving.pending_receipts(db_session) == []


def test_duplicate_serial_aborts_the_whole_receipt(db_session, ordered_line):
    """
    GIVEN
    - serial DUP-1 already exists
    - a receipt of 3 units with serials [N-1, DUP-1, N-2]

    THEN
    - DuplicateSerialNumber, and after rollback nothing changed:
      no stock, no IN movement, no received quantity, no new serials
    """

    # ---------- ARRANGE ----------
    article, order, item = ordered_line()
    serials.register_serial_numbers(db_session, article, [serials.SerialEntry("DUP-1")])
    db_session.commit()
    movements_before = _count(db_session, StockMovement)
    serials_before = _count(db_session, SerialNumber)

    # ---------- ACT ----------
    with pytest.raises(DuplicateSerialNumber) as exc:
        receiving.receive_order_item(
            db_session,
            item.id,
            quantity=3,
            serial_numbers=[serials.SerialEntry("N-1"), serials.SerialEntry("DUP-1"), serials.SerialEntry("N-2")],
        )
    db_session.rollback()

    # ---------- ASSERT ----------
    assert exc.value.serial_numbers == ["DUP-1"]
    assert article.current_stock == 0
    assert article.incoming_stock == 3
    assert item.received_qty == 0
    assert _count(db_session, StockMovement) == movements_before
    assert _count(db_session, SerialNumber) == serials_before


def test_repeated_serial_within_one_receipt_is_rejected(db_session, ordered_line):
    article, order, item = ordered_line(quantity=2)

    with pytest.raises(DuplicateSerialNumber):
        receiving.receive_order_item(
            db_session, item.id, quantity=2, serial_numbers=[serials.SerialEntry("X-1"), serials.SerialEntry("X-1")]
        )


def test_over_receipt_and_extra_serials_are_rejected(db_session, ordered_line):
    article, order, item = ordered_line(quantity=2)

    with pytest.raises(QuantityExceeded):
        receiving.receive_order_item(db_session, item.id, quantity=3)
    with pytest.raises(ValidationFailed):
        receiving.receive_order_item(
            db_session,
            item.id,
            quantity=1,
            serial_numbers=[serials.SerialEntry("E-1"), serials.SerialEntry("E-2")],
        )

    receiving.receive_order_item(db_session, item.id, quantity=2)
    db_session.commit()
    with pytest.raises(DomainRuleViolation):
        receiving.receive_order_item(db_session, item.id, quantity=1)


def test_unordered_line_leaves_incoming_alone(db_session, make_article, make_order):
    article = make_article(ArticleCategory.standard, incoming=4)
    order = make_order(items=[{"article_id": article.id, "quantity": 2}])

    receiving.receive_order_item(db_session, order.items[0].id, quantity=2)
    db_session.commit()

    assert article.current_stock == 2
    assert article.incoming_stock == 4


def test_cancelled_order_cannot_receive(db_session, make_article, make_order):
    article = make_article(ArticleCategory.standard)
    order = make_order(items=[{"article_id": article.id, "quantity": 1}])
    orders.cancel_order(db_session, order.id)
    db_session.commit()

    with pytest.raises(OrderClosed):
        receiving.receive_order_item(db_session, order.items[0].id, quantity=1)


def test_freetext_and_mobilfunk_receipts(db_session, make_order):
    order = make_order(
        items=[{"free_text": "Monitor arm", "quantity": 2}],
        mobilfunk=[{"type": MobilfunkType.sim_only}],
    )
    item, mf = order.items[0], order.mobilfunk[0]
    procurement.mark_mobilfunk_ordered(db_session, mf.id, provider_order_no="VF-1", ordered_by="Jasmin")
    db_session.commit()

    receiving.receive_freetext_item(db_session, item.id, performed_by="Lager")
    receiving.receive_mobilfunk(db_session, mf.id)
    db_session.commit()

    assert item.received_qty == 2
    assert mf.received is True
    assert order.status is OrderStatus.new


def test_resolved_freetext_line_counts_as_incoming_until_received(
    db_session, make_article, make_order, make_supplier
):
    """
    GIVEN
    - 5 docks ordered for one order (incoming 5)
    - a free-text line of 2 ordered before anyone picked an article for it

    THEN
    - resolving the line to the dock adds its 2 open units to incoming (7)
    - receiving them brings incoming back to the 5 still owed to the first order
    - both counters match their sources afterwards
    """

    # ---------- ARRANGE ----------
    dock = make_article(ArticleCategory.standard, name="USB-C dock")
    supplier = make_supplier()
    waiting = make_order(items=[{"article_id": dock.id, "quantity": 5}])
    loose = make_order(items=[{"free_text": "USB-C dock, 100W", "quantity": 2}])
    line = loose.items[0]
    for item, ref in ((waiting.items[0], "S-1"), (line, "S-2")):
        procurement.mark_item_ordered(
            db_session, item.id, supplier_id=supplier.id, supplier_order_no=ref, ordered_by="Jasmin"
        )
    db_session.commit()
    assert dock.incoming_stock == 5

    # ---------- ACT ----------
    orders.resolve_freetext_item(db_session, line.id, dock.id)
    db_session.commit()
    assert dock.incoming_stock == 7

    receiving.receive_order_item(db_session, line.id, quantity=2, performed_by="Lager")
    db_session.commit()

    # ---------- ASSERT ----------
    assert dock.incoming_stock == 5
    assert dock.current_stock == 2
    assert inventory.reconcile_stock(db_session) == []


def test_units_received_before_ordering_never_become_incoming(db_session, make_article, make_order, make_supplier):
    """
    GIVEN
    - a line of 3: 2 received before the supplier order, then ordered, then the last one received

    THEN
    - ordering only adds the 1 open unit, and incoming ends at 0
    """
    toner = make_article(ArticleCategory.standard, name="Toner")
    supplier = make_supplier()
    order = make_order(items=[{"article_id": toner.id, "quantity": 3}])
    item = order.items[0]

    receiving.receive_order_item(db_session, item.id, quantity=2)
    procurement.mark_item_ordered(
        db_session, item.id, supplier_id=supplier.id, supplier_order_no="S-9", ordered_by="Jasmin"
    )
    db_session.commit()
    assert toner.incoming_stock == 1

    receiving.receive_order_item(db_session, item.id, quantity=1)
    db_session.commit()

    assert toner.incoming_stock == 0
    assert toner.current_stock == 3
    assert inventory.reconcile_stock(db_session) == []
