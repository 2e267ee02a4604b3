import pytest

from backend.app.db.models.core_types import (
    ArticleCategory,
    MobilfunkType,
    MovementType,
    OrderStatus,
    SerialNumberStatus,
)
from backend.services import fulfillment, inventory, serials
from backend.services.errors import (
    DomainRuleViolation,
    InsufficientStock,
    NothingToUnpick,
    OrderClosed,
    QuantityExceeded,
    SerialNumberRequired,
    SerialNumberUnavailable,
)


@pytest.fixture
def laptop(db_session, make_article):
    """SERIALIZED article with two serials in stock."""
    article = make_article(ArticleCategory.serialized, stock=2, name="Notebook")
    serials.register_serial_numbers(
        db_session, article, [serials.SerialEntry("SN-A"), serials.SerialEntry("SN-B")]
    )
    db_session.commit()
    return article


def test_pick_then_unpick_restores_stock_and_serials(db_session, make_order, laptop):
    """
    GIVEN
    - a SERIALIZED article with stock 2 and serials SN-A, SN-B in stock
    - an order line for 1 unit

    THEN
    - the pick books OUT -1, deploys SN-A and the order is READY_TO_SHIP
    - the unpick books IN +1, SN-A is back in stock and the order is NEW again
    """

    # ---------- ARRANGE ----------
    order = make_order(items=[{"article_id": laptop.id, "quantity": 1}])
    item = order.items[0]
    sn_a = next(s for s in serials.available_serials(db_session, laptop.id) if s.serial_no == "SN-A")

    # ---------- ACT: pick ----------
    fulfillment.pick_item(db_session, item.id, quantity=1, technician_name="Tom", serial_number_ids=[sn_a.id])
    db_session.commit()

    assert laptop.current_stock == 1
    assert item.picked_qty == 1
    assert item.picked_by == "Tom"
    assert sn_a.status is SerialNumberStatus.deployed
    assert sn_a.order_item_id == item.id
    assert order.status is OrderStatus.ready_to_ship

    # ---------- ACT: unpick ----------
    fulfillment.unpick_item(db_session, item.id, technician_name="Tom")
    db_session.commit()

    assert laptop.current_stock == 2
    assert item.picked_qty == 0
    assert item.picked_by is None
    assert sn_a.status is SerialNumberStatus.in_stock
    assert sn_a.order_item_id is None
    assert order.status is OrderStatus.new

    movements = inventory.list_stock_movements(db_session, article_id=laptop.id)
    order_moves = sorted((m for m in movements if m.order_item_id == item.id), key=lambda m: m.id)
    assert [(m.type, m.quantity) for m in order_moves] == [(MovementType.outgoing, -1), (MovementType.incoming, 1)]


def test_serialized_pick_needs_one_serial_per_unit(db_session, make_order, laptop):
    order = make_order(items=[{"article_id": laptop.id, "quantity": 2}])
    item = order.items[0]
    first = serials.available_serials(db_session, laptop.id)[0]

    with pytest.raises(SerialNumberRequired):
        fulfillment.pick_item(db_session, item.id, quantity=1, technician_name="Tom")
    with pytest.raises(SerialNumberRequired):
        fulfillment.pick_item(db_session, item.id, quantity=2, technician_name="Tom", serial_number_ids=[first.id])
    db_session.rollback()

    assert laptop.current_stock == 2
    assert item.picked_qty == 0


def test_deployed_serial_cannot_be_picked_again(db_session, make_order, laptop):
    order = make_order(items=[{"article_id": laptop.id, "quantity": 1}, {"article_id": laptop.id, "quantity": 1}])
    sn = serials.available_serials(db_session, laptop.id)[0]
    fulfillment.pick_item(db_session, order.items[0].id, quantity=1, technician_name="Tom", serial_number_ids=[sn.id])
    db_session.commit()

    with pytest.raises(SerialNumberUnavailable):
        fulfillment.pick_item(
            db_session, order.items[1].id, quantity=1, technician_name="Tom", serial_number_ids=[sn.id]
        )


def test_pick_more_than_stock_fails_without_changes(db_session, make_order, make_article):
    monitor = make_article(ArticleCategory.standard, stock=1)
    order = make_order(items=[{"article_id": monitor.id, "quantity": 3}])
    item = order.items[0]

    with pytest.raises(InsufficientStock) as exc:
        fulfillment.pick_item(db_session, item.id, quantity=2, technician_name="Tom")
    db_session.rollback()

    assert exc.value.available == 1
    assert exc.value.requested == 2
    assert monitor.current_stock == 1
    assert item.picked_qty == 0


def test_picks_accumulate_up_to_the_line_quantity(db_session, make_order, make_article):
    dock = make_article(ArticleCategory.standard, stock=10)
    order = make_order(items=[{"article_id": dock.id, "quantity": 3}])
    item = order.items[0]

    fulfillment.pick_item(db_session, item.id, quantity=2, technician_name="Tom")
    db_session.commit()
    assert order.status is OrderStatus.in_commission

    with pytest.raises(QuantityExceeded):
        fulfillment.pick_item(db_session, item.id, quantity=2, technician_name="Tom")

    fulfillment.pick_item(db_session, item.id, quantity=1, technician_name="Tom")
    db_session.commit()
    assert item.picked_qty == 3
    assert dock.current_stock == 7
    assert order.status is OrderStatus.ready_to_ship


def test_second_unpick_does_not_credit_twice(db_session, make_order, make_article):
    """
    GIVEN
    - a line of 2 picked in full

    THEN
    - the first unpick returns 2 units
    - the second unpick fails and stock stays where it is
    """
    keyboard = make_article(ArticleCategory.consumable, stock=5)
    order = make_order(items=[{"article_id": keyboard.id, "quantity": 2}])
    item = order.items[0]
    fulfillment.pick_item(db_session, item.id, quantity=2, technician_name="Tom")
    db_session.commit()
    assert keyboard.current_stock == 3

    fulfillment.unpick_item(db_session, item.id, technician_name="Tom")
    db_session.commit()
    assert keyboard.current_stock == 5

    with pytest.raises(NothingToUnpick):
        fulfillment.unpick_item(db_session, item.id, technician_name="Tom")
    db_session.rollback()
    assert keyboard.current_stock == 5


def test_freetext_line_cannot_be_picked(db_session, make_order):
    order = make_order(items=[{"free_text": "Special cable", "quantity": 1}])

    with pytest.raises(DomainRuleViolation):
        fulfillment.pick_item(db_session, order.items[0].id, quantity=1, technician_name="Tom")


def test_mobilfunk_setup_drives_the_status(db_session, make_order, make_article):
    """
    GIVEN
    - one line picked in full and one mobilfunk record

    THEN
    - IN_SETUP until the mobilfunk is set up, READY_TO_SHIP after
    - a reset brings it back to IN_SETUP
    """
    mouse = make_article(ArticleCategory.consumable, stock=5)
    order = make_order(
        items=[{"article_id": mouse.id, "quantity": 1}],
        mobilfunk=[{"type": MobilfunkType.phone_and_sim, "sim_type": "SIM", "tariff": "STANDARD"}],
    )
    fulfillment.pick_item(db_session, order.items[0].id, quantity=1, technician_name="Tom")
    db_session.commit()
    assert order.status is OrderStatus.in_setup

    mf = order.mobilfunk[0]
    fulfillment.setup_mobilfunk(db_session, mf.id, technician_name="Tom", imei="356938035643809", phone_number="+49 151 1234567")
    db_session.commit()
    assert mf.setup_done is True
    assert order.status is OrderStatus.ready_to_ship

    fulfillment.reset_mobilfunk_setup(db_session, mf.id)
    db_session.commit()
    assert mf.imei is None
    assert order.status is OrderStatus.in_setup


def test_finish_tech_work_completes_and_closes_the_order(db_session, make_order, make_article):
    mouse = make_article(ArticleCategory.consumable, stock=5)
    order = make_order(items=[{"article_id": mouse.id, "quantity": 1}])
    fulfillment.pick_item(db_session, order.items[0].id, quantity=1, technician_name="Tom")
    fulfillment.mark_setup_done(db_session, order.id)
    db_session.commit()
    assert order.setup_done_at is not None
    assert order.status is OrderStatus.ready_to_ship

    fulfillment.finish_tech_work(db_session, order.id, technician_name="Tom", tracking_number="1Z999AA10123456784")
    db_session.commit()
    assert order.status is OrderStatus.completed
    assert order.shipped_by == "Tom"

    with pytest.raises(OrderClosed):
        fulfillment.unpick_item(db_session, order.items[0].id, technician_name="Tom")


def test_technician_queue_hides_short_orders(db_session, make_order, make_article):
    plenty = make_article(ArticleCategory.standard, stock=5)
    scarce = make_article(ArticleCategory.standard, stock=1)
    ok = make_order(items=[{"article_id": plenty.id, "quantity": 1}])
    make_order(items=[{"article_id": scarce.id, "quantity": 2}])
    tight = make_order(items=[{"article_id": scarce.id, "quantity": 1}])

    views = fulfillment.technician_orders(db_session)

    assert [v.order.id for v in views] == [ok.id, tight.id]
    assert [v.availability.value for v in views] == ["green", "yellow"]
