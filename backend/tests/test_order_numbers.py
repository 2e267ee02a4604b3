from sqlalchemy import func, select

from backend.app.db.models.core_types import ArticleCategory, DeliveryMethod
from backend.app.db.models.models_v1 import NumberSequence, Order
from backend.services import numbering


def _legacy_order(db_session, number):
    db_session.add(
        Order(
            order_number=number,
            ordered_by="import",
            ordered_for="import",
            cost_center="0000",
            delivery_method=DeliveryMethod.pickup,
        )
    )
    db_session.flush()


def test_first_order_number_on_empty_database(db_session):
    assert numbering.get_next_order_number(db_session) == "BES-001"
    assert numbering.allocate_order_number(db_session) == "BES-001"


def test_next_number_follows_highest_existing(db_session):
    """
    GIVEN
    - orders BES-001 and BES-005 imported outside the allocator

    THEN
    - the next number is BES-006, not BES-003
    """
    _legacy_order(db_session, "BES-001")
    _legacy_order(db_session, "BES-005")

    assert numbering.get_next_order_number(db_session) == "BES-006"
    assert numbering.allocate_order_number(db_session) == "BES-006"
    assert numbering.allocate_order_number(db_session) == "BES-007"


def test_numbers_compare_numerically_past_the_padding(db_session):
    _legacy_order(db_session, "BES-999")
    _legacy_order(db_session, "BES-1000")
    _legacy_order(db_session, "BES-abc")

    assert numbering.allocate_order_number(db_session) == "BES-1001"


def test_preview_does_not_reserve(db_session):
    numbering.allocate_order_number(db_session)
    assert numbering.get_next_order_number(db_session) == "BES-002"
    assert numbering.get_next_order_number(db_session) == "BES-002"


def test_created_orders_get_consecutive_numbers(make_order, make_article):
    article = make_article(ArticleCategory.consumable, stock=5)
    first = make_order(items=[{"article_id": article.id, "quantity": 1}])
    second = make_order(items=[{"free_text": "Headset", "quantity": 1}])

    assert first.order_number == "BES-001"
    assert second.order_number == "BES-002"


def test_parse_number_rejects_foreign_formats():
    assert numbering.parse_number("BES", "BES-042") == 42
    assert numbering.parse_number("BES", "ART-042") is None
    assert numbering.parse_number("BES", "BES-") is None
    assert numbering.parse_number("BES", None) is None
    assert numbering.format_number("ART", 7, width=3) == "ART-007"


def test_sequence_rows_exist_before_the_first_allocation(db_session):
    """
    GIVEN
    - a freshly created schema

    THEN
    - both configured prefixes already have a row to lock, so the first allocation inserts nothing
    """
    rows = {s.name: s.value for s in db_session.scalars(select(NumberSequence))}
    assert rows == {"ART": 0, "BES": 0}

    assert numbering.allocate_order_number(db_session) == "BES-001"
    assert db_session.scalar(select(func.count()).select_from(NumberSequence)) == 2
    assert db_session.get(NumberSequence, "BES").value == 1
