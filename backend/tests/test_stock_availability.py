from types import SimpleNamespace

from backend.app.db.models.core_types import StockAvailability
from backend.services.fulfillment import compute_pick_availability
from backend.services.orders import calculate_stock_availability


def article(current, incoming=0):
    return SimpleNamespace(current_stock=current, incoming_stock=incoming)


def line(art, quantity, picked=0):
    return SimpleNamespace(article=art, quantity=quantity, picked_qty=picked)


def freetext(quantity=1, picked=0):
    return SimpleNamespace(article=None, quantity=quantity, picked_qty=picked)


def test_covered_by_current_stock_is_green():
    items = [line(article(5), 3), line(article(1), 1)]
    assert calculate_stock_availability(items) is StockAvailability.green


def test_shortfall_covered_by_incoming_is_yellow():
    items = [line(article(2, incoming=3), 4), line(article(10), 1)]
    assert calculate_stock_availability(items) is StockAvailability.yellow


def test_shortfall_beyond_incoming_is_red():
    items = [line(article(2, incoming=3), 4), line(article(0, incoming=1), 2)]
    assert calculate_stock_availability(items) is StockAvailability.red


def test_open_freetext_line_is_red():
    items = [line(article(50), 1), freetext()]
    assert calculate_stock_availability(items) is StockAvailability.red


def test_classifier_compares_the_full_requested_quantity():
    # picking does not matter here; what is left to pick is compute_pick_availability
    assert calculate_stock_availability([line(article(0), 5, picked=5)]) is StockAvailability.red
    assert calculate_stock_availability([line(article(1, incoming=2), 3, picked=2)]) is StockAvailability.yellow
    assert calculate_stock_availability([freetext(picked=1)]) is StockAvailability.red


def test_empty_order_is_green():
    assert calculate_stock_availability([]) is StockAvailability.green


def test_pick_availability_flags_tight_and_short_stock():
    assert compute_pick_availability([line(article(5), 2)]) is StockAvailability.green
    assert compute_pick_availability([line(article(2), 2)]) is StockAvailability.yellow
    assert compute_pick_availability([line(article(1, incoming=9), 2)]) is StockAvailability.red
    assert compute_pick_availability([line(article(5), 2), freetext()]) is StockAvailability.red
    assert compute_pick_availability([line(article(0), 2, picked=2)]) is StockAvailability.green
