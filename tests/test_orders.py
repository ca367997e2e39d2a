from datetime import timedelta

import pytest

from database import Database
from errors import InvalidTransition, NotFound, PersistenceError, ValidationError
from schemas import CartItem, OrderStatus, PaymentInfo, ShippingAddress

ADDRESS = ShippingAddress(
    name="Asha Rao", phone="9999999999", street="12 Potter Lane",
    city="Jaipur", state="Rajasthan", pincode="302001",
)


def place(order_book, lines=None, user_id="2"):
    lines = lines or [CartItem(id="1", name="Handcrafted Ceramic Mug", price=3000, quantity=2)]
    return order_book.create(user_id, lines, ADDRESS, PaymentInfo(method="upi"))


def move(order_book, order_id, *statuses):
    for status in statuses:
        order_book.advance_status(order_id, status)


def test_create_computes_prices(order_book):
    order = place(order_book)
    assert order.status == OrderStatus.pending
    assert (order.items_price, order.tax_price, order.shipping_price, order.total_price) == (6000, 1080, 0, 7080)
    assert order.order_items[0].product_id == "1"
    assert order.user == "2"
    assert order_book.get(order.id) == order


def test_create_uses_discounted_unit_price(order_book):
    order = place(order_book, [CartItem(id="1", name="Mug", price=1999, discount=20, quantity=1)])
    assert order.order_items[0].price == 1599
    assert order.items_price == 1599
    assert order.shipping_price == 200
    assert order.total_price == order.items_price + order.tax_price + order.shipping_price


def test_create_requires_items(order_book):
    with pytest.raises(ValidationError):
        order_book.create("2", [], ADDRESS)


def test_order_lines_are_decoupled_from_catalog(order_book, catalog):
    order = place(order_book)
    catalog.update("1", {"price": 1, "name": "Renamed"})
    assert order_book.get(order.id).order_items[0].name == "Handcrafted Ceramic Mug"


def test_orders_for_user(order_book):
    mine = place(order_book, user_id="2")
    place(order_book, user_id="3")
    assert [o.id for o in order_book.list_for_user("2")] == [mine.id]
    assert len(order_book.list_all()) == 2
    assert len(order_book.list_all(OrderStatus.pending)) == 2


@pytest.mark.parametrize("path", [[], [OrderStatus.processing]])
def test_cancel_from_early_status(order_book, clock, path):
    order = place(order_book)
    move(order_book, order.id, *path)
    cancelled = order_book.cancel(order.id)
    assert cancelled.status == OrderStatus.cancelled
    assert cancelled.cancelled_at == clock.now


@pytest.mark.parametrize("path", [
    [OrderStatus.processing, OrderStatus.shipped],
    [OrderStatus.processing, OrderStatus.shipped, OrderStatus.delivered],
    [OrderStatus.cancelled],
])
def test_cancel_refused_later(order_book, path):
    order = place(order_book)
    move(order_book, order.id, *path)
    with pytest.raises(InvalidTransition):
        order_book.cancel(order.id)
    assert order_book.get(order.id).status == path[-1]


def test_cancel_refused_after_return(order_book):
    order = place(order_book)
    move(order_book, order.id, OrderStatus.shipped, OrderStatus.delivered)
    order_book.request_return(order.id, "Chipped")
    with pytest.raises(InvalidTransition):
        order_book.cancel(order.id)


def test_shipping_decrements_stock(order_book, catalog):
    order = place(order_book, [
        CartItem(id="1", name="Mug", price=1999, quantity=2),
        CartItem(id="2", name="Blanket", price=7499, quantity=1),
    ])
    move(order_book, order.id, OrderStatus.processing)
    assert catalog.get("1").stock == 15

    move(order_book, order.id, OrderStatus.shipped)
    assert catalog.get("1").stock == 13
    assert catalog.get("2").stock == 7

    move(order_book, order.id, OrderStatus.delivered)
    assert catalog.get("1").stock == 13


def test_admin_may_skip_ahead_to_delivered(order_book, catalog, clock):
    order = place(order_book)
    delivered = order_book.advance_status(order.id, OrderStatus.delivered)
    assert delivered.delivered_at == clock.now
    assert catalog.get("1").stock == 13


def test_missing_product_does_not_block_shipping(order_book, catalog):
    order = place(order_book, [
        CartItem(id="gone", name="Old", price=100, quantity=1),
        CartItem(id="1", name="Mug", price=1999, quantity=1),
    ])
    shipped = order_book.advance_status(order.id, OrderStatus.shipped, tracking_number="TRK1")
    assert shipped.status == OrderStatus.shipped
    assert shipped.tracking_number == "TRK1"
    assert catalog.get("1").stock == 14


def test_backwards_and_repeated_moves_refused(order_book):
    order = place(order_book)
    move(order_book, order.id, OrderStatus.shipped)
    with pytest.raises(InvalidTransition):
        order_book.advance_status(order.id, OrderStatus.processing)
    with pytest.raises(InvalidTransition):
        order_book.advance_status(order.id, OrderStatus.shipped)
    with pytest.raises(InvalidTransition):
        order_book.advance_status(order.id, OrderStatus.returned)


def test_return_within_window(order_book, clock):
    order = place(order_book)
    move(order_book, order.id, OrderStatus.shipped, OrderStatus.delivered)
    clock.now += timedelta(days=7, hours=23)
    returned = order_book.request_return(order.id, "Wrong colour")
    assert returned.status == OrderStatus.returned
    assert returned.return_reason == "Wrong colour"
    assert returned.return_requested_at == clock.now


def test_return_after_window_refused(order_book, clock):
    order = place(order_book)
    move(order_book, order.id, OrderStatus.shipped, OrderStatus.delivered)
    clock.now += timedelta(days=8)
    with pytest.raises(InvalidTransition):
        order_book.request_return(order.id, "Too late")
    assert order_book.get(order.id).status == OrderStatus.delivered


def test_return_requires_delivery(order_book):
    order = place(order_book)
    with pytest.raises(InvalidTransition):
        order_book.request_return(order.id, "Changed mind")


def test_delete_only_early_orders(order_book):
    pending = place(order_book)
    order_book.delete(pending.id)
    with pytest.raises(NotFound):
        order_book.get(pending.id)

    cancelled = place(order_book)
    order_book.cancel(cancelled.id)
    order_book.delete(cancelled.id)

    shipped = place(order_book)
    move(order_book, shipped.id, OrderStatus.shipped)
    with pytest.raises(InvalidTransition):
        order_book.delete(shipped.id)


def test_stats_excludes_cancelled_revenue(order_book):
    kept = place(order_book)
    dropped = place(order_book)
    order_book.cancel(dropped.id)
    stats = order_book.stats()
    assert stats["totalOrders"] == 2
    assert stats["ordersByStatus"]["cancelled"] == 1
    assert stats["totalRevenue"] == kept.total_price


def test_failed_status_write_keeps_stock(order_book, catalog, db, monkeypatch, tmp_path):
    order = place(order_book)
    real_write = db.document.write
    calls = []

    def flaky(data):
        calls.append(data)
        if len(calls) == 1:
            raise PersistenceError()
        real_write(data)

    monkeypatch.setattr(db.document, "write", flaky)
    with pytest.raises(PersistenceError):
        order_book.advance_status(order.id, OrderStatus.shipped)
    assert order_book.get(order.id).status == OrderStatus.pending
    assert catalog.get("1").stock == 15

    order_book.advance_status(order.id, OrderStatus.shipped)
    assert catalog.get("1").stock == 13
    reloaded = Database(tmp_path / "products.json").load()
    assert next(p for p in reloaded.products if p.id == "1").stock == 13
