from cart import Cart
from schemas import CartItem


def test_add_item_snapshots_product(storage, catalog):
    cart = Cart(storage)
    mug = catalog.get("1")
    cart.add_item(mug)

    assert len(cart.items) == 1
    line = cart.items[0]
    assert (line.id, line.name, line.price, line.quantity) == ("1", mug.name, 1999, 1)
    assert line.image == mug.images[0].url

    catalog.update("1", {"price": 9999})
    assert cart.items[0].price == 1999


def test_adding_same_product_increments_quantity(storage, catalog):
    cart = Cart(storage)
    cart.add_item(catalog.get("1"))
    cart.add_item(catalog.get("1"), quantity=2)
    assert len(cart.items) == 1
    assert cart.quantity_of("1") == 3
    assert cart.count() == 3


def test_set_quantity_zero_removes_line(storage, catalog):
    cart = Cart(storage)
    cart.add_item(catalog.get("1"))
    cart.add_item(catalog.get("2"))
    cart.set_quantity("1", 0)
    assert not cart.contains("1")
    assert cart.contains("2")
    cart.set_quantity("2", -4)
    assert cart.items == []


def test_remove_item(storage, catalog):
    cart = Cart(storage)
    cart.add_item(catalog.get("1"))
    cart.remove_item("1")
    assert cart.count() == 0


def test_totals_with_free_shipping(storage):
    cart = Cart(storage)
    cart.add_item(CartItem(id="x", name="Vase", price=3000), quantity=2)
    assert cart.subtotal() == 6000
    assert cart.tax() == 1080
    assert cart.shipping() == 0
    assert cart.total() == 7080


def test_totals_with_flat_shipping(storage):
    cart = Cart(storage)
    cart.add_item(CartItem(id="y", name="Coaster", price=1000))
    assert (cart.subtotal(), cart.tax(), cart.shipping(), cart.total()) == (1000, 180, 200, 1380)
    assert cart.summary().total_price == cart.total()


def test_discount_applies_to_subtotal(storage):
    cart = Cart(storage)
    cart.add_item(CartItem(id="z", name="Mug", price=2000, discount=25), quantity=2)
    assert cart.subtotal() == 3000


def test_cart_survives_new_session(storage, catalog):
    cart = Cart(storage)
    cart.add_item(catalog.get("2"), quantity=2)

    restored = Cart(storage)
    assert restored.quantity_of("2") == 2
    assert restored.total() == cart.total()


def test_unreadable_saved_cart_starts_empty(storage):
    storage.set_item("cart", "{not json")
    assert Cart(storage).items == []


def test_snapshot_is_a_copy(storage, catalog):
    cart = Cart(storage)
    cart.add_item(catalog.get("1"))
    snap = cart.snapshot()
    cart.set_quantity("1", 5)
    assert snap[0].quantity == 1


def test_clear_drops_saved_cart(storage, catalog):
    cart = Cart(storage)
    cart.add_item(catalog.get("1"))
    cart.clear()
    assert storage.get_item("cart") is None
    assert Cart(storage).items == []
