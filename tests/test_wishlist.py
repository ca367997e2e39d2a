import json

import pytest

from wishlist import Wishlist


def test_toggle_twice_restores_membership(storage, catalog):
    wishlist = Wishlist(storage)
    mug = catalog.get("1")

    assert wishlist.toggle(mug) is True
    assert wishlist.contains("1")
    assert wishlist.toggle(mug) is False
    assert not wishlist.contains("1")


def test_ids_are_compared_as_strings(storage):
    wishlist = Wishlist(storage)
    wishlist.add(7)
    assert wishlist.contains("7")
    wishlist.add("7")
    assert wishlist.count() == 1


def test_wishlist_is_independent_of_cart(storage, catalog):
    from cart import Cart

    cart = Cart(storage)
    wishlist = Wishlist(storage)
    cart.add_item(catalog.get("1"))
    wishlist.toggle(catalog.get("2"))
    assert Cart(storage).contains("1")
    assert not Cart(storage).contains("2")
    assert Wishlist(storage).product_ids == ["2"]


def test_restores_product_objects_saved_by_older_clients(storage):
    storage.set_item("wishlist", json.dumps([{"id": 3, "name": "Pendant"}, {"id": "3"}]))
    assert Wishlist(storage).product_ids == ["3"]


def test_clear_drops_saved_entry(storage):
    wishlist = Wishlist(storage)
    wishlist.add("1")
    wishlist.clear()
    assert Wishlist(storage).count() == 0
    assert storage.get_item("wishlist") is None


@pytest.mark.parametrize("saved", ["5", '{"3": true}', "null"])
def test_saved_value_that_is_not_a_list_starts_empty(storage, saved):
    storage.set_item("wishlist", saved)
    assert Wishlist(storage).product_ids == []
