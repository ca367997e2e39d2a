import pytest

import pricing
from schemas import CartItem


def line(price, quantity=1, discount=0):
    return CartItem(id="p", name="Item", price=price, quantity=quantity, discount=discount)


def test_free_shipping_scenario():
    summary = pricing.quote([line(3000, 2)])
    assert summary.items_price == 6000
    assert summary.tax_price == 1080
    assert summary.shipping_price == 0
    assert summary.total_price == 7080


def test_flat_shipping_scenario():
    summary = pricing.quote([line(1000, 1)])
    assert summary.items_price == 1000
    assert summary.tax_price == 180
    assert summary.shipping_price == 200
    assert summary.total_price == 1380


def test_threshold_is_inclusive():
    assert pricing.shipping_price(5000) == 0
    assert pricing.shipping_price(4999) == 200


@pytest.mark.parametrize("lines", [
    [],
    [line(1999, 3)],
    [line(1999, 1, discount=20), line(7499, 2)],
    [line(333, 7, discount=15)],
])
def test_total_is_sum_of_parts(lines):
    summary = pricing.quote(lines)
    assert summary.total_price == summary.items_price + summary.tax_price + summary.shipping_price
    assert summary.shipping_price == (0 if summary.items_price >= 5000 else 200)


def test_discounted_unit_price_rounds_half_up():
    # 1999 * 0.8 = 1599.2
    assert pricing.unit_price(1999, 20) == 1599
    # 25 * 0.9 = 22.5
    assert pricing.unit_price(25, 10) == 23
    assert pricing.unit_price(1999, 0) == 1999


def test_tax_rounds_half_up():
    # 1025 * 0.18 = 184.5
    assert pricing.tax_price(1025) == 185
    assert pricing.tax_price(1024) == 184
