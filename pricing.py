"""
Money math shared by the cart and by order assembly.

All amounts are integers in the minor currency unit. Fractional results
(discounted unit prices, tax) are rounded half-up to the nearest unit.
"""
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from schemas import PriceSummary

TAX_RATE = Decimal("0.18")
FREE_SHIPPING_THRESHOLD = 5000
SHIPPING_FEE = 200


def round_minor(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def unit_price(price: int, discount=0) -> int:
    """Price of one unit after a percentage discount."""
    if discount and discount > 0:
        return round_minor(Decimal(price) * (100 - Decimal(str(discount))) / 100)
    return int(price)


def items_price(lines: Iterable) -> int:
    return sum(unit_price(line.price, getattr(line, "discount", 0)) * line.quantity for line in lines)


def tax_price(subtotal: int) -> int:
    return round_minor(Decimal(subtotal) * TAX_RATE)


def shipping_price(subtotal: int) -> int:
    return 0 if subtotal >= FREE_SHIPPING_THRESHOLD else SHIPPING_FEE


def quote(lines: Iterable) -> PriceSummary:
    subtotal = items_price(lines)
    tax = tax_price(subtotal)
    shipping = shipping_price(subtotal)
    return PriceSummary(
        items_price=subtotal,
        tax_price=tax,
        shipping_price=shipping,
        total_price=subtotal + tax + shipping,
    )
