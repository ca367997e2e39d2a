"""
Shopping cart with pricing, persisted to client-local storage.
"""
import logging
from typing import List, Union

from pydantic import TypeAdapter, ValidationError as PydanticValidationError

import pricing
from database import LocalStorage
from schemas import CartItem, PriceSummary, Product

logger = logging.getLogger(__name__)

_cart_items = TypeAdapter(List[CartItem])


def _product_id(product: Union[Product, CartItem, str]) -> str:
    return str(getattr(product, "id", product))


class Cart:
    def __init__(self, storage: LocalStorage, key: str = "cart"):
        self.storage = storage
        self.key = key
        self.items: List[CartItem] = self._restore()

    def _restore(self) -> List[CartItem]:
        saved = self.storage.get_item(self.key)
        if not saved:
            return []
        try:
            return _cart_items.validate_json(saved)
        except PydanticValidationError as e:
            logger.error("Discarding unreadable saved cart: %s", e)
            return []

    def _save(self):
        self.storage.set_item(self.key, _cart_items.dump_json(self.items, by_alias=True).decode())

    def _find(self, product_id: str):
        return next((item for item in self.items if item.id == product_id), None)

    def add_item(self, product: Union[Product, CartItem], quantity: int = 1):
        if quantity < 1:
            raise ValueError("quantity must be at least 1")
        existing = self._find(_product_id(product))
        if existing is not None:
            existing.quantity += quantity
        elif isinstance(product, CartItem):
            self.items.append(product.model_copy(update={"quantity": quantity}))
        else:
            self.items.append(CartItem(
                id=product.id,
                name=product.name,
                price=product.price,
                discount=product.discount,
                image=product.primary_image,
                quantity=quantity,
            ))
        self._save()

    def remove_item(self, product_id):
        product_id = _product_id(product_id)
        self.items = [item for item in self.items if item.id != product_id]
        self._save()

    def set_quantity(self, product_id, quantity: int):
        if quantity <= 0:
            self.remove_item(product_id)
            return
        item = self._find(_product_id(product_id))
        if item is not None:
            item.quantity = quantity
            self._save()

    def clear(self):
        self.items = []
        self.storage.remove_item(self.key)

    def contains(self, product_id) -> bool:
        return self._find(_product_id(product_id)) is not None

    def quantity_of(self, product_id) -> int:
        item = self._find(_product_id(product_id))
        return item.quantity if item else 0

    def count(self) -> int:
        return sum(item.quantity for item in self.items)

    def subtotal(self) -> int:
        return pricing.items_price(self.items)

    def tax(self) -> int:
        return pricing.tax_price(self.subtotal())

    def shipping(self) -> int:
        return pricing.shipping_price(self.subtotal())

    def total(self) -> int:
        return self.subtotal() + self.tax() + self.shipping()

    def summary(self) -> PriceSummary:
        return pricing.quote(self.items)

    def snapshot(self) -> List[CartItem]:
        """Frozen copy of the lines, for handing to checkout."""
        return [item.model_copy() for item in self.items]
