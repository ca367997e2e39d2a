"""
Wishlist: a set of product ids, kept apart from the cart.
"""
import json
import logging
from typing import List

from database import LocalStorage

logger = logging.getLogger(__name__)


def _key(product) -> str:
    return str(getattr(product, "id", product))


class Wishlist:
    def __init__(self, storage: LocalStorage, key: str = "wishlist"):
        self.storage = storage
        self.key = key
        self._ids: List[str] = self._restore()

    def _restore(self) -> List[str]:
        saved = self.storage.get_item(self.key)
        if not saved:
            return []
        try:
            ids = json.loads(saved)
        except json.JSONDecodeError as e:
            logger.error("Discarding unreadable saved wishlist: %s", e)
            return []
        if not isinstance(ids, list):
            logger.error("Discarding saved wishlist of type %s", type(ids).__name__)
            return []
        # older clients stored whole product objects
        return list(dict.fromkeys(_key(i.get("id") if isinstance(i, dict) else i) for i in ids))

    def _save(self):
        self.storage.set_item(self.key, json.dumps(self._ids))

    @property
    def product_ids(self) -> List[str]:
        return list(self._ids)

    def contains(self, product) -> bool:
        return _key(product) in self._ids

    def add(self, product):
        key = _key(product)
        if key not in self._ids:
            self._ids.append(key)
            self._save()

    def remove(self, product):
        key = _key(product)
        if key in self._ids:
            self._ids.remove(key)
            self._save()

    def toggle(self, product) -> bool:
        """Add the product if absent, drop it if present. Returns the new membership."""
        if self.contains(product):
            self.remove(product)
            return False
        self.add(product)
        return True

    def count(self) -> int:
        return len(self._ids)

    def clear(self):
        self._ids = []
        self.storage.remove_item(self.key)
