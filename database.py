"""
Flat-file persistence.

The catalog and the orders live in one JSON document, users in another. Each
document is rewritten wholesale on every mutation, through a temporary file
that is renamed over the old one so a crash never leaves a half-written file.
"""
import copy
import json
import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError

from errors import PersistenceError
from schemas import Order, Product, utcnow

logger = logging.getLogger(__name__)


class JsonDocument:
    """A single JSON object stored in a file."""

    def __init__(self, path):
        self.path = Path(path)

    def read(self) -> Optional[dict]:
        if not self.path.exists():
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Could not read %s: %s", self.path, e)
            raise PersistenceError(f"Could not read {self.path.name}") from e
        if not isinstance(data, dict):
            raise PersistenceError(f"{self.path.name} does not hold a JSON object")
        return data

    def write(self, data: dict):
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", dir=self.path.parent, prefix=f".{self.path.name}.", delete=False
            ) as tmp:
                tmp_name = tmp.name
                json.dump(data, tmp, indent=2, default=str)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self.path)
        except (OSError, TypeError, ValueError) as e:
            logger.exception("Could not write %s", self.path)
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise PersistenceError() from e


class Database:
    """In-memory working set of products and orders, mirrored to a JSON document.

    Build one per process and hand it to the stores that need it.
    """

    def __init__(self, path, seed_products: Optional[List[dict]] = None):
        self.document = JsonDocument(path)
        self.seed_products = seed_products or []
        self.products: List[Product] = []
        self.orders: List[Order] = []
        self._depth = 0

    def load(self):
        data = self.document.read()
        if data is None:
            logger.info("No catalog document at %s, using %d default products",
                        self.document.path, len(self.seed_products))
            data = {"products": self.seed_products, "orders": []}
        try:
            self.products = [Product.model_validate(p) for p in data.get("products") or []]
            self.orders = [Order.model_validate(o) for o in data.get("orders") or []]
        except PydanticValidationError as e:
            raise PersistenceError(f"Corrupt record in {self.document.path.name}: {e.errors()[0]['msg']}") from e
        logger.info("Loaded %d products and %d orders", len(self.products), len(self.orders))
        return self

    def save(self):
        self.document.write({
            "products": [p.model_dump(mode="json", by_alias=True) for p in self.products],
            "orders": [o.model_dump(mode="json", by_alias=True) for o in self.orders],
            "lastUpdated": utcnow().isoformat(),
        })
        logger.debug("Saved %d products and %d orders", len(self.products), len(self.orders))

    @contextmanager
    def transaction(self):
        """Apply a mutation and persist the full snapshot.

        If the block raises, or the write fails, the in-memory state goes back
        to what it was before the block. A transaction opened inside another
        one joins it: only the outermost block saves or rolls back.
        """
        if self._depth:
            yield self
            return
        products = copy.deepcopy(self.products)
        orders = copy.deepcopy(self.orders)
        self._depth += 1
        try:
            yield self
            self.save()
        except Exception:
            self.products = products
            self.orders = orders
            raise
        finally:
            self._depth -= 1


class LocalStorage:
    """String key/value store kept in a JSON file, the server-side counterpart
    of the browser's localStorage that holds a shopper's cart and wishlist."""

    def __init__(self, path):
        self.document = JsonDocument(path)

    def _items(self) -> dict:
        return self.document.read() or {}

    def get_item(self, key: str) -> Optional[str]:
        return self._items().get(key)

    def set_item(self, key: str, value: str):
        items = self._items()
        items[key] = value
        self.document.write(items)

    def remove_item(self, key: str):
        items = self._items()
        if items.pop(key, None) is not None:
            self.document.write(items)
