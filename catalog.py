"""
Catalog store: product CRUD, search/filter/pagination and image bookkeeping.
"""
import logging
import uuid
from typing import List, Optional, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

from database import Database
from errors import InvalidIndex, NotFound, ValidationError
from schemas import (
    PLACEHOLDER_IMAGE,
    Product,
    ProductCreate,
    ProductFilter,
    ProductImage,
    ProductUpdate,
    Review,
    utcnow,
)

logger = logging.getLogger(__name__)

RESULTS_PER_PAGE = 8


def _validation_message(error: PydanticValidationError) -> str:
    first = error.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ()))
    return f"{field}: {first['msg']}" if field else first["msg"]


def _review_totals(reviews: List[dict]) -> dict:
    count = len(reviews)
    rating = sum(r["rating"] for r in reviews) / count if count else 0
    return {"customer_reviews": reviews, "rating": rating, "reviews": count}


def matches(product: Product, flt: ProductFilter) -> bool:
    if flt.active_only and not product.is_active:
        return False
    if flt.keyword:
        keyword = flt.keyword.lower()
        if keyword not in product.name.lower() and keyword not in product.description.lower():
            return False
    if flt.category and flt.category != "All" and product.category.value != flt.category:
        return False
    if flt.min_price is not None and product.price < flt.min_price:
        return False
    if flt.max_price is not None and product.price > flt.max_price:
        return False
    if flt.rating is not None and product.rating < flt.rating:
        return False
    return True


class CatalogStore:
    def __init__(self, db: Database):
        self.db = db

    def _index(self, product_id: str) -> int:
        for i, product in enumerate(self.db.products):
            if product.id == str(product_id):
                return i
        raise NotFound("Product not found")

    def _replace(self, index: int, changes: dict) -> Product:
        current = self.db.products[index]
        data = current.model_dump()
        data.update(changes)
        data["id"] = current.id
        data["updated_at"] = utcnow()
        try:
            product = Product.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(_validation_message(e)) from e
        self.db.products[index] = product
        return product

    def all(self) -> List[Product]:
        return list(self.db.products)

    def count(self) -> int:
        return len(self.db.products)

    def list(self, flt: Optional[ProductFilter] = None) -> Tuple[List[Product], int]:
        """Return one page of matching products plus the number of matches overall."""
        flt = flt or ProductFilter()
        found = [p for p in self.db.products if matches(p, flt)]
        start = (flt.page - 1) * RESULTS_PER_PAGE
        return found[start:start + RESULTS_PER_PAGE], len(found)

    def get(self, product_id: str) -> Product:
        return self.db.products[self._index(product_id)]

    def create(self, attributes: Union[ProductCreate, dict]) -> Product:
        try:
            if not isinstance(attributes, ProductCreate):
                attributes = ProductCreate.model_validate(attributes)
        except PydanticValidationError as e:
            raise ValidationError(_validation_message(e)) from e

        data = attributes.model_dump(exclude={"images"})
        urls = attributes.images or [PLACEHOLDER_IMAGE]
        product = Product(id=uuid.uuid4().hex, images=[ProductImage(url=u) for u in urls], **data)

        with self.db.transaction():
            self.db.products.append(product)
        logger.info("Product created: %s %s", product.id, product.name)
        return product

    def update(self, product_id: str, partial: Union[ProductUpdate, dict]) -> Product:
        try:
            if not isinstance(partial, ProductUpdate):
                partial = ProductUpdate.model_validate(partial)
        except PydanticValidationError as e:
            raise ValidationError(_validation_message(e)) from e

        changes = partial.model_dump(exclude_unset=True)
        for key in [k for k, v in changes.items() if v is None]:
            del changes[key]
        if "images" in changes:
            changes["images"] = [{"url": url} for url in changes["images"]]

        index = self._index(product_id)
        with self.db.transaction():
            product = self._replace(index, changes)
        logger.info("Product updated: %s (%s)", product.id, ", ".join(sorted(changes)) or "no changes")
        return product

    def delete(self, product_id: str) -> Product:
        index = self._index(product_id)
        with self.db.transaction():
            product = self.db.products.pop(index)
        logger.info("Product deleted: %s %s", product.id, product.name)
        return product

    def set_featured(self, product_id: str, featured: bool) -> Product:
        index = self._index(product_id)
        with self.db.transaction():
            return self._replace(index, {"featured": bool(featured)})

    def add_images(self, product_id: str, urls: List[str]) -> Product:
        index = self._index(product_id)
        with self.db.transaction():
            images = self.db.products[index].model_dump()["images"]
            images.extend({"url": url} for url in urls)
            return self._replace(index, {"images": images})

    def replace_images(self, product_id: str, urls: List[str]) -> Product:
        index = self._index(product_id)
        with self.db.transaction():
            return self._replace(index, {"images": [{"url": url} for url in urls]})

    def remove_image(self, product_id: str, image_index: int) -> Product:
        index = self._index(product_id)
        images = self.db.products[index].model_dump()["images"]
        if image_index < 0 or image_index >= len(images):
            raise InvalidIndex()
        del images[image_index]
        with self.db.transaction():
            return self._replace(index, {"images": images})

    def adjust_stock(self, product_id: str, delta: int) -> Product:
        index = self._index(product_id)
        product = self.db.products[index]
        stock = product.stock + delta
        if stock < 0:
            logger.warning("Stock for %s would drop to %d, clamping at 0", product.id, stock)
            stock = 0
        with self.db.transaction():
            return self._replace(index, {"stock": stock})

    def list_reviews(self, product_id: str) -> List[Review]:
        return list(self.get(product_id).customer_reviews)

    def upsert_review(self, product_id: str, user_id: str, name: str,
                      rating: float, comment: str = "") -> Product:
        """Create the user's review of a product, or replace their earlier one."""
        index = self._index(product_id)
        reviews = self.db.products[index].model_dump()["customer_reviews"]
        existing = next((r for r in reviews if r["user"] == str(user_id)), None)
        if existing is not None:
            existing.update(rating=rating, comment=comment)
        else:
            reviews.append({
                "id": uuid.uuid4().hex,
                "user": str(user_id),
                "name": name,
                "rating": rating,
                "comment": comment,
            })
        with self.db.transaction():
            product = self._replace(index, _review_totals(reviews))
        logger.info("Review by user %s on product %s", user_id, product.id)
        return product

    def delete_review(self, product_id: str, review_id: str) -> Review:
        index = self._index(product_id)
        reviews = self.db.products[index].customer_reviews
        review = next((r for r in reviews if r.id == str(review_id)), None)
        if review is None:
            raise NotFound("Review not found")
        remaining = [r.model_dump() for r in reviews if r.id != review.id]
        with self.db.transaction():
            self._replace(index, _review_totals(remaining))
        logger.info("Review %s removed from product %s", review.id, product_id)
        return review
