"""
Data schemas for the HandyCurv storefront.

Each top-level record (Product, Order, User) is stored as a JSON object in a
flat document file. Python attributes are snake_case; the JSON form uses
camelCase keys (``isActive``, ``orderItems``, ...), which is what the
storefront client sends and expects back.
"""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

PLACEHOLDER_IMAGE = "https://images.unsplash.com/photo-1578662996442-48f60103fc96?w=400&h=400&fit=crop"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def coerce_int(value):
    """Integer coercion for prices and stock: numeric strings are accepted and
    any fractional part is truncated."""
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            try:
                return int(float(text))
            except ValueError:
                raise ValueError(f"'{value}' is not a valid number")
    return value


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Catalog

class Category(str, Enum):
    pottery = "Pottery"
    textiles = "Textiles"
    jewelry = "Jewelry"
    kitchen = "Kitchen"
    art = "Art"
    stationery = "Stationery"
    home_decor = "Home Decor"


class ProductImage(CamelModel):
    url: str


class Review(CamelModel):
    """One shopper's review; a shopper holds at most one per product."""
    id: str
    user: str
    name: str
    rating: float = Field(ge=0, le=5)
    comment: str = ""
    created_at: datetime = Field(default_factory=utcnow)


class Product(CamelModel):
    id: str
    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    price: int = Field(ge=0)
    category: Category
    stock: int = Field(default=0, ge=0)
    is_active: bool = True
    featured: bool = False
    rating: float = Field(default=0, ge=0, le=5)
    reviews: int = Field(default=0, ge=0)
    discount: int = Field(default=0, ge=0, le=100)
    images: List[ProductImage] = []
    # rating and reviews above are derived from this list
    customer_reviews: List[Review] = []
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None

    @field_validator("price", "stock", mode="before")
    @classmethod
    def coerce_numbers(cls, value):
        return coerce_int(value)

    @property
    def primary_image(self) -> Optional[str]:
        return self.images[0].url if self.images else None


class ProductCreate(CamelModel):
    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    price: int = Field(ge=0)
    category: Category
    stock: int = Field(default=0, ge=0)
    is_active: bool = True
    featured: bool = False
    rating: float = Field(default=0, ge=0, le=5)
    reviews: int = Field(default=0, ge=0)
    discount: int = Field(default=0, ge=0, le=100)
    images: List[str] = []

    @field_validator("price", "stock", mode="before")
    @classmethod
    def coerce_numbers(cls, value):
        return coerce_int(value)


class ProductUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = Field(default=None, min_length=1)
    price: Optional[int] = Field(default=None, ge=0)
    category: Optional[Category] = None
    stock: Optional[int] = Field(default=None, ge=0)
    is_active: Optional[bool] = None
    featured: Optional[bool] = None
    rating: Optional[float] = Field(default=None, ge=0, le=5)
    reviews: Optional[int] = Field(default=None, ge=0)
    discount: Optional[int] = Field(default=None, ge=0, le=100)
    images: Optional[List[str]] = None

    @field_validator("price", "stock", mode="before")
    @classmethod
    def coerce_numbers(cls, value):
        return coerce_int(value)


class ReviewPayload(CamelModel):
    product_id: str
    rating: float = Field(ge=0, le=5)
    comment: str = ""

    @field_validator("product_id", mode="before")
    @classmethod
    def normalise_id(cls, value):
        return str(value) if value is not None else value


class ProductFilter(CamelModel):
    keyword: Optional[str] = None
    category: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    rating: Optional[float] = None
    page: int = Field(default=1, ge=1)
    active_only: bool = True


# Cart

class CartItem(CamelModel):
    id: str
    name: str
    price: int = Field(ge=0)
    discount: int = Field(default=0, ge=0, le=100)
    image: Optional[str] = None
    quantity: int = Field(default=1, ge=1)

    @field_validator("id", mode="before")
    @classmethod
    def normalise_id(cls, value):
        return str(value) if value is not None else value


class PriceSummary(CamelModel):
    items_price: int
    tax_price: int
    shipping_price: int
    total_price: int


class CartQuote(CamelModel):
    items: List[CartItem] = []


# Orders

class OrderStatus(str, Enum):
    pending = "pending"
    processing = "processing"
    shipped = "shipped"
    delivered = "delivered"
    cancelled = "cancelled"
    returned = "returned"


class PaymentMethod(str, Enum):
    cod = "cod"
    online = "online"
    upi = "upi"
    card = "card"


class PaymentStatus(str, Enum):
    pending = "pending"
    completed = "completed"
    failed = "failed"
    refunded = "refunded"


class ShippingAddress(CamelModel):
    name: str
    phone: str
    street: str
    city: str
    state: str
    pincode: str


class PaymentInfo(CamelModel):
    id: Optional[str] = None
    method: PaymentMethod = PaymentMethod.cod
    status: PaymentStatus = PaymentStatus.pending


class OrderItem(CamelModel):
    product_id: str
    name: str
    price: int = Field(ge=0)
    quantity: int = Field(ge=1)
    image: Optional[str] = None


class Order(CamelModel):
    id: str
    user: Optional[str] = None
    order_items: List[OrderItem]
    shipping_address: ShippingAddress
    payment_info: PaymentInfo = Field(default_factory=PaymentInfo)
    items_price: int = Field(ge=0)
    tax_price: int = Field(ge=0)
    shipping_price: int = Field(ge=0)
    total_price: int = Field(ge=0)
    status: OrderStatus = OrderStatus.pending
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    return_requested_at: Optional[datetime] = None
    return_reason: Optional[str] = None
    tracking_number: Optional[str] = None
    notes: Optional[str] = Field(default=None, max_length=500)
    is_gift: bool = False
    gift_message: Optional[str] = Field(default=None, max_length=200)


class NewOrder(CamelModel):
    order_items: List[CartItem]
    shipping_address: ShippingAddress
    payment_info: PaymentInfo = Field(default_factory=PaymentInfo)
    notes: Optional[str] = Field(default=None, max_length=500)
    is_gift: bool = False
    gift_message: Optional[str] = Field(default=None, max_length=200)


class StatusChange(CamelModel):
    status: OrderStatus
    tracking_number: Optional[str] = None


class ReturnRequest(CamelModel):
    return_reason: Optional[str] = None


# Users

class Role(str, Enum):
    admin = "admin"
    user = "user"


class User(CamelModel):
    id: str
    name: str
    email: str
    password: str
    role: Role = Role.user
    phone: str = ""
    address: Dict[str, str] = {}
    created_at: datetime = Field(default_factory=utcnow)
    last_login: Optional[datetime] = None

    def public(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude={"password"})


class RegisterPayload(CamelModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)
    phone: str = ""
    address: Dict[str, str] = {}


class LoginPayload(CamelModel):
    email: str
    password: str


class ProfileUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[Dict[str, str]] = None


class PasswordUpdate(CamelModel):
    old_password: str
    new_password: str = Field(..., min_length=6)


class RoleChange(CamelModel):
    role: str


class FeaturedToggle(CamelModel):
    featured: bool


class ImageList(CamelModel):
    images: List[str]
