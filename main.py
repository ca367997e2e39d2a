import logging
import math
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, File, Form, HTTPException, Query, Request, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

import pricing
from auth import (
    authenticate,
    get_current_admin,
    get_current_user,
    get_password_hash,
    get_user_store,
    issue_token,
    verify_password,
)
from catalog import RESULTS_PER_PAGE, CatalogStore
from config import Settings
from database import Database
from errors import Forbidden, StorefrontError, ValidationError
from orders import OrderBook
from schemas import (
    CartQuote,
    FeaturedToggle,
    ImageList,
    LoginPayload,
    NewOrder,
    OrderStatus,
    PasswordUpdate,
    ProductCreate,
    ProductFilter,
    ProductUpdate,
    ProfileUpdate,
    RegisterPayload,
    ReturnRequest,
    ReviewPayload,
    Role,
    RoleChange,
    StatusChange,
    User,
    utcnow,
)
from seed_data import DEFAULT_PRODUCTS
from uploads import ImageUploader
from users import UserStore

logger = logging.getLogger(__name__)


# Store handles, owned by the app and reached through request.app.state

def get_catalog(request: Request) -> CatalogStore:
    return request.app.state.catalog


def get_orders(request: Request) -> OrderBook:
    return request.app.state.orders


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


# -----------------------------
# Auth
# -----------------------------
auth_router = APIRouter()


def _token_response(user: User, settings: Settings) -> dict:
    return {"success": True, "token": issue_token(user, settings), "user": user.public()}


@auth_router.post("/register", status_code=201)
def register(payload: RegisterPayload, users: UserStore = Depends(get_user_store),
             settings: Settings = Depends(get_settings)):
    user = users.add(
        payload.name,
        payload.email,
        get_password_hash(payload.password),
        phone=payload.phone,
        address=payload.address,
    )
    return _token_response(user, settings)


@auth_router.post("/login")
def login(payload: LoginPayload, users: UserStore = Depends(get_user_store),
          settings: Settings = Depends(get_settings)):
    user = authenticate(users, payload.email, payload.password)
    return _token_response(user, settings)


@auth_router.get("/logout")
def logout():
    # tokens are stateless; the client drops its copy
    return {"success": True, "message": "Logged out successfully"}


@auth_router.get("/me")
def me(user: User = Depends(get_current_user)):
    return {"success": True, "user": user.public()}


@auth_router.put("/me/update")
def update_profile(payload: ProfileUpdate, user: User = Depends(get_current_user),
                   users: UserStore = Depends(get_user_store)):
    updated = users.update(user.id, **payload.model_dump(exclude_unset=True))
    return {"success": True, "user": updated.public()}


@auth_router.put("/password/update")
def update_password(payload: PasswordUpdate, user: User = Depends(get_current_user),
                    users: UserStore = Depends(get_user_store), settings: Settings = Depends(get_settings)):
    if not verify_password(payload.old_password, user.password):
        raise ValidationError("Old password is incorrect")
    updated = users.update(user.id, password=get_password_hash(payload.new_password))
    return _token_response(updated, settings)


# -----------------------------
# Products (public)
# -----------------------------
products_router = APIRouter()


@products_router.get("")
def list_products(
    keyword: Optional[str] = None,
    category: Optional[str] = None,
    min_price: Optional[float] = Query(None, alias="minPrice"),
    max_price: Optional[float] = Query(None, alias="maxPrice"),
    rating: Optional[float] = None,
    page: int = Query(1, ge=1),
    catalog: CatalogStore = Depends(get_catalog),
):
    flt = ProductFilter(keyword=keyword, category=category, min_price=min_price,
                        max_price=max_price, rating=rating, page=page)
    items, matched = catalog.list(flt)
    active = sum(1 for p in catalog.all() if p.is_active)
    return {
        "success": True,
        "products": items,
        "productsCount": active,
        "filteredProductsCount": matched,
        "resPerPage": RESULTS_PER_PAGE,
        "page": page,
        "totalPages": max(1, math.ceil(matched / RESULTS_PER_PAGE)),
    }


@products_router.put("/review")
def review_product(payload: ReviewPayload, user: User = Depends(get_current_user),
                   catalog: CatalogStore = Depends(get_catalog)):
    product = catalog.upsert_review(payload.product_id, user.id, user.name, payload.rating, payload.comment)
    return {"success": True, "rating": product.rating, "reviews": product.reviews}


@products_router.get("/reviews/{product_id}")
def product_reviews(product_id: str, catalog: CatalogStore = Depends(get_catalog)):
    return {"success": True, "reviews": catalog.list_reviews(product_id)}


@products_router.delete("/reviews")
def delete_review(product_id: str = Query(..., alias="productId"), review_id: str = Query(..., alias="id"),
                  user: User = Depends(get_current_user), catalog: CatalogStore = Depends(get_catalog)):
    review = next((r for r in catalog.list_reviews(product_id) if r.id == review_id), None)
    if review is not None and review.user != user.id and user.role != Role.admin:
        raise Forbidden("You can only delete your own reviews")
    catalog.delete_review(product_id, review_id)
    return {"success": True, "message": "Review deleted successfully"}


@products_router.get("/{product_id}")
def get_product(product_id: str, catalog: CatalogStore = Depends(get_catalog)):
    product = catalog.get(product_id)
    if not product.is_active:
        raise HTTPException(404, "Product not found")
    return {"success": True, "product": product}


# -----------------------------
# Cart
# -----------------------------
cart_router = APIRouter()


@cart_router.post("/quote")
def quote_cart(payload: CartQuote):
    return {"success": True, "summary": pricing.quote(payload.items)}


# -----------------------------
# Orders
# -----------------------------
orders_router = APIRouter()


def _own_order(orders: OrderBook, order_id: str, user: User):
    order = orders.get(order_id)
    if user.role != Role.admin and order.user != user.id:
        raise Forbidden("You can only access your own orders")
    return order


@orders_router.post("/new", status_code=201)
def create_order(payload: NewOrder, user: User = Depends(get_current_user),
                 orders: OrderBook = Depends(get_orders)):
    order = orders.create(
        user.id,
        payload.order_items,
        payload.shipping_address,
        payload.payment_info,
        notes=payload.notes,
        is_gift=payload.is_gift,
        gift_message=payload.gift_message,
    )
    return {"success": True, "message": "Order created successfully", "order": order}


@orders_router.get("/me")
def my_orders(user: User = Depends(get_current_user), orders: OrderBook = Depends(get_orders)):
    return {"success": True, "orders": orders.list_for_user(user.id)}


@orders_router.get("/{order_id}")
def get_order(order_id: str, user: User = Depends(get_current_user), orders: OrderBook = Depends(get_orders)):
    return {"success": True, "order": _own_order(orders, order_id, user)}


@orders_router.put("/{order_id}/cancel")
def cancel_order(order_id: str, user: User = Depends(get_current_user), orders: OrderBook = Depends(get_orders)):
    _own_order(orders, order_id, user)
    order = orders.cancel(order_id)
    return {"success": True, "message": "Order cancelled successfully", "order": order}


@orders_router.put("/{order_id}/return")
def return_order(order_id: str, payload: ReturnRequest, user: User = Depends(get_current_user),
                 orders: OrderBook = Depends(get_orders)):
    _own_order(orders, order_id, user)
    order = orders.request_return(order_id, payload.return_reason)
    return {"success": True, "message": "Return request submitted successfully", "order": order}


@orders_router.delete("/{order_id}")
def delete_order(order_id: str, user: User = Depends(get_current_user), orders: OrderBook = Depends(get_orders)):
    _own_order(orders, order_id, user)
    orders.delete(order_id)
    return {"success": True, "message": "Order deleted successfully"}


# -----------------------------
# Admin
# -----------------------------
admin_router = APIRouter(dependencies=[Depends(get_current_admin)])


@admin_router.get("/products")
def admin_list_products(catalog: CatalogStore = Depends(get_catalog)):
    products = catalog.all()
    return {"success": True, "products": products, "total": len(products)}


@admin_router.post("/products", status_code=201)
def admin_create_product(payload: ProductCreate, catalog: CatalogStore = Depends(get_catalog)):
    product = catalog.create(payload)
    return {"success": True, "message": "Product created successfully", "product": product}


@admin_router.put("/products/{product_id}")
def admin_update_product(product_id: str, payload: ProductUpdate, catalog: CatalogStore = Depends(get_catalog)):
    product = catalog.update(product_id, payload)
    return {"success": True, "message": "Product updated successfully", "product": product}


@admin_router.delete("/products/{product_id}")
def admin_delete_product(product_id: str, catalog: CatalogStore = Depends(get_catalog)):
    product = catalog.delete(product_id)
    return {"success": True, "message": "Product deleted successfully", "product": product}


@admin_router.patch("/products/{product_id}/featured")
def admin_toggle_featured(product_id: str, payload: FeaturedToggle, catalog: CatalogStore = Depends(get_catalog)):
    product = catalog.set_featured(product_id, payload.featured)
    state = "featured" if payload.featured else "unfeatured"
    return {"success": True, "message": f"Product {state} successfully", "product": product}


@admin_router.get("/products/{product_id}/images")
def admin_product_images(product_id: str, catalog: CatalogStore = Depends(get_catalog)):
    return {"success": True, "images": catalog.get(product_id).images}


@admin_router.patch("/products/{product_id}/images")
def admin_replace_images(product_id: str, payload: ImageList, catalog: CatalogStore = Depends(get_catalog)):
    product = catalog.replace_images(product_id, payload.images)
    return {"success": True, "message": "Product images updated successfully", "product": product}


@admin_router.post("/products/{product_id}/upload-images")
async def admin_upload_images(
    request: Request,
    product_id: str,
    images: List[UploadFile] = File(...),
    compression_quality: str = Form("auto", alias="compressionQuality"),
    max_width: Optional[int] = Form(None, alias="maxWidth"),
    max_height: Optional[int] = Form(None, alias="maxHeight"),
):
    catalog: CatalogStore = request.app.state.catalog
    uploader: ImageUploader = request.app.state.uploader
    catalog.get(product_id)

    # file writes and the catalog save block, so they run off the event loop
    files = [(f.filename, f.content_type, await f.read()) for f in images]
    stored = await run_in_threadpool(uploader.store, files, compression_quality, max_width, max_height)
    try:
        product = await run_in_threadpool(catalog.add_images, product_id, [s.url for s in stored])
    except Exception:
        await run_in_threadpool(uploader.discard, stored)
        raise
    return {
        "success": True,
        "message": f"{len(stored)} images uploaded successfully",
        "product": product,
        "uploads": [s.as_dict() for s in stored],
    }


@admin_router.delete("/products/{product_id}/images/{image_index}")
def admin_delete_image(product_id: str, image_index: int, catalog: CatalogStore = Depends(get_catalog)):
    product = catalog.remove_image(product_id, image_index)
    return {"success": True, "message": "Image deleted successfully", "product": product}


@admin_router.get("/users")
def admin_list_users(users: UserStore = Depends(get_user_store)):
    listed = [u.public() for u in users.list()]
    return {"success": True, "users": listed, "total": len(listed)}


@admin_router.patch("/users/{user_id}/role")
def admin_change_role(user_id: str, payload: RoleChange, users: UserStore = Depends(get_user_store)):
    user = users.set_role(user_id, payload.role)
    return {"success": True, "message": "User role updated successfully", "user": user.public()}


@admin_router.delete("/users/{user_id}")
def admin_delete_user(user_id: str, admin: User = Depends(get_current_admin),
                      users: UserStore = Depends(get_user_store)):
    if user_id == admin.id:
        raise ValidationError("You cannot delete your own account")
    users.delete(user_id)
    return {"success": True, "message": "User deleted successfully"}


@admin_router.get("/orders")
def admin_list_orders(order_status: Optional[OrderStatus] = Query(None, alias="status"),
                      orders: OrderBook = Depends(get_orders)):
    listed = orders.list_all(order_status)
    return {
        "success": True,
        "orders": listed,
        "total": len(listed),
        "totalAmount": sum(o.total_price for o in listed),
    }


@admin_router.patch("/orders/{order_id}/status")
def admin_change_status(order_id: str, payload: StatusChange, orders: OrderBook = Depends(get_orders)):
    order = orders.advance_status(order_id, payload.status, payload.tracking_number)
    return {"success": True, "message": "Order status updated successfully", "order": order}


@admin_router.get("/stats")
def admin_stats(catalog: CatalogStore = Depends(get_catalog), orders: OrderBook = Depends(get_orders),
                users: UserStore = Depends(get_user_store)):
    products = catalog.all()
    order_stats = orders.stats()
    return {
        "success": True,
        "stats": {
            "totalUsers": users.count(),
            "totalProducts": len(products),
            "featuredProducts": sum(1 for p in products if p.featured),
            "activeProducts": sum(1 for p in products if p.is_active),
            "totalOrders": order_stats["totalOrders"],
            "pendingOrders": order_stats["ordersByStatus"][OrderStatus.pending.value],
            "completedOrders": order_stats["ordersByStatus"][OrderStatus.delivered.value],
            "ordersByStatus": order_stats["ordersByStatus"],
            "totalRevenue": order_stats["totalRevenue"],
        },
    }


# -----------------------------
# Error mapping: every failure is {"success": false, "message": ...}
# -----------------------------

def _failure(status_code: int, message, headers=None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message}, headers=headers)


async def storefront_error_handler(request: Request, exc: StorefrontError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return _failure(exc.status_code, exc.message)


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return _failure(exc.status_code, exc.detail, getattr(exc, "headers", None))


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {"loc": (), "msg": "Invalid request"}
    field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
    message = f"{field}: {first['msg']}" if field else first["msg"]
    return _failure(status.HTTP_400_BAD_REQUEST, message)


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _failure(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error")


# -----------------------------
# Application
# -----------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    app.state.db.load()
    app.state.users.ensure_admin(settings.admin_name, settings.admin_email, settings.admin_password,
                                 get_password_hash)
    logger.info("Storefront ready: %d products in catalog", app.state.catalog.count())
    yield


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    db = Database(settings.catalog_file, seed_products=DEFAULT_PRODUCTS)
    catalog = CatalogStore(db)
    app.state.settings = settings
    app.state.db = db
    app.state.catalog = catalog
    app.state.orders = OrderBook(db, catalog)
    app.state.users = UserStore(settings.users_file)
    app.state.uploader = ImageUploader(settings.upload_dir)

    app.add_exception_handler(StorefrontError, storefront_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    @app.get("/")
    def root():
        return {"message": "Welcome to HandyCurv Backend API!", "timestamp": utcnow()}

    @app.get("/api/health")
    def health():
        return {"status": "OK", "message": "HandyCurv Backend is running!", "timestamp": utcnow()}

    app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
    app.include_router(products_router, prefix="/api/products", tags=["products"])
    app.include_router(cart_router, prefix="/api/cart", tags=["cart"])
    app.include_router(orders_router, prefix="/api/orders", tags=["orders"])
    app.include_router(admin_router, prefix="/api/admin", tags=["admin"])
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.port)
