"""
Order assembly and the order status lifecycle.

    pending -> processing -> shipped -> delivered
    pending | processing -> cancelled
    delivered -> returned   (within RETURN_WINDOW_DAYS of delivery)
"""
import logging
import uuid
from datetime import datetime
from typing import Callable, List, Optional

import pricing
from catalog import CatalogStore
from database import Database
from errors import InvalidTransition, NotFound, ValidationError
from schemas import (
    CartItem,
    Order,
    OrderItem,
    OrderStatus,
    PaymentInfo,
    ShippingAddress,
    utcnow,
)

logger = logging.getLogger(__name__)

RETURN_WINDOW_DAYS = 7
FULFILMENT_FLOW = [
    OrderStatus.pending,
    OrderStatus.processing,
    OrderStatus.shipped,
    OrderStatus.delivered,
]
CANCELLABLE = {OrderStatus.pending, OrderStatus.processing}
DELETABLE = {OrderStatus.pending, OrderStatus.cancelled}


def can_be_cancelled(order: Order) -> bool:
    return order.status in CANCELLABLE


def can_be_returned(order: Order, now: datetime) -> bool:
    if order.status != OrderStatus.delivered:
        return False
    delivered = order.delivered_at or order.created_at
    return (now - delivered).days <= RETURN_WINDOW_DAYS


class OrderBook:
    def __init__(self, db: Database, catalog: CatalogStore, clock: Callable[[], datetime] = utcnow):
        self.db = db
        self.catalog = catalog
        self.clock = clock

    def _index(self, order_id: str) -> int:
        for i, order in enumerate(self.db.orders):
            if order.id == str(order_id):
                return i
        raise NotFound("Order not found")

    def _update(self, index: int, **changes) -> Order:
        changes["updated_at"] = self.clock()
        order = self.db.orders[index].model_copy(update=changes)
        self.db.orders[index] = order
        return order

    def get(self, order_id: str) -> Order:
        return self.db.orders[self._index(order_id)]

    def list_all(self, status: Optional[OrderStatus] = None) -> List[Order]:
        return [o for o in self.db.orders if status is None or o.status == status]

    def list_for_user(self, user_id: str) -> List[Order]:
        return [o for o in self.db.orders if o.user == str(user_id)]

    def create(
        self,
        user_id: Optional[str],
        cart_snapshot: List[CartItem],
        shipping_address: ShippingAddress,
        payment_info: Optional[PaymentInfo] = None,
        notes: Optional[str] = None,
        is_gift: bool = False,
        gift_message: Optional[str] = None,
    ) -> Order:
        if not cart_snapshot:
            raise ValidationError("Please provide order items and shipping information")

        items = [
            OrderItem(
                product_id=line.id,
                name=line.name,
                price=pricing.unit_price(line.price, line.discount),
                quantity=line.quantity,
                image=line.image,
            )
            for line in cart_snapshot
        ]
        totals = pricing.quote(items)
        order = Order(
            id=uuid.uuid4().hex,
            user=str(user_id) if user_id is not None else None,
            order_items=items,
            shipping_address=shipping_address,
            payment_info=payment_info or PaymentInfo(),
            items_price=totals.items_price,
            tax_price=totals.tax_price,
            shipping_price=totals.shipping_price,
            total_price=totals.total_price,
            created_at=self.clock(),
            notes=notes,
            is_gift=is_gift,
            gift_message=gift_message if is_gift else None,
        )
        with self.db.transaction():
            self.db.orders.append(order)
        logger.info("Order created: %s for user %s, total %d", order.id, order.user, order.total_price)
        return order

    def cancel(self, order_id: str) -> Order:
        index = self._index(order_id)
        if not can_be_cancelled(self.db.orders[index]):
            raise InvalidTransition("Order cannot be cancelled at this stage")
        now = self.clock()
        with self.db.transaction():
            order = self._update(index, status=OrderStatus.cancelled, cancelled_at=now)
        logger.info("Order cancelled: %s", order.id)
        return order

    def request_return(self, order_id: str, reason: Optional[str] = None) -> Order:
        index = self._index(order_id)
        now = self.clock()
        if not can_be_returned(self.db.orders[index], now):
            raise InvalidTransition("Order cannot be returned. Return window has expired.")
        with self.db.transaction():
            order = self._update(
                index, status=OrderStatus.returned, return_requested_at=now, return_reason=reason
            )
        logger.info("Return requested for order %s", order.id)
        return order

    def advance_status(self, order_id: str, new_status: OrderStatus,
                       tracking_number: Optional[str] = None) -> Order:
        """Move an order along the fulfilment flow (admin only).

        Passing ``shipped`` takes the ordered quantities out of stock. Lines
        whose product is gone are skipped; the stock changes and the new
        status are saved together or not at all.
        """
        new_status = OrderStatus(new_status)
        index = self._index(order_id)
        current = self.db.orders[index]

        if new_status == OrderStatus.cancelled:
            return self.cancel(order_id)
        if new_status == OrderStatus.returned:
            raise InvalidTransition("Returns must be requested by the customer")
        if current.status not in FULFILMENT_FLOW:
            raise InvalidTransition(f"Order is already {current.status.value}")
        if current.status == OrderStatus.delivered:
            raise InvalidTransition("You have already delivered this order")
        old_pos = FULFILMENT_FLOW.index(current.status)
        new_pos = FULFILMENT_FLOW.index(new_status)
        if new_pos <= old_pos:
            raise InvalidTransition(
                f"Cannot move order from {current.status.value} to {new_status.value}"
            )

        changes = {"status": new_status}
        if new_status == OrderStatus.delivered:
            changes["delivered_at"] = self.clock()
        if tracking_number:
            changes["tracking_number"] = tracking_number
        with self.db.transaction():
            if old_pos < FULFILMENT_FLOW.index(OrderStatus.shipped) <= new_pos:
                self._take_stock(current)
            order = self._update(index, **changes)
        logger.info("Order %s: %s -> %s", order.id, current.status.value, new_status.value)
        return order

    def _take_stock(self, order: Order):
        for item in order.order_items:
            try:
                self.catalog.adjust_stock(item.product_id, -item.quantity)
            except NotFound:
                logger.warning("Order %s references missing product %s, stock not updated",
                               order.id, item.product_id)

    def delete(self, order_id: str) -> Order:
        index = self._index(order_id)
        order = self.db.orders[index]
        if order.status not in DELETABLE:
            raise InvalidTransition("Cannot delete order that is not pending or cancelled")
        with self.db.transaction():
            self.db.orders.pop(index)
        logger.info("Order deleted: %s", order.id)
        return order

    def stats(self) -> dict:
        orders = self.db.orders
        by_status = {status.value: 0 for status in OrderStatus}
        for order in orders:
            by_status[order.status.value] += 1
        revenue = sum(
            o.total_price for o in orders
            if o.status not in (OrderStatus.cancelled, OrderStatus.returned)
        )
        return {"totalOrders": len(orders), "ordersByStatus": by_status, "totalRevenue": revenue}
