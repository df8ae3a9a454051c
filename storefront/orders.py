# storefront/orders.py

"""
Order placement and status transitions.

Placing an order is a short sequence of independent writes, not one
transaction:
1. insert the Order (status pending)
2. look up every referenced product in one query
3. build the OrderItems, copying each product's current price
4. insert the OrderItems (and, when enabled, decrement stock)
5. re-read the order with its items for the response
6. schedule the confirmation notification

When step 2 or 4 fails the Order row is deleted again. That clean-up is
best effort: if it fails too, it is only logged and the Order row stays
behind. A missing product or short stock in step 3 raises straight away
and leaves the empty Order row in place.
"""

import uuid
from typing import Dict, Iterable, List, Optional

from fastapi import BackgroundTasks
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload
from sqlmodel import Session, select

from storefront.errors import DomainError, NotFoundError, StoreError
from storefront.models import Order, OrderItem, OrderStatus, Product
from storefront.notifications import Notifier, dispatch_order_confirmation
from storefront.schemas import OrderItemRequest
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def order_with_items(order_id: uuid.UUID):
    """SELECT for one order with its items and each item's product eagerly loaded"""
    return (
        select(Order)
        .where(Order.id == order_id)
        .options(selectinload(Order.items).selectinload(OrderItem.product))
    )


class OrderWorkflow:
    def __init__(
        self,
        session: Session,
        notifier: Notifier,
        background_tasks: Optional[BackgroundTasks] = None,
        decrement_stock: bool = False,
    ):
        self.session = session
        self.notifier = notifier
        self.background_tasks = background_tasks
        self.decrement_stock = decrement_stock

    def create_order(self, customer_id: uuid.UUID, items: List[OrderItemRequest]) -> Order:
        order_id = self.insert_order(customer_id)

        try:
            products = self.fetch_products({item.product_id for item in items})
        except SQLAlchemyError as e:
            self.session.rollback()
            self.compensate(order_id)
            raise StoreError("Failed to fetch products", details=str(e)) from e

        # DomainErrors from here leave the Order row behind
        order_items = self.build_items(order_id, items, products)

        try:
            self.insert_items(order_items)
        except SQLAlchemyError as e:
            self.session.rollback()
            self.compensate(order_id)
            raise StoreError.wrap(e) from e

        if self.decrement_stock:
            self.apply_stock_decrement(order_id, items)

        try:
            complete = self.load_order(order_id)
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreError.wrap(e) from e

        logger.info("order.created", order_id=str(order_id), customer_id=str(customer_id), items=len(order_items))
        self.schedule_confirmation(order_id)
        return complete

    # --- steps ---

    def insert_order(self, customer_id: uuid.UUID) -> uuid.UUID:
        order = Order(customer_id=customer_id, status=OrderStatus.PENDING)
        try:
            self.session.add(order)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreError.wrap(e) from e
        return order.id

    def fetch_products(self, product_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, Product]:
        statement = select(Product).where(Product.id.in_(list(product_ids)))
        return {product.id: product for product in self.session.exec(statement).all()}

    def build_items(
        self,
        order_id: uuid.UUID,
        items: List[OrderItemRequest],
        products: Dict[uuid.UUID, Product],
    ) -> List[OrderItem]:
        order_items = []
        for item in items:
            product = products.get(item.product_id)

            # Deactivated products can't be ordered
            if not product or not product.is_active:
                raise DomainError(f"Product {item.product_id} not found")

            if item.quantity > product.stock_quantity:
                raise DomainError(f"Insufficient stock for product {product.id}")

            order_items.append(
                OrderItem(
                    order_id=order_id,
                    product_id=product.id,
                    quantity=item.quantity,
                    unit_price=product.price,
                )
            )
        return order_items

    def insert_items(self, order_items: List[OrderItem]) -> None:
        self.session.add_all(order_items)
        self.session.commit()

    def apply_stock_decrement(self, order_id: uuid.UUID, items: List[OrderItemRequest]) -> None:
        """
        Take the ordered quantities off stock. Every UPDATE only matches while
        enough stock remains; if one of them matches nothing, all decrements
        are rolled back and the order is removed.
        """
        connection = self.session.connection()
        for item in items:
            result = connection.execute(
                update(Product)
                .where(Product.id == item.product_id)
                .where(Product.stock_quantity >= item.quantity)
                .values(stock_quantity=Product.stock_quantity - item.quantity)
            )
            if result.rowcount == 0:
                self.session.rollback()
                self.compensate(order_id)
                raise DomainError(f"Insufficient stock for product {item.product_id}")

        self.session.commit()
        self.session.expire_all()

    def load_order(self, order_id: uuid.UUID) -> Order:
        return self.session.exec(order_with_items(order_id)).one()

    def compensate(self, order_id: uuid.UUID) -> None:
        try:
            for item in self.session.exec(select(OrderItem).where(OrderItem.order_id == order_id)).all():
                self.session.delete(item)
            order = self.session.get(Order, order_id)
            if order:
                self.session.delete(order)
            self.session.commit()
            logger.warning("order.compensated", order_id=str(order_id))
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("order.compensation_failed", order_id=str(order_id), error=str(e))

    def schedule_confirmation(self, order_id: uuid.UUID) -> None:
        if self.background_tasks is None:
            dispatch_order_confirmation(self.notifier, order_id)
            return
        self.background_tasks.add_task(dispatch_order_confirmation, self.notifier, order_id)


def cancel_order(session: Session, order_id: uuid.UUID, customer_id: uuid.UUID) -> None:
    """
    Customer cancellation: only the owner, and only while the order is pending.
    """
    order = session.exec(
        select(Order).where(Order.id == order_id).where(Order.customer_id == customer_id)
    ).first()

    if not order:
        raise NotFoundError("Order not found")

    if order.status != OrderStatus.PENDING:
        raise DomainError("Only pending orders can be cancelled")

    # The same ownership/status predicate guards the write itself
    result = session.connection().execute(
        update(Order)
        .where(Order.id == order_id)
        .where(Order.customer_id == customer_id)
        .where(Order.status == OrderStatus.PENDING)
        .values(status=OrderStatus.CANCELLED)
    )
    if result.rowcount == 0:
        session.rollback()
        raise DomainError("Only pending orders can be cancelled")

    session.commit()
    session.expire_all()
    logger.info("order.cancelled", order_id=str(order_id), customer_id=str(customer_id))


def set_order_status(session: Session, order_id: uuid.UUID, status: OrderStatus) -> Order:
    order = session.get(Order, order_id)
    if not order:
        raise NotFoundError("Order not found")

    order.status = status
    session.add(order)
    session.commit()
    session.refresh(order)

    logger.info("order.status_updated", order_id=str(order_id), status=status.value)
    return order
