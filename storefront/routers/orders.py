# storefront/routers/orders.py

"""Order placement, the customer's own orders, and admin order management."""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import selectinload
from sqlmodel import col, select

from storefront.config import Settings, get_settings
from storefront.dependencies import AdminUser, CurrentUser, DbSession, get_notifier, parse_id
from storefront.errors import NotFoundError
from storefront.models import Order, OrderItem, OrderStatus
from storefront.notifications import Notifier
from storefront.orders import OrderWorkflow, cancel_order, order_with_items, set_order_status
from storefront.pagination import PageParams, page_params, paginate
from storefront.schemas import AdminOrderRead, OrderRead, OrderRequest, StatusUpdate

router = APIRouter(prefix="/orders", tags=["orders"])

_ITEMS_WITH_PRODUCT = selectinload(Order.items).selectinload(OrderItem.product)


@router.post("/create-order", status_code=201)
def create_order(
    body: OrderRequest,
    user: CurrentUser,
    session: DbSession,
    background_tasks: BackgroundTasks,
    notifier: Notifier = Depends(get_notifier),
    settings: Settings = Depends(get_settings),
):
    workflow = OrderWorkflow(
        session,
        notifier,
        background_tasks=background_tasks,
        decrement_stock=settings.inventory_decrement,
    )
    order = workflow.create_order(user.id, body.items)

    return {
        "message": "Order created successfully",
        "order": OrderRead.model_validate(order).model_dump(mode="json"),
    }


@router.get("/list-orders")
def list_my_orders(
    user: CurrentUser,
    session: DbSession,
    status: Optional[OrderStatus] = None,
    params: PageParams = Depends(page_params),
):
    statement = select(Order).where(Order.customer_id == user.id)
    if status:
        statement = statement.where(Order.status == status)

    statement = statement.order_by(col(Order.created_at).desc())
    return paginate(session, statement, params, OrderRead, options=[_ITEMS_WITH_PRODUCT])


# Admin routes

@router.get("")
def list_all_orders(
    admin: AdminUser,
    session: DbSession,
    status: Optional[OrderStatus] = None,
    params: PageParams = Depends(page_params),
):
    statement = select(Order)
    if status:
        statement = statement.where(Order.status == status)

    statement = statement.order_by(col(Order.created_at).desc())
    return paginate(
        session,
        statement,
        params,
        AdminOrderRead,
        options=[_ITEMS_WITH_PRODUCT, selectinload(Order.customer)],
    )


@router.patch("/{order_id}/status")
def update_order_status(order_id: str, body: StatusUpdate, admin: AdminUser, session: DbSession):
    order = set_order_status(session, parse_id(order_id, "Order"), body.status)
    return {
        "message": "Order status updated successfully",
        "order": OrderRead.model_validate(order).model_dump(mode="json"),
    }


# Customer routes with a path id come last so they don't shadow the fixed paths

@router.get("/{order_id}", response_model=OrderRead)
def get_my_order(order_id: str, user: CurrentUser, session: DbSession):
    statement = order_with_items(parse_id(order_id, "Order")).where(Order.customer_id == user.id)
    order = session.exec(statement).first()
    if not order:
        raise NotFoundError("Order not found")
    return OrderRead.model_validate(order)


@router.patch("/{order_id}/cancel")
def cancel_my_order(order_id: str, user: CurrentUser, session: DbSession):
    cancel_order(session, parse_id(order_id, "Order"), user.id)
    return {"message": "Order cancelled successfully"}
