"""Integration tests for the /orders endpoints via TestClient."""

import uuid

import pytest
from sqlmodel import select

from conftest import auth_headers
from storefront.models import Order, OrderItem, OrderStatus, Product


def _place(client, token, items):
    return client.post("/orders/create-order", json={"items": items}, headers=auth_headers(token))


@pytest.fixture()
def widget(make_product):
    return make_product(name="Widget", price=9.99, stock_quantity=5, description="A widget")


@pytest.fixture()
def placed_order(client, customer, widget):
    response = _place(client, customer[1], [{"product_id": str(widget.id), "quantity": 2}])
    assert response.status_code == 201
    return response.json()["order"]


class TestCreateOrder:
    def test_create_order(self, client, customer, widget, make_product, notifier):
        gadget = make_product(name="Gadget", price=20.0, stock_quantity=3)

        response = _place(
            client,
            customer[1],
            [
                {"product_id": str(widget.id), "quantity": 2},
                {"product_id": str(gadget.id), "quantity": 1},
            ],
        )

        assert response.status_code == 201
        order = response.json()["order"]
        assert order["status"] == "pending"
        assert order["customer_id"] == str(customer[0])
        assert len(order["items"]) == 2
        total = sum(item["quantity"] * item["unit_price"] for item in order["items"])
        assert total == pytest.approx(2 * 9.99 + 20.0)

        by_name = {item["product"]["name"]: item for item in order["items"]}
        assert by_name["Widget"]["product"]["description"] == "A widget"
        assert by_name["Widget"]["unit_price"] == 9.99

        # Sent from a background task once the response is out
        assert notifier.sent == [uuid.UUID(order["id"])]

    def test_requires_token(self, client, widget):
        response = client.post("/orders/create-order", json={"items": [{"product_id": str(widget.id), "quantity": 1}]})

        assert response.status_code == 401

    def test_insufficient_stock(self, client, customer, widget, session):
        response = _place(client, customer[1], [{"product_id": str(widget.id), "quantity": 6}])

        assert response.status_code == 400
        assert str(widget.id) in response.json()["error"]
        assert session.exec(select(OrderItem)).all() == []

    def test_unknown_product(self, client, customer):
        missing = uuid.uuid4()

        response = _place(client, customer[1], [{"product_id": str(missing), "quantity": 1}])

        assert response.status_code == 400
        assert str(missing) in response.json()["error"]

    @pytest.mark.parametrize(
        "body, message",
        [
            ({"items": []}, "items:"),
            ({}, "items:"),
            ({"items": [{"product_id": "nope", "quantity": 1}]}, "items.0.product_id:"),
            ({"items": [{"product_id": str(uuid.uuid4()), "quantity": 0}]}, "items.0.quantity:"),
        ],
    )
    def test_rejects_malformed_requests(self, client, customer, body, message):
        response = client.post("/orders/create-order", json=body, headers=auth_headers(customer[1]))

        assert response.status_code == 400
        assert response.json()["error"].startswith(message)

    def test_whole_number_float_quantity(self, client, customer, widget):
        response = _place(client, customer[1], [{"product_id": str(widget.id), "quantity": 2.0}])

        assert response.status_code == 201
        assert response.json()["order"]["items"][0]["quantity"] == 2

    def test_stock_decrement_when_enabled(self, client, customer, widget, session, settings):
        settings.inventory_decrement = True

        response = _place(client, customer[1], [{"product_id": str(widget.id), "quantity": 2}])

        assert response.status_code == 201
        session.expire_all()
        assert session.get(Product, widget.id).stock_quantity == 3


class TestCustomerOrders:
    def test_list_only_own_orders(self, client, customer, register_user, placed_order, widget):
        _, other_token = register_user()
        _place(client, other_token, [{"product_id": str(widget.id), "quantity": 1}])

        body = client.get("/orders/list-orders", headers=auth_headers(customer[1])).json()

        assert [o["id"] for o in body["data"]] == [placed_order["id"]]
        assert body["data"][0]["items"][0]["product"]["name"] == "Widget"
        assert body["pagination"] == {"page": 1, "limit": 10, "total": 1, "totalPages": 1}

    def test_list_filtered_by_status(self, client, customer, placed_order):
        headers = auth_headers(customer[1])

        assert client.get("/orders/list-orders", params={"status": "cancelled"}, headers=headers).json()["data"] == []
        assert len(client.get("/orders/list-orders", params={"status": "pending"}, headers=headers).json()["data"]) == 1

    def test_get_own_order(self, client, customer, placed_order):
        response = client.get(f"/orders/{placed_order['id']}", headers=auth_headers(customer[1]))

        assert response.status_code == 200
        assert response.json()["items"][0]["quantity"] == 2

    def test_other_customers_order_is_not_found(self, client, register_user, placed_order):
        _, other_token = register_user()

        response = client.get(f"/orders/{placed_order['id']}", headers=auth_headers(other_token))

        assert response.status_code == 404


class TestCancelOrder:
    def test_cancel_pending_order(self, client, customer, placed_order, session):
        response = client.patch(f"/orders/{placed_order['id']}/cancel", headers=auth_headers(customer[1]))

        assert response.status_code == 200
        order = session.get(Order, uuid.UUID(placed_order["id"]))
        assert order.status == OrderStatus.CANCELLED

    def test_cannot_cancel_twice(self, client, customer, placed_order):
        headers = auth_headers(customer[1])
        client.patch(f"/orders/{placed_order['id']}/cancel", headers=headers)

        response = client.patch(f"/orders/{placed_order['id']}/cancel", headers=headers)

        assert response.status_code == 400

    @pytest.mark.parametrize("status", ["confirmed", "shipped", "delivered"])
    def test_only_pending_orders_can_be_cancelled(self, client, customer, admin, placed_order, status):
        client.patch(
            f"/orders/{placed_order['id']}/status",
            json={"status": status},
            headers=auth_headers(admin[1]),
        )

        response = client.patch(f"/orders/{placed_order['id']}/cancel", headers=auth_headers(customer[1]))

        assert response.status_code == 400
        assert response.json()["error"] == "Only pending orders can be cancelled"

    def test_cannot_cancel_someone_elses_order(self, client, register_user, placed_order, session):
        _, other_token = register_user()

        response = client.patch(f"/orders/{placed_order['id']}/cancel", headers=auth_headers(other_token))

        assert response.status_code == 404
        assert session.get(Order, uuid.UUID(placed_order["id"])).status == OrderStatus.PENDING


class TestAdminOrders:
    def test_list_all_orders_with_customer(self, client, admin, customer, register_user, placed_order, widget):
        _, other_token = register_user()
        _place(client, other_token, [{"product_id": str(widget.id), "quantity": 1}])

        body = client.get("/orders", headers=auth_headers(admin[1])).json()

        assert body["pagination"]["total"] == 2
        mine = next(o for o in body["data"] if o["id"] == placed_order["id"])
        assert mine["customer"]["full_name"] == "Casey Customer"

    def test_list_all_requires_admin(self, client, customer):
        assert client.get("/orders", headers=auth_headers(customer[1])).status_code == 403

    def test_set_any_status(self, client, admin, placed_order):
        headers = auth_headers(admin[1])

        for status in ["confirmed", "shipped", "delivered", "cancelled", "pending"]:
            response = client.patch(f"/orders/{placed_order['id']}/status", json={"status": status}, headers=headers)
            assert response.status_code == 200
            assert response.json()["order"]["status"] == status

    def test_invalid_status(self, client, admin, placed_order):
        response = client.patch(
            f"/orders/{placed_order['id']}/status",
            json={"status": "lost"},
            headers=auth_headers(admin[1]),
        )

        assert response.status_code == 400
        assert response.json()["error"].startswith("status:")

    def test_unknown_order(self, client, admin):
        response = client.patch(f"/orders/{uuid.uuid4()}/status", json={"status": "shipped"}, headers=auth_headers(admin[1]))

        assert response.status_code == 404
