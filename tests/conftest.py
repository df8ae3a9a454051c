import uuid

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from storefront import identity as identity_module
from storefront.config import Settings, get_settings
from storefront.dependencies import get_notifier
from storefront.main import create_app
from storefront.models import Product, Profile, Role
from storefront.notifications import Notifier
from storefront.utils.db import build_engine, create_db_and_tables, get_session


class RecordingNotifier(Notifier):
    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []

    def send_order_confirmation(self, order_id):
        self.sent.append(order_id)
        if self.fail:
            raise RuntimeError("mail server down")


@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch):
    """Full-strength PBKDF2 makes every register/login slow; stored hashes keep their own count."""
    monkeypatch.setattr(identity_module, "PBKDF2_ITERATIONS", 1_000)


@pytest.fixture()
def settings():
    return Settings(app_env="test", database_url="sqlite://")


@pytest.fixture()
def engine():
    engine = build_engine("sqlite://")
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def app(session, settings, notifier):
    app = create_app(lifespan=None)
    app.dependency_overrides[get_session] = lambda: session
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_notifier] = lambda: notifier
    return app


@pytest.fixture()
def client(app):
    return TestClient(app)


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def register_user(client):
    """Factory: register + log in through the API, return (user_id, token)."""
    counter = {"n": 0}

    def _register(email=None, password="secret123", full_name="Test User"):
        counter["n"] += 1
        email = email or f"user{counter['n']}-{uuid.uuid4().hex[:6]}@example.com"

        response = client.post(
            "/auth/register",
            json={"email": email, "password": password, "full_name": full_name},
        )
        assert response.status_code == 201, response.json()

        response = client.post("/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.json()

        body = response.json()
        return uuid.UUID(body["user"]["id"]), body["session"]["access_token"]

    return _register


@pytest.fixture()
def customer(register_user):
    return register_user(full_name="Casey Customer")


@pytest.fixture()
def admin(register_user, session):
    user_id, token = register_user(full_name="Ada Admin")

    profile = session.get(Profile, user_id)
    profile.role = Role.ADMIN
    session.add(profile)
    session.commit()

    return user_id, token


@pytest.fixture()
def make_product(session):
    def _make(name="Widget", price=9.99, stock_quantity=5, is_active=True, description=None):
        product = Product(
            name=name,
            description=description,
            price=price,
            stock_quantity=stock_quantity,
            is_active=is_active,
        )
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    return _make
