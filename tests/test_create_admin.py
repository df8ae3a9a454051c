import importlib.util
from pathlib import Path

import pytest

from storefront.identity import IdentityGateway
from storefront.models import Profile, Role

SCRIPT = Path(__file__).resolve().parent.parent / "scripts" / "create_admin.py"


@pytest.fixture(scope="module")
def create_admin_module():
    spec = importlib.util.spec_from_file_location("create_admin", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_creates_a_new_admin(create_admin_module, session, client):
    profile = create_admin_module.create_admin(session, "Boss@Example.com", "secret123", "The Boss")

    assert profile.email == "boss@example.com"
    assert profile.role == Role.ADMIN

    login = client.post("/auth/login", json={"email": "boss@example.com", "password": "secret123"})
    assert login.json()["user"]["profile"]["role"] == "admin"


def test_promotes_an_existing_account(create_admin_module, session, customer):
    user_id, _ = customer
    email = session.get(Profile, user_id).email

    profile = create_admin_module.create_admin(session, email, "ignored-password", None)

    assert profile.id == user_id
    assert profile.role == Role.ADMIN


def test_account_without_profile_gets_one(create_admin_module, session, settings):
    user = IdentityGateway(session, settings).sign_up("orphan@example.com", "secret123")

    profile = create_admin_module.create_admin(session, "orphan@example.com", "secret123", None)

    assert profile.id == user.id
    assert profile.role == Role.ADMIN
