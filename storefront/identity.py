# storefront/identity.py

"""
Identity Gateway: issues bearer tokens, validates them and keeps the account records.

It is constructed per request around the request's database session
(see storefront.dependencies.get_identity_gateway), so nothing authenticated
is ever shared between requests.
"""

import hashlib
import hmac
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import BaseModel
from sqlmodel import Session, select

from storefront.config import Settings
from storefront.errors import AuthError, DomainError, ValidationError
from storefront.models import AccessToken, Account, utcnow
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

PBKDF2_ITERATIONS = 260_000


class Identity(BaseModel):
    """Who the caller is, as far as the identity provider knows"""
    id: uuid.UUID
    email: str
    full_name: Optional[str] = None


class AuthSession(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    user: Identity


def hash_password(password: str, salt: Optional[str] = None) -> str:
    """
    Hash a password with a per-password random salt using PBKDF2-SHA256.
    Returns "pbkdf2_sha256$<iterations>$<salt>$<hex digest>".
    """
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), PBKDF2_ITERATIONS)
    return f"pbkdf2_sha256${PBKDF2_ITERATIONS}${salt}${digest.hex()}"


def verify_password(password: str, encoded: str) -> bool:
    try:
        algorithm, iterations, salt, expected = encoded.split("$")
    except ValueError:
        return False

    if algorithm != "pbkdf2_sha256":
        return False

    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), int(iterations))
    return hmac.compare_digest(digest.hex(), expected)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _as_utc(value: datetime) -> datetime:
    # SQLite hands datetimes back without tzinfo
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class IdentityGateway:
    def __init__(self, session: Session, settings: Settings):
        self.session = session
        self.settings = settings

    def _identity(self, account: Account) -> Identity:
        return Identity(id=account.id, email=account.email, full_name=account.full_name)

    def find_by_email(self, email: str) -> Optional[Account]:
        return self.session.exec(select(Account).where(Account.email == email.lower())).first()

    def sign_up(self, email: str, password: str, full_name: Optional[str] = None) -> Identity:
        if len(password) < self.settings.min_password_length:
            raise ValidationError(
                f"Password should be at least {self.settings.min_password_length} characters"
            )

        if self.find_by_email(email):
            raise DomainError("User already registered")

        account = Account(email=email.lower(), password_hash=hash_password(password), full_name=full_name)
        self.session.add(account)
        self.session.commit()
        self.session.refresh(account)

        logger.info("identity.signed_up", account_id=str(account.id))
        return self._identity(account)

    def sign_in(self, email: str, password: str) -> AuthSession:
        account = self.find_by_email(email)

        # Same message either way, so callers can't probe for registered emails
        if not account or not verify_password(password, account.password_hash):
            raise AuthError("Invalid login credentials")

        token = secrets.token_hex(32)
        expires_at = utcnow() + timedelta(seconds=self.settings.token_ttl_seconds)

        self.session.add(AccessToken(account_id=account.id, token_hash=hash_token(token), expires_at=expires_at))
        self.session.commit()

        logger.info("identity.signed_in", account_id=str(account.id))
        return AuthSession(access_token=token, expires_at=expires_at, user=self._identity(account))

    def sign_out(self, token: str) -> None:
        record = self.session.exec(select(AccessToken).where(AccessToken.token_hash == hash_token(token))).first()
        if not record or record.revoked_at is not None:
            return

        record.revoked_at = utcnow()
        self.session.add(record)
        self.session.commit()

    def verify_token(self, token: str) -> Identity:
        record = self.session.exec(select(AccessToken).where(AccessToken.token_hash == hash_token(token))).first()

        if not record or record.revoked_at is not None:
            raise AuthError("Invalid or expired token")

        if _as_utc(record.expires_at) <= utcnow():
            raise AuthError("Invalid or expired token")

        account = self.session.get(Account, record.account_id)
        if not account:
            raise AuthError("Invalid or expired token")

        return self._identity(account)

    def delete_user(self, account_id: uuid.UUID) -> None:
        for record in self.session.exec(select(AccessToken).where(AccessToken.account_id == account_id)).all():
            self.session.delete(record)

        account = self.session.get(Account, account_id)
        if account:
            self.session.delete(account)
        self.session.commit()
