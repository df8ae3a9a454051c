# storefront/models.py

"""
The Contract: Define what our data looks like
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from sqlmodel import Field, Relationship, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# --- 1. Enums ---
# Enums restrict data to specific values. This prevents "typo" bugs in your data.
class Role(str, Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# --- 2. Application tables ---

class Profile(SQLModel, table=True):
    """
    Application-level account record. Shares its primary key with the
    identity Account it belongs to; `role` is the only authorization attribute.
    """
    __tablename__ = "profiles"

    id: uuid.UUID = Field(primary_key=True)
    email: str = Field(unique=True, index=True)
    full_name: Optional[str] = None
    role: Role = Field(default=Role.CUSTOMER)
    created_at: datetime = Field(default_factory=utcnow)

    orders: List["Order"] = Relationship(back_populates="customer")


class Product(SQLModel, table=True):
    __tablename__ = "products"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(index=True)
    description: Optional[str] = None
    price: float = Field(ge=0)
    stock_quantity: int = Field(ge=0)
    # "Delete" only flips this flag, the row stays
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utcnow)


class Order(SQLModel, table=True):
    __tablename__ = "orders"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    # Foreign Keys link tables together
    customer_id: uuid.UUID = Field(foreign_key="profiles.id", index=True)
    status: OrderStatus = Field(default=OrderStatus.PENDING)
    created_at: datetime = Field(default_factory=utcnow)

    customer: Optional[Profile] = Relationship(back_populates="orders")
    items: List["OrderItem"] = Relationship(back_populates="order")


class OrderItem(SQLModel, table=True):
    """
    One line of an order. `unit_price` is copied from the product when the
    order is placed and is never rewritten afterwards.
    """
    __tablename__ = "order_items"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    order_id: uuid.UUID = Field(foreign_key="orders.id", index=True)
    product_id: uuid.UUID = Field(foreign_key="products.id")
    quantity: int = Field(ge=1)
    unit_price: float

    order: Optional[Order] = Relationship(back_populates="items")
    product: Optional[Product] = Relationship()


# --- 3. Identity tables ---
# Owned by the IdentityGateway; handlers never touch them directly

class Account(SQLModel, table=True):
    __tablename__ = "accounts"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    email: str = Field(unique=True, index=True)
    password_hash: str
    full_name: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)


class AccessToken(SQLModel, table=True):
    """
    Bearer tokens issued at sign-in. Only the SHA-256 digest of a token is stored.
    """
    __tablename__ = "access_tokens"

    id: Optional[int] = Field(default=None, primary_key=True)
    account_id: uuid.UUID = Field(foreign_key="accounts.id", index=True)
    token_hash: str = Field(unique=True, index=True)
    created_at: datetime = Field(default_factory=utcnow)
    expires_at: datetime
    revoked_at: Optional[datetime] = None
