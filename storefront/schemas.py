# storefront/schemas.py

"""
Request and response schemas.
Request bodies are checked here before any handler runs; the first
violated constraint becomes the 400 error message.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from storefront.models import OrderStatus, Role


# --- Auth ---

class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
    full_name: str = Field(..., min_length=1, max_length=100)


class AdminCreateUserRequest(RegisterRequest):
    role: Role = Role.CUSTOMER


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


# --- Products ---

class ProductIn(BaseModel):
    name: str = Field(..., min_length=3, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    price: float = Field(..., ge=0)
    stock_quantity: int = Field(..., ge=0)
    is_active: Optional[bool] = None

    @field_validator("price")
    @classmethod
    def round_price(cls, value: float) -> float:
        # Prices are kept to cents
        return round(value, 2)


# --- Orders ---

class OrderItemRequest(BaseModel):
    product_id: uuid.UUID
    quantity: int = Field(..., ge=1)


class OrderRequest(BaseModel):
    items: List[OrderItemRequest] = Field(..., min_length=1)


class StatusUpdate(BaseModel):
    status: OrderStatus


# --- Users ---

class RoleUpdate(BaseModel):
    role: Role


# --- Responses ---

class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class ProfileRead(ORMModel):
    id: uuid.UUID
    email: str
    full_name: Optional[str] = None
    role: Role
    created_at: datetime


class ProductRead(ORMModel):
    id: uuid.UUID
    name: str
    description: Optional[str] = None
    price: float
    stock_quantity: int
    is_active: bool
    created_at: datetime


class ProductSummary(ORMModel):
    name: str
    description: Optional[str] = None


class OrderItemRead(ORMModel):
    id: uuid.UUID
    order_id: uuid.UUID
    product_id: uuid.UUID
    quantity: int
    unit_price: float
    product: Optional[ProductSummary] = None


class CustomerSummary(ORMModel):
    full_name: Optional[str] = None
    email: str


class OrderRead(ORMModel):
    id: uuid.UUID
    customer_id: uuid.UUID
    status: OrderStatus
    created_at: datetime
    items: List[OrderItemRead] = []


class AdminOrderRead(OrderRead):
    customer: Optional[CustomerSummary] = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    totalPages: int
