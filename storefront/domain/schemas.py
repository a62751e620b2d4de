# storefront/domain/schemas.py
import re
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Literal, Tuple

from pydantic import BaseModel, Field, ConfigDict, field_validator

_PRICE_RE = re.compile(r"[\d.]+")


def parse_price(value) -> Decimal:
    """Accept 2800, "2800" or catalog strings like "$9.99/mo"."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))

    match = _PRICE_RE.search(str(value))
    if not match:
        return Decimal("0")
    try:
        return Decimal(match.group(0))
    except ArithmeticError:
        return Decimal("0")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


# =====================================================
# VALUE TYPES
# =====================================================
class LineItem(BaseModel):
    """One plan in a cart. Name, label and price are captured at add time."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    plan_id: str
    service_name: str
    plan_name: str
    price: Decimal
    quantity: int = Field(..., gt=0)


class Cart(BaseModel):
    """Authoritative cart snapshot. Every mutation returns a new instance."""

    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str | None = None
    items: Tuple[LineItem, ...] = ()
    subtotal: Decimal = Decimal("0")
    discount: Decimal = Decimal("0")
    discount_code: str | None = None
    total: Decimal = Decimal("0")
    # 0 = never stored
    version: int = 0
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# =====================================================
# REQUESTS
# =====================================================
class ItemIn(BaseModel):
    """Schema for adding a plan to the cart."""

    plan_id: str = Field(..., min_length=1, max_length=64)
    service_name: str = Field(..., min_length=1, max_length=120)
    plan_name: str = Field(..., min_length=1, max_length=120)
    price: Decimal = Field(..., ge=0)
    quantity: int = Field(1, gt=0, description="Defaults to a single unit")

    @field_validator("price", mode="before")
    @classmethod
    def _parse_price(cls, v):
        return parse_price(v)


class PlanItemIn(BaseModel):
    """What an HTTP caller may choose when adding to the cart."""

    plan_id: str = Field(..., min_length=1, max_length=64)
    quantity: int = Field(1, gt=0)


class QuantityIn(BaseModel):
    # zero or negative removes the item
    quantity: int


class DiscountIn(BaseModel):
    code: str = Field(..., min_length=1, max_length=32)


class CheckoutIn(BaseModel):
    """Customer contact info captured at checkout. Payment is confirmed manually."""

    customer_name: str = Field(..., min_length=1, max_length=120)
    customer_email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    customer_whatsapp: str = Field(..., min_length=7, max_length=32)
    special_instructions: str | None = Field(None, max_length=1000)


OrderStatus = Literal["pending", "paid", "delivered", "failed"]


class OrderStatusIn(BaseModel):
    status: OrderStatus


# =====================================================
# RESPONSES
# =====================================================
class CartItemOut(BaseModel):
    id: str
    plan_id: str
    service_name: str
    plan_name: str
    price: Decimal
    quantity: int

    model_config = ConfigDict(from_attributes=True)


class CartOut(BaseModel):
    id: str
    user_id: str | None
    items: List[CartItemOut]
    subtotal: Decimal
    discount: Decimal
    discount_code: str | None = None
    total: Decimal
    item_count: int
    is_empty: bool
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DiscountOut(BaseModel):
    applied: bool
    recognized: bool
    discount: Decimal
    cart: CartOut


class OrderItemOut(BaseModel):
    id: str
    plan_id: str
    service_name: str
    plan_name: str
    duration_months: int
    price: Decimal
    quantity: int

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    id: str
    user_id: str
    plan_id: str
    amount: Decimal
    status: OrderStatus
    customer_name: str | None = None
    customer_email: str | None = None
    customer_whatsapp: str | None = None
    special_instructions: str | None = None
    items: List[OrderItemOut] = []
    created_at: datetime
    delivered_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class DashboardStatsOut(BaseModel):
    total_revenue: Decimal
    pending_orders: int
    active_customers: int
    delivered_today: int


class PlanOut(BaseModel):
    id: str
    name: str
    duration_months: int
    price: Decimal


class ServiceOut(BaseModel):
    slug: str
    name: str
    category: str
    description: str
    plans: List[PlanOut]
