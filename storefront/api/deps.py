# storefront/api/deps.py
from fastapi import Header, HTTPException

from storefront.data.catalog import get_plan
from storefront.domain.schemas import ItemIn, PlanItemIn
from storefront.repos.cart_repo import CartRepo
from storefront.repos.local_cart_repo import LocalCartRepo
from storefront.services.cart_service import CartService


def get_current_user_id(x_user_id: str | None = Header(None)) -> str:
    # auth is done by the provider in front of us, it forwards the user id
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Please log in to manage your cart")
    return x_user_id


def get_guest_id(x_guest_id: str | None = Header(None)) -> str:
    # one id per browser, generated client side and kept next to its local storage
    if not x_guest_id:
        raise HTTPException(status_code=400, detail="X-Guest-Id header is required")
    return x_guest_id


def require_admin(x_user_role: str | None = Header(None)) -> None:
    if x_user_role != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")


def get_cart_service() -> CartService:
    return CartService(CartRepo())


def get_guest_cart_service() -> CartService:
    return CartService(LocalCartRepo())


def resolve_catalog_item(payload: PlanItemIn) -> ItemIn:
    """Name, label and price always come from the catalog, never from the client."""
    plan = get_plan(payload.plan_id)
    if not plan:
        raise HTTPException(status_code=404, detail="Plan not found")

    return ItemIn(
        plan_id=plan["id"],
        service_name=plan["service_name"],
        plan_name=plan["name"],
        price=plan["price"],
        quantity=payload.quantity,
    )
