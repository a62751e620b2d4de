# storefront/api/routers/carts.py
from fastapi import APIRouter, Depends, HTTPException

from storefront.api.deps import get_cart_service, get_current_user_id, resolve_catalog_item
from storefront.domain.schemas import (
    Cart,
    CartOut,
    DiscountIn,
    DiscountOut,
    ItemIn,
    QuantityIn,
)
from storefront.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])

CART_UNAVAILABLE = "Cart unavailable, please try again"


def to_cart_out(cart: Cart | None) -> CartOut:
    # None means the store failed, never an empty cart
    if cart is None:
        raise HTTPException(status_code=503, detail=CART_UNAVAILABLE)

    return CartOut(
        id=cart.id,
        user_id=cart.user_id,
        items=[i.model_dump() for i in cart.items],
        subtotal=cart.subtotal,
        discount=cart.discount,
        discount_code=cart.discount_code,
        total=cart.total,
        item_count=sum(i.quantity for i in cart.items),
        is_empty=not cart.items,
        updated_at=cart.updated_at,
    )


@router.get("", response_model=CartOut)
def get_cart(
    user_id: str = Depends(get_current_user_id),
    svc: CartService = Depends(get_cart_service),
):
    return to_cart_out(svc.get_or_create_cart(user_id))


@router.post("/items", response_model=CartOut)
def add_item(
    payload: ItemIn = Depends(resolve_catalog_item),
    user_id: str = Depends(get_current_user_id),
    svc: CartService = Depends(get_cart_service),
):
    return to_cart_out(
        svc.add_item_to_cart(
            user_id,
            plan_id=payload.plan_id,
            service_name=payload.service_name,
            plan_name=payload.plan_name,
            price=payload.price,
            quantity=payload.quantity,
        )
    )


@router.patch("/items/{item_id}", response_model=CartOut)
def update_quantity(
    item_id: str,
    payload: QuantityIn,
    user_id: str = Depends(get_current_user_id),
    svc: CartService = Depends(get_cart_service),
):
    return to_cart_out(svc.update_item_quantity(user_id, item_id, payload.quantity))


@router.delete("/items/{item_id}", response_model=CartOut)
def remove_item(
    item_id: str,
    user_id: str = Depends(get_current_user_id),
    svc: CartService = Depends(get_cart_service),
):
    return to_cart_out(svc.remove_item_from_cart(user_id, item_id))


@router.post("/discount", response_model=DiscountOut)
def apply_discount(
    payload: DiscountIn,
    user_id: str = Depends(get_current_user_id),
    svc: CartService = Depends(get_cart_service),
):
    outcome = svc.apply_discount_code(user_id, payload.code)
    if outcome is None:
        raise HTTPException(status_code=503, detail=CART_UNAVAILABLE)

    return DiscountOut(
        applied=outcome.applied,
        recognized=outcome.recognized,
        discount=outcome.discount,
        cart=to_cart_out(outcome.cart),
    )


@router.delete("", response_model=CartOut)
def clear_cart(
    user_id: str = Depends(get_current_user_id),
    svc: CartService = Depends(get_cart_service),
):
    return to_cart_out(svc.clear_cart(user_id))
