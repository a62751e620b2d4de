# storefront/api/routers/guest_cart.py
from fastapi import APIRouter, Depends, HTTPException

from storefront.api.deps import get_guest_cart_service, get_guest_id, resolve_catalog_item
from storefront.api.routers.carts import CART_UNAVAILABLE, to_cart_out
from storefront.domain.schemas import CartOut, DiscountIn, DiscountOut, ItemIn, QuantityIn
from storefront.services.cart_service import CartService

# cart for visitors without an account, kept in local storage per guest id, never synced
router = APIRouter(prefix="/guest-cart", tags=["guest-cart"])


@router.get("", response_model=CartOut)
def get_cart(
    guest_id: str = Depends(get_guest_id),
    svc: CartService = Depends(get_guest_cart_service),
):
    return to_cart_out(svc.get_or_create_cart(guest_id))


@router.post("/items", response_model=CartOut)
def add_item(
    payload: ItemIn = Depends(resolve_catalog_item),
    guest_id: str = Depends(get_guest_id),
    svc: CartService = Depends(get_guest_cart_service),
):
    return to_cart_out(
        svc.add_item_to_cart(
            guest_id,
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
    guest_id: str = Depends(get_guest_id),
    svc: CartService = Depends(get_guest_cart_service),
):
    return to_cart_out(svc.update_item_quantity(guest_id, item_id, payload.quantity))


@router.delete("/items/{item_id}", response_model=CartOut)
def remove_item(
    item_id: str,
    guest_id: str = Depends(get_guest_id),
    svc: CartService = Depends(get_guest_cart_service),
):
    return to_cart_out(svc.remove_item_from_cart(guest_id, item_id))


@router.post("/discount", response_model=DiscountOut)
def apply_discount(
    payload: DiscountIn,
    guest_id: str = Depends(get_guest_id),
    svc: CartService = Depends(get_guest_cart_service),
):
    outcome = svc.apply_discount_code(guest_id, payload.code)
    if outcome is None:
        raise HTTPException(status_code=503, detail=CART_UNAVAILABLE)
    return DiscountOut(
        applied=outcome.applied,
        recognized=outcome.recognized,
        discount=outcome.discount,
        cart=to_cart_out(outcome.cart),
    )


@router.delete("", status_code=204)
def discard_cart(
    guest_id: str = Depends(get_guest_id),
    svc: CartService = Depends(get_guest_cart_service),
):
    if not svc.discard_cart(guest_id):
        raise HTTPException(status_code=503, detail=CART_UNAVAILABLE)
