# storefront/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.api.deps import get_cart_service, get_current_user_id, require_admin
from storefront.data.database import get_db
from storefront.domain.errors import CartUnavailableError, OrderNotFoundError
from storefront.domain.schemas import CheckoutIn, DashboardStatsOut, OrderOut, OrderStatusIn
from storefront.services.cart_service import CartService
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(db: Session = Depends(get_db), cart_service: CartService = Depends(get_cart_service)):
    return OrderService(db, cart_service)


@router.post("", response_model=OrderOut, status_code=201)
def checkout(
    payload: CheckoutIn,
    user_id: str = Depends(get_current_user_id),
    svc: OrderService = Depends(get_service),
):
    """
    Turns the cart into a pending order and clears the cart.
    Payment instructions are sent to the customer manually.
    """
    try:
        return svc.checkout(user_id, payload)
    except CartUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SQLAlchemyError:
        raise HTTPException(status_code=503, detail="Failed to place order, please try again")


@router.get("", response_model=List[OrderOut])
def list_orders(
    user_id: str = Depends(get_current_user_id),
    svc: OrderService = Depends(get_service),
):
    return svc.list_orders(user_id)


@router.get("/all", response_model=List[OrderOut], dependencies=[Depends(require_admin)])
def list_all_orders(svc: OrderService = Depends(get_service)):
    return svc.list_all_orders()


@router.get("/stats", response_model=DashboardStatsOut, dependencies=[Depends(require_admin)])
def dashboard_stats(svc: OrderService = Depends(get_service)):
    """Revenue counts paid and delivered orders; delivered today is since 00:00 UTC."""
    return svc.dashboard_stats()


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: str,
    user_id: str = Depends(get_current_user_id),
    svc: OrderService = Depends(get_service),
):
    try:
        return svc.get_order(order_id, user_id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except OrderNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/{order_id}/status", response_model=OrderOut, dependencies=[Depends(require_admin)])
def update_order_status(
    order_id: str,
    payload: OrderStatusIn,
    svc: OrderService = Depends(get_service),
):
    try:
        return svc.update_order_status(order_id, payload.status)
    except OrderNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
