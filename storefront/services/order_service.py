# storefront/services/order_service.py
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.data.catalog import get_plan
from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.domain.errors import CartUnavailableError, OrderNotFoundError
from storefront.domain.schemas import CheckoutIn, new_id
from storefront.repos.order_repo import OrderRepo
from storefront.services.cart_service import CartService
from storefront.services.notification_service import NotificationService
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def _order_dict(order: OrderModel) -> dict:
    return {
        "id": order.id,
        "user_id": order.user_id,
        "plan_id": order.plan_id,
        "amount": order.amount,
        "status": order.status,
        "customer_name": order.customer_name,
        "customer_email": order.customer_email,
        "customer_whatsapp": order.customer_whatsapp,
        "special_instructions": order.special_instructions,
        "items": [
            {
                "id": i.id,
                "plan_id": i.plan_id,
                "service_name": i.service_name,
                "plan_name": i.plan_name,
                "duration_months": i.duration_months,
                "price": i.price,
                "quantity": i.quantity,
            }
            for i in order.items
        ],
        "created_at": order.created_at,
        "delivered_at": order.delivered_at,
    }


class OrderService:
    """
    Orders, kept apart from the cart.
    Checkout reads the cart, writes the order and then its items, and only
    after both writes clears the cart.
    """

    def __init__(self, db: Session, cart_service: CartService):
        self.repo = OrderRepo(db)
        self.cart_service = cart_service
        self.notification_service = NotificationService()

    def checkout(self, user_id: str, customer: CheckoutIn) -> dict:
        cart = self.cart_service.get_or_create_cart(user_id)
        if cart is None:
            raise CartUnavailableError("Cart unavailable")

        if not cart.items:
            raise ValueError("Cannot check out an empty cart")

        order = OrderModel(
            id=new_id(),
            user_id=user_id,
            plan_id=cart.items[0].plan_id,
            amount=cart.total,
            status="pending",
            customer_name=customer.customer_name,
            customer_email=customer.customer_email,
            customer_whatsapp=customer.customer_whatsapp,
            special_instructions=customer.special_instructions,
        )

        items = []
        for item in cart.items:
            plan = get_plan(item.plan_id)
            items.append(
                OrderItemModel(
                    id=new_id(),
                    order_id=order.id,
                    plan_id=item.plan_id,
                    service_name=item.service_name,
                    plan_name=item.plan_name,
                    duration_months=plan["duration_months"] if plan else 1,
                    price=item.price,
                    quantity=item.quantity,
                )
            )

        try:
            created = self.repo.create_order(order, items)
        except SQLAlchemyError as e:
            logger.error(f"Failed to place order for user {user_id}: {e}")
            raise
        logger.info(f"Order {created.id} created from cart {cart.id}, amount {cart.total}")

        try:
            self.notification_service.send_order_notification(user_id, created.id, created.amount)
        except Exception as e:
            # the order is stored, a lost notification must not keep the cart full
            logger.error(f"Failed to queue notification for order {created.id}: {e}")

        if self.cart_service.clear_cart(user_id) is None:
            # order stands, the cart just keeps its items until the next clear
            logger.warning(f"Order {created.id} placed but cart of user {user_id} was not cleared")

        return _order_dict(self.repo.get_order(created.id))

    def list_orders(self, user_id: str) -> list[dict]:
        return [_order_dict(o) for o in self.repo.list_orders(user_id)]

    def list_all_orders(self) -> list[dict]:
        return [_order_dict(o) for o in self.repo.list_orders()]

    def get_order(self, order_id: str, user_id: str) -> dict:
        order = self.repo.get_order(order_id)

        if not order:
            raise OrderNotFoundError("Order not found")

        if order.user_id != user_id:
            raise PermissionError("You do not have access to this order")

        return _order_dict(order)

    def update_order_status(self, order_id: str, status: str) -> dict:
        order = self.repo.get_order(order_id)
        if not order:
            raise OrderNotFoundError("Order not found")

        now = datetime.now(timezone.utc)
        order.status = status
        order.updated_at = now
        if status == "delivered":
            order.delivered_at = now

        updated = self.repo.update_order(order)
        logger.info(f"Order {order_id} status set to {status}")
        return _order_dict(updated)

    def dashboard_stats(self) -> dict:
        start_of_day = datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
        return {
            "total_revenue": Decimal(str(self.repo.total_revenue())),
            "pending_orders": self.repo.count_by_status("pending"),
            "active_customers": self.repo.count_customers(),
            "delivered_today": self.repo.count_delivered_since(start_of_day),
        }
