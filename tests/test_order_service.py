from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from storefront.data.database import SessionLocal
from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.domain.schemas import new_id
from storefront.repos.order_repo import OrderRepo
from storefront.services.order_service import OrderService


@pytest.fixture
def db():
    session = SessionLocal()
    yield session
    session.close()


def _order(user_id="user-1", amount="2800", status="pending", delivered_at=None) -> OrderModel:
    return OrderModel(
        id=new_id(),
        user_id=user_id,
        plan_id="netflix-tier-1",
        amount=Decimal(amount),
        status=status,
        delivered_at=delivered_at,
    )


def _item(order: OrderModel, plan_id="netflix-tier-1") -> OrderItemModel:
    return OrderItemModel(
        id=new_id(),
        order_id=order.id,
        plan_id=plan_id,
        service_name="Netflix",
        plan_name="Netflix Standard - 1 month",
        duration_months=1,
        price=order.amount,
        quantity=1,
    )


def test_order_and_items_are_written_together(db):
    order = _order()
    repo = OrderRepo(db)

    repo.create_order(order, [_item(order)])

    stored = repo.get_order(order.id)
    assert [i.plan_id for i in stored.items] == ["netflix-tier-1"]


def test_failed_item_write_leaves_no_order(db):
    order = _order()
    repo = OrderRepo(db)

    with pytest.raises(IntegrityError):
        repo.create_order(order, [_item(order, plan_id=None)])

    assert repo.list_orders() == []


def test_dashboard_stats(db):
    now = datetime.now(timezone.utc)
    repo = OrderRepo(db)
    for order in (
        _order("user-1", "100", "pending"),
        _order("user-2", "200", "paid"),
        _order("user-1", "300", "delivered", delivered_at=now),
        _order("user-3", "50", "delivered", delivered_at=now - timedelta(days=2)),
        _order("user-4", "999", "failed"),
    ):
        repo.create_order(order, [_item(order)])

    stats = OrderService(db, cart_service=None).dashboard_stats()

    assert stats["total_revenue"] == Decimal("550")
    assert stats["pending_orders"] == 1
    assert stats["active_customers"] == 4
    assert stats["delivered_today"] == 1


def test_stats_of_empty_store_are_zero(db):
    stats = OrderService(db, cart_service=None).dashboard_stats()

    assert stats == {
        "total_revenue": Decimal("0"),
        "pending_orders": 0,
        "active_customers": 0,
        "delivered_today": 0,
    }
