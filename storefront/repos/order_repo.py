# storefront/repos/order_repo.py
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel

# statuses that count as money received
REVENUE_STATUSES = ("paid", "delivered")


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def create_order(self, order: OrderModel, items: list[OrderItemModel]) -> OrderModel:
        """Order row and its items in one transaction, nothing is kept if either fails."""
        try:
            self.db.add(order)
            self.db.flush()
            self.db.add_all(items)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

        self.db.refresh(order)
        return order

    def get_order(self, order_id: str) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel)
            .where(OrderModel.id == order_id)
            .options(selectinload(OrderModel.items))
        ).scalar_one_or_none()

    def list_orders(self, user_id: str | None = None) -> list[OrderModel]:
        query = select(OrderModel).options(selectinload(OrderModel.items)).order_by(OrderModel.created_at.desc())
        if user_id:
            query = query.where(OrderModel.user_id == user_id)
        return list(self.db.execute(query).scalars())

    def update_order(self, order: OrderModel) -> OrderModel:
        self.db.commit()
        self.db.refresh(order)
        return order

    #stats
    def total_revenue(self):
        return self.db.execute(
            select(func.coalesce(func.sum(OrderModel.amount), 0))
            .where(OrderModel.status.in_(REVENUE_STATUSES))
        ).scalar_one()

    def count_by_status(self, status: str) -> int:
        return self.db.execute(
            select(func.count(OrderModel.id)).where(OrderModel.status == status)
        ).scalar_one()

    def count_customers(self) -> int:
        return self.db.execute(select(func.count(func.distinct(OrderModel.user_id)))).scalar_one()

    def count_delivered_since(self, since: datetime) -> int:
        return self.db.execute(
            select(func.count(OrderModel.id))
            .where(OrderModel.status == "delivered", OrderModel.delivered_at >= since)
        ).scalar_one()
