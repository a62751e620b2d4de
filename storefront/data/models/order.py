from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, Numeric, Text
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    plan_id = Column(String(64), nullable=False)

    amount = Column(Numeric(10, 2), nullable=False)
    status = Column(String(16), nullable=False, default="pending")  # pending, paid, delivered, failed

    customer_name = Column(String(120), nullable=True)
    customer_email = Column(String(255), nullable=True)
    customer_whatsapp = Column(String(32), nullable=True)
    special_instructions = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    delivered_at = Column(DateTime(timezone=True), nullable=True)

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
    )
