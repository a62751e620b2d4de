from sqlalchemy import Column, Integer, String, ForeignKey, Numeric
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class CartItemModel(Base):
    __tablename__ = "cart_items"

    id = Column(String(36), primary_key=True)
    cart_id = Column(String(36), ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)
    plan_id = Column(String(64), nullable=False)

    # captured when the plan is added, not re-synced with the catalog
    service_name = Column(String(120), nullable=False)
    plan_name = Column(String(120), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)

    quantity = Column(Integer, nullable=False)
    position = Column(Integer, nullable=False, default=0)

    cart = relationship("CartModel", back_populates="items")
