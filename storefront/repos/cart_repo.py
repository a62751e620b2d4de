# storefront/repos/cart_repo.py
from sqlalchemy import select, update, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from storefront.data.database import SessionLocal
from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.domain.errors import CartAlreadyExistsError, CartConflictError
from storefront.domain.schemas import Cart, LineItem
from storefront.domain.cart_logic import calculate_totals
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def _to_cart(model: CartModel, items: list[CartItemModel]) -> Cart:
    line_items = tuple(LineItem.model_validate(i) for i in items)
    totals = calculate_totals(line_items, model.discount)
    return Cart(
        id=model.id,
        user_id=model.user_id,
        items=line_items,
        subtotal=totals.subtotal,
        discount=model.discount,
        discount_code=model.discount_code,
        total=totals.total,
        version=model.version,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def _item_model(cart_id: str, item: LineItem, position: int) -> CartItemModel:
    return CartItemModel(
        id=item.id,
        cart_id=cart_id,
        plan_id=item.plan_id,
        service_name=item.service_name,
        plan_name=item.plan_name,
        price=item.price,
        quantity=item.quantity,
        position=position,
    )


class CartRepo:
    """
    Database storage for carts. One short session per call.

    save() is a compare-and-swap on carts.version:
    UPDATE carts SET version = v + 1 ... WHERE id = :id AND version = v
    """

    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self.session_factory = session_factory

    #query
    def load(self, user_id: str) -> Cart | None:
        db: Session = self.session_factory()
        try:
            cart = db.execute(
                select(CartModel).where(CartModel.user_id == user_id)
            ).scalar_one_or_none()

            if not cart:
                return None

            items = self._get_cart_items(db, cart.id)
            return _to_cart(cart, items)
        finally:
            db.close()

    #commands
    def save(self, cart: Cart) -> None:
        db: Session = self.session_factory()
        try:
            if cart.version == 0:
                self._insert(db, cart)
            else:
                self._update(db, cart)
        finally:
            db.close()

    def delete(self, user_id: str) -> None:
        db: Session = self.session_factory()
        try:
            cart = db.execute(
                select(CartModel).where(CartModel.user_id == user_id)
            ).scalar_one_or_none()
            if cart:
                db.execute(delete(CartItemModel).where(CartItemModel.cart_id == cart.id))
                db.delete(cart)
                db.commit()
                logger.info(f"Deleted cart {cart.id} of user {user_id}")
        finally:
            db.close()

    def _get_cart_items(self, db: Session, cart_id: str) -> list[CartItemModel]:
        return list(
            db.execute(
                select(CartItemModel)
                .where(CartItemModel.cart_id == cart_id)
                .order_by(CartItemModel.position)
            ).scalars()
        )

    def _insert(self, db: Session, cart: Cart) -> None:
        db.add(
            CartModel(
                id=cart.id,
                user_id=cart.user_id,
                discount=cart.discount,
                discount_code=cart.discount_code,
                version=1,
                created_at=cart.created_at,
                updated_at=cart.updated_at,
            )
        )
        db.add_all(_item_model(cart.id, item, pos) for pos, item in enumerate(cart.items))

        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            #unique user_id - someone else created the cart first
            raise CartAlreadyExistsError(f"Cart for user {cart.user_id} already exists") from e

        logger.info(f"Created cart {cart.id} for user {cart.user_id}")

    def _update(self, db: Session, cart: Cart) -> None:
        rowcount = db.execute(
            update(CartModel)
            .where(CartModel.id == cart.id, CartModel.version == cart.version)
            .values(
                version=cart.version + 1,
                discount=cart.discount,
                discount_code=cart.discount_code,
                updated_at=cart.updated_at,
            )
        ).rowcount

        if rowcount == 0:
            db.rollback()
            raise CartConflictError(
                f"Cart {cart.id} was modified by another request (expected version {cart.version})"
            )

        stored = {i.id: i for i in self._get_cart_items(db, cart.id)}

        for position, item in enumerate(cart.items):
            row = stored.pop(item.id, None)
            if row is None:
                db.add(_item_model(cart.id, item, position))
            else:
                row.quantity = item.quantity
                row.position = position

        # whatever is left was removed from the cart
        for row in stored.values():
            db.delete(row)

        db.commit()
        logger.info(f"Saved cart {cart.id}, new version: {cart.version + 1}")
