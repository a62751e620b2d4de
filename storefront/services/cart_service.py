# storefront/services/cart_service.py
from sqlalchemy.exc import SQLAlchemyError

from storefront.domain import cart_logic
from storefront.domain.cart_logic import DiscountOutcome
from storefront.domain.errors import CartAlreadyExistsError, CartError
from storefront.domain.schemas import Cart
from storefront.repos.base import CartStorage
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

# everything a storage round trip can fail with
STORAGE_ERRORS = (SQLAlchemyError, OSError, CartError)


class CartService:
    """
    Use cases for the cart, on top of any CartStorage.

    Every command resolves the cart, applies the pure mutation from
    cart_logic, saves and re-reads it. A failure at any step returns None
    ("cart unavailable") and the caller keeps whatever it had before.
    """

    def __init__(self, storage: CartStorage):
        self.storage = storage

    # =====================================================
    # QUERY
    # =====================================================
    def get_cart(self, user_id: str) -> Cart | None:
        try:
            return self.storage.load(user_id)
        except STORAGE_ERRORS as e:
            logger.error(f"Failed to load cart of user {user_id}: {e}")
            return None

    def get_or_create_cart(self, user_id: str) -> Cart | None:
        try:
            return self._get_or_create(user_id)
        except STORAGE_ERRORS as e:
            logger.error(f"Cart unavailable for user {user_id}: {e}")
            return None

    # =====================================================
    # COMMANDS
    # =====================================================
    def add_item_to_cart(
        self,
        user_id: str,
        plan_id: str,
        service_name: str,
        plan_name: str,
        price,
        quantity: int = 1,
    ) -> Cart | None:
        logger.info(f"Adding plan {plan_id} x{quantity} to cart of user {user_id}")
        return self._mutate(
            user_id,
            "add item",
            lambda cart: cart_logic.add_item(cart, plan_id, service_name, plan_name, price, quantity),
        )

    def remove_item_from_cart(self, user_id: str, item_id: str) -> Cart | None:
        logger.info(f"Removing item {item_id} from cart of user {user_id}")
        return self._mutate(user_id, "remove item", lambda cart: cart_logic.remove_item(cart, item_id))

    def update_item_quantity(self, user_id: str, item_id: str, quantity: int) -> Cart | None:
        logger.info(f"Setting quantity of item {item_id} to {quantity} for user {user_id}")
        return self._mutate(
            user_id,
            "update quantity",
            lambda cart: cart_logic.set_quantity(cart, item_id, quantity),
        )

    def clear_cart(self, user_id: str) -> Cart | None:
        logger.info(f"Clearing cart of user {user_id}")
        return self._mutate(user_id, "clear cart", cart_logic.clear)

    def apply_discount_code(self, user_id: str, code: str) -> DiscountOutcome | None:
        try:
            cart = self._get_or_create(user_id)
            if cart is None:
                return None

            outcome = cart_logic.apply_discount_code(cart, code)
            if not outcome.applied:
                logger.info(
                    f"Discount code {code!r} not applied for user {user_id} "
                    f"(recognized={outcome.recognized})"
                )
                return outcome

            self.storage.save(outcome.cart)
            updated = self.storage.load(user_id)
        except STORAGE_ERRORS as e:
            logger.error(f"Failed to apply discount code for user {user_id}: {e}")
            return None

        if updated is None:
            return None

        logger.info(f"Applied discount {outcome.discount} to cart {updated.id}")
        return outcome._replace(cart=updated)

    def discard_cart(self, user_id: str) -> bool:
        try:
            self.storage.delete(user_id)
        except STORAGE_ERRORS as e:
            logger.error(f"Failed to delete cart of user {user_id}: {e}")
            return False
        return True

    # =====================================================
    # HELPERS
    # =====================================================
    def _get_or_create(self, user_id: str) -> Cart | None:
        cart = self.storage.load(user_id)
        if cart is not None:
            return cart

        logger.info(f"No cart for user {user_id}, creating one")
        try:
            self.storage.save(cart_logic.new_cart(user_id))
        except CartAlreadyExistsError:
            # lost the insert race, the other request's cart is the one
            logger.info(f"Cart for user {user_id} created concurrently, fetching it")

        return self.storage.load(user_id)

    def _mutate(self, user_id: str, action: str, mutation) -> Cart | None:
        try:
            cart = self._get_or_create(user_id)
            if cart is None:
                logger.error(f"Cannot {action}: cart unavailable for user {user_id}")
                return None

            self.storage.save(mutation(cart))
            return self.storage.load(user_id)
        except STORAGE_ERRORS as e:
            logger.error(f"Failed to {action} for user {user_id}: {e}")
            return None
