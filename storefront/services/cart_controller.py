# storefront/services/cart_controller.py
import asyncio
import enum
import threading
from concurrent.futures import Future
from typing import Callable, List, Protocol

from redis.exceptions import RedisError

from storefront.domain import cart_logic
from storefront.domain.schemas import Cart, ItemIn
from storefront.services.cart_service import CartService
from storefront.services.sync_channel import (
    CART_UPDATED,
    BroadcastChannel,
    cart_updated_message,
    open_cart_channel,
)
from storefront.utils.settings import CART_LOAD_TIMEOUT_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

LOGIN_TO_ADD_MESSAGE = "Please log in to add items to cart"
LOGIN_REQUIRED_MESSAGE = "Please log in to manage your cart"
LOAD_FAILED_MESSAGE = "Failed to load your cart."
LOAD_TIMEOUT_MESSAGE = "Cart loading timed out. Please refresh the page."


class LoadState(enum.Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


class AuthProvider(Protocol):
    async def current_user_id(self) -> str | None:
        ...


class StaticAuthProvider:
    """Identity already resolved upstream (gateway header, session, test)."""

    def __init__(self, user_id: str | None):
        self.user_id = user_id

    async def current_user_id(self) -> str | None:
        return self.user_id


CartListener = Callable[[Cart | None], object]


class CartController:
    """
    In-memory cart for one open view, kept in line with the database.

    The cart held here is a cache: it is replaced (never patched) after every
    successful command and whenever another view announces a change on the
    sync channel. Failures never raise out of the controller; they end up in
    `error` and the previous cart stays in place.
    """

    def __init__(
        self,
        cart_service: CartService,
        auth: AuthProvider,
        channel: BroadcastChannel | None = None,
        load_timeout: float = CART_LOAD_TIMEOUT_SECONDS,
    ):
        self.cart_service = cart_service
        self.auth = auth
        self.channel = channel if channel is not None else open_cart_channel()
        self.channel.on_message = self.handle_broadcast
        self.load_timeout = load_timeout

        self.cart: Cart | None = None
        self.error: str | None = None
        self.state = LoadState.IDLE
        self.user_id: str | None = None

        self._listeners: List[CartListener] = []
        # appended from the channel thread, emptied as refetches finish
        self._pending_syncs: List[Future] = []
        self._syncs_lock = threading.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._closed = False

    # =====================================================
    # LIFECYCLE
    # =====================================================
    async def mount(self) -> None:
        self._loop = asyncio.get_running_loop()
        self.user_id = await self.auth.current_user_id()

        if not self.user_id:
            logger.info("No authenticated user, cart not loaded")
            self.cart = None
            self.state = LoadState.IDLE
            return

        await self.load_cart(self.user_id)

    def close(self) -> None:
        self._closed = True
        self.channel.close()
        self._listeners.clear()

    # =====================================================
    # DERIVED STATE
    # =====================================================
    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id)

    @property
    def is_loading(self) -> bool:
        return self.state is LoadState.LOADING

    @property
    def item_count(self) -> int:
        return cart_logic.item_count(self.cart)

    @property
    def is_empty(self) -> bool:
        return cart_logic.is_empty(self.cart)

    def add_listener(self, listener: CartListener) -> Callable[[], None]:
        """Subscribe to in-page cart changes. Returns an unsubscribe function."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener) if listener in self._listeners else None

    # =====================================================
    # LOADING
    # =====================================================
    async def load_cart(self, user_id: str) -> None:
        if self.state is LoadState.LOADING:
            logger.info(f"Cart load for user {user_id} already in progress, skipping")
            return

        self.state = LoadState.LOADING
        try:
            cart = await asyncio.wait_for(
                asyncio.to_thread(self.cart_service.get_or_create_cart, user_id),
                timeout=self.load_timeout,
            )
        except asyncio.TimeoutError:
            logger.error(f"Loading cart for user {user_id} timed out after {self.load_timeout}s")
            self._fail(LOAD_TIMEOUT_MESSAGE)
            return
        except Exception as e:
            logger.error(f"Failed to load cart for user {user_id}: {e}")
            self._fail(LOAD_FAILED_MESSAGE)
            return

        if cart is None:
            self._fail(LOAD_FAILED_MESSAGE)
            return

        self.cart = cart
        self.error = None
        self.state = LoadState.LOADED
        self._notify_listeners()

    async def refresh_cart(self) -> None:
        if not self.user_id:
            self.error = LOGIN_REQUIRED_MESSAGE
            return
        await self.load_cart(self.user_id)

    # =====================================================
    # COMMANDS
    # =====================================================
    async def add_item(self, item: ItemIn) -> None:
        await self._run(
            "Failed to add item to cart",
            self.cart_service.add_item_to_cart,
            item.plan_id,
            item.service_name,
            item.plan_name,
            item.price,
            item.quantity,
            login_message=LOGIN_TO_ADD_MESSAGE,
        )

    async def remove_item(self, item_id: str) -> None:
        await self._run("Failed to remove item from cart", self.cart_service.remove_item_from_cart, item_id)

    async def update_quantity(self, item_id: str, quantity: int) -> None:
        await self._run("Failed to update quantity", self.cart_service.update_item_quantity, item_id, quantity)

    async def clear_cart(self) -> None:
        await self._run("Failed to clear cart", self.cart_service.clear_cart)

    async def apply_discount_code(self, code: str) -> bool:
        """True only when the code beat the discount already on the cart."""
        if not self.user_id:
            self.error = LOGIN_REQUIRED_MESSAGE
            return False

        try:
            outcome = await asyncio.to_thread(self.cart_service.apply_discount_code, self.user_id, code)
        except Exception as e:
            logger.error(f"Apply discount failed: {e}")
            self.error = "Failed to apply discount code"
            return False

        if outcome is None:
            self.error = "Failed to apply discount code"
            return False

        if not outcome.applied:
            return False

        self._replace_cart(outcome.cart)
        return True

    # =====================================================
    # SYNC
    # =====================================================
    def handle_broadcast(self, message: dict) -> Future | None:
        """Channel callback. May run on the channel's own thread."""
        if message.get("type") != CART_UPDATED or self._closed:
            return None
        if not self.user_id or self._loop is None or self._loop.is_closed():
            return None

        logger.info(f"Received cart update from another view, refetching cart of user {self.user_id}")
        future = asyncio.run_coroutine_threadsafe(self.load_cart(self.user_id), self._loop)
        with self._syncs_lock:
            self._pending_syncs.append(future)
        future.add_done_callback(self._forget_sync)
        return future

    async def wait_for_sync(self) -> None:
        """Wait until every refetch triggered by the channel has finished."""
        with self._syncs_lock:
            pending = list(self._pending_syncs)
        if pending:
            await asyncio.gather(*(asyncio.wrap_future(f) for f in pending))

    # =====================================================
    # HELPERS
    # =====================================================
    async def _run(self, failure_message: str, command, *args, login_message: str = LOGIN_REQUIRED_MESSAGE) -> None:
        if not self.user_id:
            self.error = login_message
            return

        try:
            result = await asyncio.to_thread(command, self.user_id, *args)
        except Exception as e:
            logger.error(f"{failure_message}: {e}")
            self.error = failure_message
            return

        if result is None:
            self.error = failure_message
            return

        self._replace_cart(result)

    def _replace_cart(self, cart: Cart) -> None:
        self.cart = cart
        self.error = None
        self.state = LoadState.LOADED
        self._notify_listeners()
        try:
            self.channel.post_message(cart_updated_message())
        except RedisError as e:
            # other views catch up on their next load
            logger.warning(f"Failed to broadcast cart update: {e}")

    def _forget_sync(self, future: Future) -> None:
        with self._syncs_lock:
            if future in self._pending_syncs:
                self._pending_syncs.remove(future)

    def _fail(self, message: str) -> None:
        self.error = message
        self.state = LoadState.ERROR

    def _notify_listeners(self) -> None:
        for listener in list(self._listeners):
            listener(self.cart)
