# storefront/repos/local_cart_repo.py
import json
from pathlib import Path

from pydantic import ValidationError

from storefront.data.catalog import plan_ids
from storefront.domain.cart_logic import validate_items
from storefront.domain.schemas import Cart
from storefront.utils.settings import LOCAL_CART_PATH
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

CART_STORAGE_KEY = "msz_ecom_cart"


def _storage_key(guest_id: str | None) -> str:
    return f"{CART_STORAGE_KEY}:{guest_id}" if guest_id else CART_STORAGE_KEY


class LocalCartRepo:
    """
    Guest cart kept in a small JSON key/value file instead of the database.

    Each visitor gets its own key, CART_STORAGE_KEY:<guest id>. Without an id
    the bare CART_STORAGE_KEY is used, one cart per store file.
    Dates are stored as ISO-8601 strings. Lines whose plan left the catalog
    are dropped on load.
    """

    def __init__(self, path: str | Path = LOCAL_CART_PATH, known_plan_ids: set[str] | None = None):
        self.path = Path(path)
        self.known_plan_ids = known_plan_ids if known_plan_ids is not None else plan_ids()

    def load(self, user_id: str | None = None) -> Cart | None:
        raw = self._read_store().get(_storage_key(user_id))
        if not raw:
            return None

        try:
            cart = Cart.model_validate(raw)
        except ValidationError as e:
            logger.error(f"Discarding unreadable local cart: {e}")
            return None

        return validate_items(cart, self.known_plan_ids)

    def save(self, cart: Cart) -> None:
        store = self._read_store()
        stored = cart.model_copy(update={"version": cart.version + 1})
        store[_storage_key(cart.user_id)] = stored.model_dump(mode="json")
        self._write_store(store)

    def delete(self, user_id: str | None = None) -> None:
        store = self._read_store()
        if store.pop(_storage_key(user_id), None) is not None:
            self._write_store(store)
            logger.info(f"Removed local cart {_storage_key(user_id)}")

    def _read_store(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            store = json.loads(self.path.read_text(encoding="utf-8"))
        except ValueError as e:
            # bad json or bad utf-8
            logger.error(f"Failed to read local cart storage {self.path}: {e}")
            return {}

        if not isinstance(store, dict):
            logger.error(f"Local cart storage {self.path} is not an object, ignoring it")
            return {}
        return store

    def _write_store(self, store: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(store), encoding="utf-8")
