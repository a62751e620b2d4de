# storefront/repos/base.py
from typing import Protocol

from storefront.domain.schemas import Cart


class CartStorage(Protocol):
    """Where a cart lives: the database for signed-in users, a local file for guests."""

    def load(self, user_id: str) -> Cart | None:
        ...

    def save(self, cart: Cart) -> None:
        """Insert when cart.version == 0, otherwise overwrite the stored version."""
        ...

    def delete(self, user_id: str) -> None:
        ...
