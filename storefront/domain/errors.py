# storefront/domain/errors.py


class CartError(Exception):
    """Base class for cart failures the API or the controller reports to a user."""


class CartUnavailableError(CartError):
    """The cart could not be looked up or created. Not the same as an empty cart."""


class CartAlreadyExistsError(CartError):
    """A concurrent request created the user's cart first."""


class CartConflictError(CartError):
    """The cart row changed between read and write (version mismatch)."""


class OrderNotFoundError(Exception):
    pass
