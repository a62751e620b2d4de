# storefront/domain/discounts.py
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Dict, Union

_CENT = Decimal("0.01")

DiscountRule = Union[Decimal, Callable[[Decimal], Decimal]]


def _percent(rate: str) -> Callable[[Decimal], Decimal]:
    return lambda subtotal: subtotal * Decimal(rate)


# code -> flat amount or percentage of the subtotal
DISCOUNT_CODES: Dict[str, DiscountRule] = {
    "SAVE10": _percent("0.10"),
    "SAVE20": _percent("0.20"),
    "FIRST100": Decimal("100"),
    "STUDENT50": Decimal("50"),
    "WELCOME15": _percent("0.15"),
}


def normalize_code(code: str) -> str:
    return code.strip().upper()


def resolve_discount(code: str, subtotal: Decimal) -> Decimal | None:
    """
    Resolve a discount code against the current subtotal.

    Returns the discount amount, or None when the code is not recognized.
    A recognized code can still resolve to 0 (e.g. a percentage of an empty cart).
    """
    rule = DISCOUNT_CODES.get(normalize_code(code))
    if rule is None:
        return None

    amount = rule(subtotal) if callable(rule) else rule
    return Decimal(amount).quantize(_CENT, rounding=ROUND_HALF_UP)
