# storefront/domain/cart_logic.py
"""
Cart state machine, independent of where the cart is stored.

Per line item: absent -> present(1) -> present(n) -> absent.
Every function takes a frozen Cart and returns a new one with totals
recomputed. The discount amount is carried over by every mutation except
clear() and an applied discount code, so an emptied cart can still hold a
discount while its total floors at 0.
"""
from decimal import Decimal
from typing import Iterable, NamedTuple

from storefront.domain.discounts import normalize_code, resolve_discount
from storefront.domain.schemas import Cart, LineItem, new_id, parse_price, utcnow

_ZERO = Decimal("0")


class Totals(NamedTuple):
    subtotal: Decimal
    total: Decimal


class DiscountOutcome(NamedTuple):
    recognized: bool
    applied: bool
    discount: Decimal
    cart: Cart


def calculate_totals(items: Iterable[LineItem], discount: Decimal = _ZERO) -> Totals:
    subtotal = sum((i.price * i.quantity for i in items), _ZERO)
    return Totals(subtotal=subtotal, total=max(_ZERO, subtotal - discount))


def _with_items(cart: Cart, items: tuple, **changes) -> Cart:
    discount = changes.get("discount", cart.discount)
    totals = calculate_totals(items, discount)
    return cart.model_copy(
        update={
            **changes,
            "items": items,
            "subtotal": totals.subtotal,
            "total": totals.total,
            "updated_at": utcnow(),
        }
    )


def new_cart(user_id: str | None = None) -> Cart:
    return Cart(id=new_id(), user_id=user_id)


def add_item(
    cart: Cart,
    plan_id: str,
    service_name: str,
    plan_name: str,
    price,
    quantity: int = 1,
) -> Cart:
    """Merge into the existing line for plan_id, or append a new line."""
    if quantity <= 0:
        raise ValueError("Quantity must be greater than 0")

    existing = next((i for i in cart.items if i.plan_id == plan_id), None)

    if existing:
        items = tuple(
            i.model_copy(update={"quantity": i.quantity + quantity}) if i.id == existing.id else i
            for i in cart.items
        )
    else:
        item = LineItem(
            id=new_id(),
            plan_id=plan_id,
            service_name=service_name,
            plan_name=plan_name,
            price=parse_price(price),
            quantity=quantity,
        )
        items = cart.items + (item,)

    return _with_items(cart, items)


def remove_item(cart: Cart, item_id: str) -> Cart:
    return _with_items(cart, tuple(i for i in cart.items if i.id != item_id))


def set_quantity(cart: Cart, item_id: str, quantity: int) -> Cart:
    if quantity <= 0:
        return remove_item(cart, item_id)

    items = tuple(
        i.model_copy(update={"quantity": quantity}) if i.id == item_id else i
        for i in cart.items
    )
    return _with_items(cart, items)


def clear(cart: Cart) -> Cart:
    return _with_items(cart, (), discount=_ZERO, discount_code=None)


def apply_discount_code(cart: Cart, code: str) -> DiscountOutcome:
    """
    Resolve code against the cart's subtotal.

    The new amount replaces the old one (no stacking), and only when it is
    strictly better than the discount already on the cart.
    """
    amount = resolve_discount(code, cart.subtotal)
    if amount is None:
        return DiscountOutcome(recognized=False, applied=False, discount=_ZERO, cart=cart)

    if amount <= cart.discount:
        return DiscountOutcome(recognized=True, applied=False, discount=amount, cart=cart)

    updated = _with_items(cart, cart.items, discount=amount, discount_code=normalize_code(code))
    return DiscountOutcome(recognized=True, applied=True, discount=amount, cart=updated)


def validate_items(cart: Cart, known_plan_ids: set[str]) -> Cart:
    """Drop lines whose plan is gone from the catalog."""
    kept = tuple(i for i in cart.items if i.plan_id in known_plan_ids)
    if len(kept) == len(cart.items):
        return cart
    return _with_items(cart, kept)


def item_count(cart: Cart | None) -> int:
    if cart is None:
        return 0
    return sum(i.quantity for i in cart.items)


def is_empty(cart: Cart | None) -> bool:
    return cart is None or len(cart.items) == 0
