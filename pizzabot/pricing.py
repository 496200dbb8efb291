"""
Price rules for cart items and orders.

Multi-topping pizzas are charged by their most expensive topping at the
chosen size, never by the sum or the average of the toppings.
"""
import re
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from pizzabot.models import Crust, DeliveryType, PizzaSize, Product

ZERO = Decimal("0")

# Plain amounts only: up to 7 integer digits and 2 decimals, no exponent.
AMOUNT_PATTERN = re.compile(r"[0-9]{1,7}(\.[0-9]{1,2})?")


def validate_toppings(size: PizzaSize, toppings: Sequence[Product]) -> None:
    if not toppings:
        raise ValueError("A pizza needs at least one topping")
    if len(toppings) > size.max_toppings:
        raise ValueError(
            f"Size {size.name} allows at most {size.max_toppings} topping(s), got {len(toppings)}"
        )


def pizza_unit_price(size: PizzaSize, toppings: Sequence[Product], crust: Optional[Crust] = None) -> Decimal:
    validate_toppings(size, toppings)
    base = ZERO
    for topping in toppings:
        price = topping.price_for_size(size.id)
        if price is not None and price > base:
            base = price
    surcharge = crust.surcharge if crust else ZERO
    return base + surcharge


def cart_subtotal(items: Iterable) -> Decimal:
    return sum((item.unit_price * item.quantity for item in items), ZERO)


def order_total(subtotal: Decimal, delivery_fee: Decimal, delivery_type: DeliveryType) -> Decimal:
    if delivery_type == DeliveryType.DELIVERY:
        return subtotal + delivery_fee
    return subtotal


def parse_amount(text: str) -> Optional[Decimal]:
    """Parse amounts typed by customers: ``50``, ``50,00``, ``R$ 50.5``, ``1.000,00``."""
    cleaned = re.sub(r"(?i)r\$", "", text or "").strip().replace(" ", "")
    if not cleaned:
        return None
    if "," in cleaned:
        cleaned = cleaned.replace(".", "").replace(",", ".")
    if not AMOUNT_PATTERN.fullmatch(cleaned):
        return None
    return Decimal(cleaned)
