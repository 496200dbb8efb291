"""
Conversation state for the pizzeria bot.
This defines what each customer session carries between messages.
"""
from decimal import Decimal
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from pizzabot.models import (Category, Crust, Customer, DeliveryFee, DeliveryType,
                             Order, PaymentMethod, PizzaSize, Product)


class State(str, Enum):
    START = "START"
    MAIN_MENU = "MAIN_MENU"
    REGISTER_NAME = "REGISTER_NAME"
    REGISTER_ADDRESS = "REGISTER_ADDRESS"
    REGISTER_NEIGHBORHOOD = "REGISTER_NEIGHBORHOOD"
    SELECT_CATEGORY = "SELECT_CATEGORY"
    SELECT_SIZE = "SELECT_SIZE"
    SELECT_TOPPING_COUNT = "SELECT_TOPPING_COUNT"
    SELECT_TOPPING = "SELECT_TOPPING"
    SELECT_CRUST = "SELECT_CRUST"
    SELECT_PRODUCT = "SELECT_PRODUCT"
    ITEM_ADDED = "ITEM_ADDED"
    CART_REVIEW = "CART_REVIEW"
    REMOVE_ITEM = "REMOVE_ITEM"
    DELIVERY_TYPE = "DELIVERY_TYPE"
    COLLECT_ADDRESS = "COLLECT_ADDRESS"
    COLLECT_NEIGHBORHOOD = "COLLECT_NEIGHBORHOOD"
    PAYMENT_METHOD = "PAYMENT_METHOD"
    CHANGE_AMOUNT = "CHANGE_AMOUNT"
    ORDER_SUMMARY = "ORDER_SUMMARY"
    TRACK_ORDER = "TRACK_ORDER"


# =============================================================================
# Cart
# =============================================================================

class PizzaItem(BaseModel):
    kind: Literal["pizza"] = "pizza"
    size: PizzaSize
    toppings: List[Product]
    crust: Optional[Crust] = None
    unit_price: Decimal
    quantity: int = Field(default=1, ge=1)
    note: Optional[str] = None

    @property
    def name(self) -> str:
        return f"Pizza {self.size.name} {self.toppings_label}"

    @property
    def toppings_label(self) -> str:
        return " + ".join(topping.name for topping in self.toppings)

    @property
    def crust_label(self) -> str:
        return f"Borda: {self.crust.name}" if self.crust else "Borda Tradicional"

    @property
    def description(self) -> Optional[str]:
        return f"{self.toppings_label} | {self.crust_label}"

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


class ProductItem(BaseModel):
    kind: Literal["product"] = "product"
    product: Product
    unit_price: Decimal
    quantity: int = Field(default=1, ge=1)
    note: Optional[str] = None

    @property
    def name(self) -> str:
        return self.product.name

    @property
    def description(self) -> Optional[str]:
        return self.note

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


CartItem = Annotated[Union[PizzaItem, ProductItem], Field(discriminator="kind")]


# =============================================================================
# Flow scratch data (one active flow per session)
# =============================================================================

class RegistrationFlow(BaseModel):
    kind: Literal["registration"] = "registration"
    name: Optional[str] = None
    address: Optional[str] = None
    fees: List[DeliveryFee] = Field(default_factory=list)


class BrowsingFlow(BaseModel):
    kind: Literal["browsing"] = "browsing"
    categories: List[Category] = Field(default_factory=list)
    category: Optional[Category] = None
    products: List[Product] = Field(default_factory=list)


class PizzaFlow(BaseModel):
    kind: Literal["pizza"] = "pizza"
    category: Category
    sizes: List[PizzaSize] = Field(default_factory=list)
    size: Optional[PizzaSize] = None
    topping_count: int = 1
    available_toppings: List[Product] = Field(default_factory=list)
    toppings: List[Product] = Field(default_factory=list)
    crusts: List[Crust] = Field(default_factory=list)


class CheckoutFlow(BaseModel):
    kind: Literal["checkout"] = "checkout"
    subtotal: Decimal = Decimal("0")
    delivery_type: Optional[DeliveryType] = None
    delivery_fee: Decimal = Decimal("0")
    total: Decimal = Decimal("0")
    payment_method: Optional[PaymentMethod] = None
    change_for: Optional[Decimal] = None
    pending_address: Optional[str] = None
    fees: List[DeliveryFee] = Field(default_factory=list)


class TrackingFlow(BaseModel):
    kind: Literal["tracking"] = "tracking"
    orders: List[Order] = Field(default_factory=list)


Flow = Annotated[
    Union[RegistrationFlow, BrowsingFlow, PizzaFlow, CheckoutFlow, TrackingFlow],
    Field(discriminator="kind"),
]


class Session(BaseModel):
    """
    Per-conversation state.

    ``conversation_id`` is the customer's phone (without country code) and is
    the store key; ``thread_id`` is the transport address replies go to.
    """

    conversation_id: str
    thread_id: Optional[str] = None
    state: State = State.START
    customer: Optional[Customer] = None
    cart: List[CartItem] = Field(default_factory=list)
    flow: Optional[Flow] = None

    def clear_order(self) -> None:
        self.cart = []
        self.flow = None

    def reset(self) -> None:
        """Back to the main menu with an empty cart."""
        self.clear_order()
        self.state = State.MAIN_MENU
