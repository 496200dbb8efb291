"""
Conversation state machine.

``Workflow.handle`` takes the current session and one inbound text and
returns the next session with the reply. Handlers work on a copy of the
session, so a failed backend round trip leaves the stored session exactly
as it was and the customer can simply repeat the last answer.
"""
import logging
from typing import Callable, Dict, Tuple

from pydantic import ValidationError

from pizzabot.exceptions import BackendError
from pizzabot.handlers.cart import CartHandler
from pizzabot.handlers.checkout import CheckoutHandler
from pizzabot.handlers.menu import MenuHandler
from pizzabot.handlers.ordering import OrderingHandler
from pizzabot.handlers.tracking import TrackingHandler
from pizzabot.messages import BotMessages
from pizzabot.services.api import BackendAPI, CatalogClient, CustomerDirectory, OrderClient
from pizzabot.state import Session, State

logger = logging.getLogger(__name__)

ESCAPE_COMMANDS = {"menu", "cancelar"}

Handler = Callable[[Session, str], str]


class Workflow:
    def __init__(self, catalog: CatalogClient, customers: CustomerDirectory, orders: OrderClient):
        self.catalog = catalog
        self.customers = customers
        self.orders = orders

        self.ordering = OrderingHandler(catalog)
        self.checkout = CheckoutHandler(catalog, customers, orders)
        self.cart = CartHandler(self.ordering, self.checkout)
        self.tracking = TrackingHandler(orders)
        self.menu = MenuHandler(catalog, customers, self.ordering, self.tracking)
        self.handlers = self._build_dispatch()

    @classmethod
    def from_config(cls) -> "Workflow":
        """Workflow wired to the backend configured in the environment."""
        api = BackendAPI()
        return cls(CatalogClient(api), CustomerDirectory(api), OrderClient(api))

    def _build_dispatch(self) -> Dict[State, Handler]:
        return {
            State.START: self.menu.start,
            State.MAIN_MENU: self.menu.main_menu,
            State.REGISTER_NAME: self.menu.register_name,
            State.REGISTER_ADDRESS: self.menu.register_address,
            State.REGISTER_NEIGHBORHOOD: self.menu.register_neighborhood,
            State.SELECT_CATEGORY: self.ordering.select_category,
            State.SELECT_SIZE: self.ordering.select_size,
            State.SELECT_TOPPING_COUNT: self.ordering.select_topping_count,
            State.SELECT_TOPPING: self.ordering.select_topping,
            State.SELECT_CRUST: self.ordering.select_crust,
            State.SELECT_PRODUCT: self.ordering.select_product,
            State.ITEM_ADDED: self.cart.item_added,
            State.CART_REVIEW: self.cart.cart_review,
            State.REMOVE_ITEM: self.cart.remove_item,
            State.DELIVERY_TYPE: self.checkout.delivery_type,
            State.COLLECT_ADDRESS: self.checkout.collect_address,
            State.COLLECT_NEIGHBORHOOD: self.checkout.collect_neighborhood,
            State.PAYMENT_METHOD: self.checkout.payment_method,
            State.CHANGE_AMOUNT: self.checkout.change_amount,
            State.ORDER_SUMMARY: self.checkout.order_summary,
            State.TRACK_ORDER: self.tracking.track_order,
        }

    def handle(self, session: Session, text: str) -> Tuple[Session, str]:
        """
        Process one inbound text.

        Args:
            session: Current session (never mutated)
            text: Raw message text

        Returns:
            (next session, reply text)
        """
        text = (text or "").strip()
        working = session.model_copy(deep=True)

        if text.lower() in ESCAPE_COMMANDS:
            logger.info(f"↩️ {session.conversation_id} escaped from {session.state.value}")
            working.reset()
            return working, BotMessages.main_menu()

        handler = self.handlers.get(working.state, self.menu.start)
        try:
            reply = handler(working, text)
        except (BackendError, ValidationError) as e:
            logger.error(f"❌ {session.conversation_id} failed in {session.state.value}: {e}")
            return session, BotMessages.GENERIC_ERROR

        if working.state != session.state:
            logger.info(f"🔀 {session.conversation_id}: {session.state.value} -> {working.state.value}")
        return working, reply
