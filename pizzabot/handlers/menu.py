"""
Greeting, main menu and customer registration.
"""
import logging

from pizzabot.exceptions import BackendError
from pizzabot.handlers.base import MIN_ADDRESS_LENGTH, MIN_NAME_LENGTH, fee_listing, pick_neighborhood
from pizzabot.handlers.ordering import OrderingHandler
from pizzabot.handlers.tracking import TrackingHandler
from pizzabot.messages import BotMessages
from pizzabot.services.api import CatalogClient, CustomerDirectory
from pizzabot.state import RegistrationFlow, Session, State

logger = logging.getLogger(__name__)


class MenuHandler:
    def __init__(self, catalog: CatalogClient, customers: CustomerDirectory,
                 ordering: OrderingHandler, tracking: TrackingHandler):
        self.catalog = catalog
        self.customers = customers
        self.ordering = ordering
        self.tracking = tracking

    def start(self, session: Session, text: str) -> str:
        """First contact: greet returning customers by name."""
        session.state = State.MAIN_MENU
        customer = session.customer
        if customer is None:
            try:
                customer = self.customers.find_by_phone(session.conversation_id)
            except BackendError as e:
                logger.warning(f"⚠️ Customer lookup failed for {session.conversation_id}: {e}")
                return BotMessages.main_menu()

        if customer is None:
            return BotMessages.main_menu()
        session.customer = customer
        return BotMessages.welcome_back(customer.name)

    def main_menu(self, session: Session, text: str) -> str:
        if text == "1":
            if session.customer is None:
                session.flow = RegistrationFlow()
                session.state = State.REGISTER_NAME
                return BotMessages.REGISTER_START
            return self.ordering.show_categories(session)

        if text == "2":
            if session.customer is None:
                return BotMessages.NEEDS_ORDER_TO_TRACK
            return self.tracking.show_orders(session)

        if text == "3":
            return BotMessages.info()

        if text == "4":
            logger.info(f"📞 {session.conversation_id} asked for a human attendant")
            return BotMessages.HUMAN_HANDOFF

        if text == "0":
            return BotMessages.main_menu()

        return BotMessages.invalid_main_option()

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    @staticmethod
    def _registration(session: Session) -> RegistrationFlow:
        if not isinstance(session.flow, RegistrationFlow):
            session.flow = RegistrationFlow()
        return session.flow

    def register_name(self, session: Session, text: str) -> str:
        name = text.strip()
        if len(name) < MIN_NAME_LENGTH:
            return BotMessages.INVALID_NAME

        self._registration(session).name = name
        session.state = State.REGISTER_ADDRESS
        return f"""✅ Obrigado, *{name}*!

Agora, qual é o seu *endereço completo* para entrega?
(Rua, número, complemento)"""

    def register_address(self, session: Session, text: str) -> str:
        address = text.strip()
        if len(address) < MIN_ADDRESS_LENGTH:
            return BotMessages.INVALID_ADDRESS

        flow = self._registration(session)
        if not flow.name:
            session.state = State.REGISTER_NAME
            return BotMessages.REGISTER_START

        flow.address = address
        flow.fees = self.catalog.list_fees()
        session.state = State.REGISTER_NEIGHBORHOOD
        return fee_listing(flow.fees)

    def register_neighborhood(self, session: Session, text: str) -> str:
        flow = self._registration(session)
        if not flow.name or not flow.address:
            session.state = State.REGISTER_NAME
            return BotMessages.REGISTER_START

        answer = pick_neighborhood(flow.fees, text)
        if answer is None:
            return BotMessages.INVALID_NEIGHBORHOOD

        neighborhood, _ = answer
        session.customer = self.customers.register(flow.name, session.conversation_id, flow.address, neighborhood)
        session.flow = None
        logger.info(f"📝 Registration complete for {session.customer.name} ({neighborhood})")
        return self.ordering.show_categories(session)
