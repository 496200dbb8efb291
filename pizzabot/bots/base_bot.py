import logging
from abc import ABC, abstractmethod
from typing import Optional

from pizzabot import config
from pizzabot.exceptions import BackendError, TransportError
from pizzabot.formatters import normalize_phone
from pizzabot.messages import BotMessages
from pizzabot.services.api import CustomerDirectory
from pizzabot.sessions import InMemorySessionStore, SessionStore, ThreadDirectory
from pizzabot.state import Session
from pizzabot.workflow import Workflow

logger = logging.getLogger(__name__)

DEFAULT_CUSTOMER_NAME = "Cliente WhatsApp"


class BaseBot(ABC):
    """
    Base class for messaging transports.

    This class provides the transport-independent part of the bot:
    - Session lookup and per-conversation serialization
    - Automatic customer registration on first contact
    - Running the conversation workflow and sending the reply
    - Out-of-band notifications addressed by phone number
    """

    def __init__(self, workflow: Optional[Workflow] = None, store: Optional[SessionStore] = None,
                 customers: Optional[CustomerDirectory] = None, country_code: Optional[str] = None):
        """Initialize the base bot with common components."""
        self.workflow = workflow if workflow is not None else Workflow.from_config()
        self.customers = customers if customers is not None else self.workflow.customers
        self.store = store if store is not None else InMemorySessionStore()
        self.country_code = country_code if country_code is not None else config.DEFAULT_COUNTRY_CODE
        self.threads = ThreadDirectory(self.store, self.country_code)

    @abstractmethod
    def send_message(self, recipient: str, message: str, **kwargs) -> bool:
        """
        Send a message to a recipient.

        Args:
            recipient: The transport thread identifier
            message: The message content
            **kwargs: Platform-specific parameters

        Returns:
            bool: True if message was sent successfully, False otherwise
        """
        pass

    @abstractmethod
    def format_recipient_id(self, raw_id: str) -> str:
        """
        Format the recipient ID according to platform requirements.

        Args:
            raw_id: Raw recipient identifier from the platform

        Returns:
            str: Formatted recipient identifier
        """
        pass

    def is_connected(self) -> bool:
        """Whether the transport is able to send messages."""
        return True

    def _auto_register(self, session: Session, display_name: Optional[str]) -> None:
        try:
            session.customer = self.customers.register(display_name or DEFAULT_CUSTOMER_NAME,
                                                       session.conversation_id)
        except BackendError as e:
            logger.warning(f"⚠️ Could not save customer {session.conversation_id}: {e}")

    def process_user_message(self, conversation_id: str, thread_id: str, text: str,
                             display_name: Optional[str] = None) -> Optional[str]:
        """
        Run one inbound text through the workflow and reply on the same thread.

        Args:
            conversation_id: Customer phone without country code
            thread_id: Transport address the reply goes to
            text: The message content
            display_name: Profile name reported by the platform

        Returns:
            The reply sent, or None when processing failed
        """
        logger.info(f"📥 Received message from {display_name or conversation_id}: {text[:50]}")

        try:
            with self.store.lock(conversation_id):
                session = self.store.get_or_create(conversation_id, thread_id=thread_id)
                session.thread_id = thread_id

                if session.customer is None:
                    self._auto_register(session, display_name)

                session, reply = self.workflow.handle(session, text)
                self.store.set(conversation_id, session)

            if self.send_message(thread_id, reply):
                logger.info(f"✅ Response sent to {display_name or conversation_id}")
            else:
                logger.error(f"❌ Failed to send response to {display_name or conversation_id}")
            return reply

        except Exception as e:
            logger.exception(f"Error processing message from {conversation_id}: {e}")
            self.send_error_message(thread_id, BotMessages.TRANSPORT_ERROR)
            return None

    def send_error_message(self, recipient: str, error_message: str) -> None:
        """
        Send an error message to the user.

        Args:
            recipient: The recipient identifier
            error_message: The error message to send
        """
        try:
            self.send_message(recipient, error_message)
        except Exception as e:
            logger.error(f"Failed to send error message: {e}")

    def notify(self, phone: str, message: str) -> str:
        """
        Send an out-of-band message (e.g. an order status change) to a customer.

        The thread of a known conversation is preferred; otherwise the phone
        number itself, with country code, is used as the address.

        Returns:
            The thread the message was sent to

        Raises:
            TransportError: If the message could not be delivered
        """
        thread_id = self.threads.resolve_thread(phone)
        if thread_id is None:
            digits = normalize_phone(phone, self.country_code)
            thread_id = self.format_recipient_id(f"{self.country_code}{digits}")
            logger.info(f"📤 No known conversation for {phone}, sending to {thread_id}")

        if not self.send_message(thread_id, message):
            raise TransportError(f"Could not deliver notification to {thread_id}")

        logger.info(f"📤 Notification sent to {thread_id}")
        return thread_id
