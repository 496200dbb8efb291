import json
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import requests
from flask import Flask, jsonify, make_response, request
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from pizzabot import config
from pizzabot.bots.base_bot import BaseBot
from pizzabot.exceptions import TransportError
from pizzabot.formatters import normalize_phone
from pizzabot.messages import BotMessages

logger = logging.getLogger(__name__)

IGNORED_SENDER_SUFFIXES = ("@g.us", "@broadcast")
ADDRESS_SUFFIX = re.compile(r"@(c\.us|s\.whatsapp\.net|lid)$")


class WhatsAppBot(BaseBot):
    """
    WhatsApp Business API bot implementation.

    Features:
    - Webhook-based message receiving
    - WhatsApp Business API integration
    - Health endpoint for the deployment
    - Notification endpoint used by the order backend on status changes
    """

    def __init__(self, access_token: Optional[str] = None, phone_number_id: Optional[str] = None,
                 verify_token: Optional[str] = None, api_url: Optional[str] = None, **kwargs):
        """Initialize the WhatsApp bot with API configuration."""
        super().__init__(**kwargs)

        # WhatsApp API configuration
        self.access_token = access_token or config.WHATSAPP_ACCESS_TOKEN
        self.phone_number_id = phone_number_id or config.WHATSAPP_PHONE_NUMBER_ID
        self.verify_token = verify_token or config.WHATSAPP_WEBHOOK_VERIFY_TOKEN
        self.api_url = (api_url or config.WHATSAPP_API_URL).rstrip("/")

        if not self.is_connected():
            logger.warning(
                "WhatsApp configuration missing. Please set WHATSAPP_ACCESS_TOKEN and "
                "WHATSAPP_PHONE_NUMBER_ID in your .env file; replies will not be delivered"
            )

        # API endpoints
        self.messages_url = f"{self.api_url}/{self.phone_number_id}/messages"

        # Headers for API requests
        self.headers = {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json"
        }

        # Setup HTTP session with retries
        self.session = requests.Session()
        retry_strategy = Retry(
            total=3,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504],
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

        # Flask app for webhook
        self.app = Flask(__name__)
        self._setup_webhook_routes()

        logger.info("WhatsApp bot initialized successfully")

    def _setup_webhook_routes(self) -> None:
        """Set up Flask routes for the WhatsApp webhook, health and notifications."""

        @self.app.route("/webhook/whatsapp", methods=["GET"])
        def webhook_verify():
            """Verify webhook URL with WhatsApp."""
            return self.verify_webhook(request)

        @self.app.route("/webhook/whatsapp", methods=["POST"])
        def webhook_receive():
            """Receive messages from WhatsApp."""
            return self.handle_webhook(request)

        @self.app.route("/health", methods=["GET"])
        def health_check():
            """Health check endpoint."""
            return jsonify(self.health())

        @self.app.route("/notify", methods=["POST"])
        def notify_customer():
            """Push a message to a customer on behalf of the order backend."""
            return self.handle_notify(request)

    def is_connected(self) -> bool:
        return bool(self.access_token and self.phone_number_id)

    def health(self) -> Dict[str, Any]:
        return {
            "status": "ok",
            "connected": self.is_connected(),
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "sessions": len(self.store.sessions()),
        }

    def verify_webhook(self, request) -> Any:
        """
        Verify webhook URL with WhatsApp.

        Args:
            request: Flask request object

        Returns:
            Challenge response or error
        """
        mode = request.args.get("hub.mode")
        token = request.args.get("hub.verify_token")
        challenge = request.args.get("hub.challenge")

        if mode == "subscribe" and self.verify_token and token == self.verify_token:
            logger.info("✅ WhatsApp webhook verified successfully")
            return make_response(challenge or "", 200)

        logger.warning("❌ WhatsApp webhook verification failed")
        return make_response("Verification failed", 403)

    def handle_webhook(self, request) -> Any:
        """
        Handle incoming webhook from WhatsApp.

        Args:
            request: Flask request object

        Returns:
            JSON response confirming receipt
        """
        data = request.get_json(silent=True)

        if not data:
            logger.warning("Received empty webhook data")
            return jsonify({"status": "no_data"}), 200

        logger.debug(f"📨 Received WhatsApp webhook: {json.dumps(data, indent=2)}")

        try:
            self._process_webhook_data(data)
        except Exception as e:
            logger.exception(f"Error handling webhook: {e}")
            return jsonify({"status": "error", "message": str(e)}), 500

        return jsonify({"status": "received"}), 200

    def _process_webhook_data(self, data: Dict[str, Any]) -> None:
        """
        Process webhook data and extract messages.

        Args:
            data: Webhook data from WhatsApp
        """
        for entry in data.get("entry", []):
            for change in entry.get("changes", []):
                value = change.get("value", {})

                messages = value.get("messages", [])
                contacts = value.get("contacts", [])

                # Create contact mapping for easier lookup
                contact_map = {contact.get("wa_id"): contact.get("profile", {}).get("name")
                               for contact in contacts}

                for message in messages:
                    self._process_message(message, contact_map)

    def _process_message(self, message: Dict[str, Any], contact_map: Dict[str, Optional[str]]) -> None:
        """
        Process a single message from WhatsApp.

        Args:
            message: Message data from WhatsApp
            contact_map: Mapping of wa_id to contact names
        """
        from_number = message.get("from")
        message_type = message.get("type")

        if not from_number:
            logger.warning("Received message without sender information")
            return

        if from_number.endswith(IGNORED_SENDER_SUFFIXES):
            logger.debug(f"Ignoring group/broadcast message from {from_number}")
            return

        thread_id = self.format_recipient_id(from_number)
        conversation_id = self.extract_phone(from_number, self.country_code)
        user_name = contact_map.get(from_number) or contact_map.get(thread_id)

        logger.info(f"📱 Processing message from {user_name or 'Desconhecido'} ({conversation_id}), type: {message_type}")

        if message_type != "text":
            self.send_message(thread_id, BotMessages.UNSUPPORTED_MESSAGE)
            return

        text = message.get("text", {}).get("body", "").strip()
        self.process_user_message(conversation_id, thread_id, text, user_name)

    @staticmethod
    def extract_phone(sender: str, country_code: str = "55") -> str:
        """
        Customer phone (without country code) from a WhatsApp sender id.

        Accepts plain ``wa_id`` digits as well as ``<digits>@c.us`` and
        ``<digits>@lid`` addresses.
        """
        return normalize_phone(ADDRESS_SUFFIX.sub("", sender or ""), country_code)

    def format_recipient_id(self, raw_id: str) -> str:
        """
        Format phone number for WhatsApp API.

        Args:
            raw_id: Raw sender id from WhatsApp

        Returns:
            str: Digits-only phone number with country code (e.g. "5577988197145")
        """
        return re.sub(r"\D", "", ADDRESS_SUFFIX.sub("", raw_id or ""))

    def handle_notify(self, request) -> Any:
        """
        Deliver a backend notification. Never raises: every outcome is a JSON status.

        Args:
            request: Flask request object with ``{"telefone": ..., "mensagem": ...}``
        """
        try:
            data = request.get_json(silent=True) or {}
            phone = data.get("telefone")
            message = data.get("mensagem")

            if not phone or not message:
                return jsonify({"error": "Telefone e mensagem são obrigatórios"}), 400

            if not self.is_connected():
                return jsonify({"error": "WhatsApp não conectado"}), 503

            self.notify(str(phone), message)
            return jsonify({"success": True, "message": "Mensagem enviada"}), 200

        except TransportError as e:
            logger.error(f"❌ Could not send notification: {e}")
            return jsonify({"error": "Não foi possível enviar mensagem", "details": str(e)}), 500
        except Exception as e:
            logger.exception(f"Error sending notification: {e}")
            return jsonify({"error": "Erro ao enviar mensagem", "details": str(e)}), 500

    def send_message(self, recipient: str, message: str, **kwargs) -> bool:
        """
        Send a text message via WhatsApp Business API.

        Args:
            recipient: Phone number (with country code)
            message: Message content
            **kwargs: Additional parameters (preview_url, etc.)

        Returns:
            bool: True if message was sent successfully
        """
        if not self.is_connected():
            logger.error(f"❌ WhatsApp not configured, dropping message to {recipient}")
            return False

        payload = {
            "messaging_product": "whatsapp",
            "to": recipient,
            "type": "text",
            "text": {
                "preview_url": kwargs.get("preview_url", False),
                "body": message
            }
        }

        response = self._make_api_request("POST", self.messages_url, payload)

        if response and response.get("messages"):
            message_id = response["messages"][0].get("id")
            logger.info(f"✅ Message sent successfully to {recipient}, ID: {message_id}")
            return True

        logger.error(f"❌ Failed to send message to {recipient}: {response}")
        return False

    def _make_api_request(self, method: str, url: str, data: Dict[str, Any] = None) -> Optional[Dict[str, Any]]:
        """
        Make an API request to WhatsApp Business API.

        Args:
            method: HTTP method (GET, POST, etc.)
            url: API endpoint URL
            data: Request payload

        Returns:
            Response data or None if failed
        """
        try:
            response = self.session.request(method, url, headers=self.headers, json=data, timeout=30)
            response.raise_for_status()
            return response.json()

        except requests.exceptions.HTTPError as e:
            if e.response.status_code == 429:
                logger.error(f"Rate limit exceeded: {e}")
            else:
                logger.error(f"HTTP error {e.response.status_code}: {e}")
                logger.error(f"Response content: {e.response.text}")
            return None

        except requests.exceptions.RequestException as e:
            logger.error(f"Request failed: {e}")
            return None

        except ValueError as e:
            logger.error(f"Invalid JSON from WhatsApp API: {e}")
            return None

    def run_webhook_server(self, host: str = "0.0.0.0", port: int = 3100, debug: bool = False) -> None:
        """
        Run the Flask webhook server.

        Args:
            host: Server host
            port: Server port
            debug: Enable debug mode
        """
        logger.info(f"🚀 Starting WhatsApp webhook server on {host}:{port}")
        logger.info(f"📡 Webhook URL: http://{host}:{port}/webhook/whatsapp")
        logger.info(f"🔍 Health URL: http://{host}:{port}/health")
        logger.info(f"📤 Notify URL: http://{host}:{port}/notify")

        self.app.run(host=host, port=port, debug=debug)
