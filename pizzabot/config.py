import logging
import os

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Backend (chatbot routes of the order API)
API_URL = os.getenv("API_URL", "http://backend:3001/api/chatbot").rstrip("/")
API_TIMEOUT = float(os.getenv("API_TIMEOUT", "10"))
API_RETRIES = int(os.getenv("API_RETRIES", "2"))

# WhatsApp Cloud API Configuration
WHATSAPP_ACCESS_TOKEN = os.getenv("WHATSAPP_ACCESS_TOKEN")
WHATSAPP_PHONE_NUMBER_ID = os.getenv("WHATSAPP_PHONE_NUMBER_ID")
WHATSAPP_WEBHOOK_VERIFY_TOKEN = os.getenv("WHATSAPP_WEBHOOK_VERIFY_TOKEN")
WHATSAPP_API_URL = os.getenv("WHATSAPP_API_URL", "https://graph.facebook.com/v18.0")

# Webhook / notification server
NOTIFICATION_HOST = os.getenv("NOTIFICATION_HOST", "0.0.0.0")
NOTIFICATION_PORT = int(os.getenv("NOTIFICATION_PORT", "3100"))

# Phone numbers arrive with the country code, customers are stored without it
DEFAULT_COUNTRY_CODE = os.getenv("DEFAULT_COUNTRY_CODE", "55")

# Pizzeria details shown to customers
PIZZERIA_NAME = os.getenv("PIZZERIA_NAME", "LaSenhorita Pizzaria")
PIZZERIA_ADDRESS = os.getenv("PIZZERIA_ADDRESS", "Rua das Pizzas, 123 - Centro")
PIZZERIA_PHONE = os.getenv("PIZZERIA_PHONE", "(XX) XXXXX-XXXX")
OPENING_HOURS = os.getenv(
    "OPENING_HOURS",
    "Segunda a Quinta: 18h às 23h\nSexta e Sábado: 18h às 00h\nDomingo: 18h às 22h",
).replace("\\n", "\n")
PIX_KEY = os.getenv("PIX_KEY", "77988197145")
PIX_HOLDER = os.getenv("PIX_HOLDER", "Rogério S. O.")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def check_whatsapp_config() -> bool:
    """Check if WhatsApp configuration is available."""
    return bool(WHATSAPP_ACCESS_TOKEN and WHATSAPP_PHONE_NUMBER_ID and WHATSAPP_WEBHOOK_VERIFY_TOKEN)


logging.info(f"Backend API_URL: {API_URL}")
logging.info(f"WhatsApp configured: {check_whatsapp_config()}")
