import argparse
import logging
import sys

from pizzabot import config

# Configure logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, config.LOG_LEVEL, logging.INFO)
)
logger = logging.getLogger(__name__)


def mask(secret: str, visible: int = 4) -> str:
    if not secret:
        return "-"
    return f"{'*' * 10}{secret[-visible:] if len(secret) > visible else '****'}"


def print_config_status() -> bool:
    """Print the configuration status of the bot."""
    print("\n" + "=" * 50)
    print("🔧 CONFIGURATION STATUS")
    print("=" * 50)

    whatsapp_ok = config.check_whatsapp_config()

    print(f"🍕 Pizzeria: {config.PIZZERIA_NAME}")
    print(f"🔗 Backend API: {config.API_URL} (timeout {config.API_TIMEOUT}s)")
    print(f"💬 WhatsApp Bot: {'✅ Configured' if whatsapp_ok else '❌ Not configured'}")
    if whatsapp_ok:
        print(f"   Phone Number ID: {config.WHATSAPP_PHONE_NUMBER_ID}")
        print(f"   Access Token: {mask(config.WHATSAPP_ACCESS_TOKEN)}")
        print(f"   Verify Token: {mask(config.WHATSAPP_WEBHOOK_VERIFY_TOKEN, 2)}")

    print("\n" + "=" * 50)

    if not whatsapp_ok:
        print("⚠️ WhatsApp is not configured; the server will answer /health but cannot reply.")
        print("Please set in your .env file:")
        print("   - WHATSAPP_ACCESS_TOKEN, WHATSAPP_PHONE_NUMBER_ID, WHATSAPP_WEBHOOK_VERIFY_TOKEN")

    return whatsapp_ok


def run_whatsapp_bot(host: str, port: int, debug: bool = False) -> None:
    """Run the WhatsApp bot webhook server."""
    from pizzabot.bots.whatsapp_bot import WhatsAppBot

    logger.info("📱 Starting WhatsApp bot...")
    bot = WhatsAppBot()
    bot.run_webhook_server(host=host, port=port, debug=debug)


def main():
    """Main function with argument parsing."""
    parser = argparse.ArgumentParser(description=f"{config.PIZZERIA_NAME} WhatsApp ordering bot")

    parser.add_argument("--host", default=config.NOTIFICATION_HOST,
                        help=f"Webhook host (default: {config.NOTIFICATION_HOST})")
    parser.add_argument("--port", type=int, default=config.NOTIFICATION_PORT,
                        help=f"Webhook port (default: {config.NOTIFICATION_PORT})")
    parser.add_argument("--debug", action="store_true", help="Enable Flask debug mode")
    parser.add_argument("--config", action="store_true", help="Show configuration status and exit")

    args = parser.parse_args()

    if args.config:
        print_config_status()
        return

    print_config_status()

    try:
        run_whatsapp_bot(host=args.host, port=args.port, debug=args.debug)
    except KeyboardInterrupt:
        logger.info("Bot stopped by user")
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
