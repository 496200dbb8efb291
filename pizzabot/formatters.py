"""
Pure helpers that render values for WhatsApp messages.
"""
import re
import unicodedata
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional
from zoneinfo import ZoneInfo

STATUS_LABELS = {
    "pendente": "🆕 Pendente",
    "confirmado": "✅ Confirmado",
    "preparando": "👨‍🍳 Em Preparo",
    "pronto": "📦 Pronto",
    "saiu_entrega": "🛵 Saiu para Entrega",
    "entregue": "✔️ Entregue",
    "cancelado": "❌ Cancelado",
}

PAYMENT_LABELS = {
    "dinheiro": "💵 Dinheiro",
    "cartao_credito": "💳 Cartão de Crédito",
    "cartao_debito": "💳 Cartão de Débito",
    "pix": "📱 PIX",
}

DISPLAY_TIMEZONE = ZoneInfo("America/Sao_Paulo")


def format_money(value: Any) -> str:
    """Format a monetary value as ``R$ 1234,50``."""
    try:
        amount = Decimal(str(value if value is not None else 0))
    except InvalidOperation:
        amount = Decimal("0")
    return f"R$ {amount:.2f}".replace(".", ",")


def format_phone(phone: str) -> str:
    """Format a Brazilian phone number for display; unknown shapes are returned as is."""
    digits = re.sub(r"\D", "", phone or "")
    if len(digits) == 11:
        return f"({digits[:2]}) {digits[2:7]}-{digits[7:]}"
    if len(digits) == 10:
        return f"({digits[:2]}) {digits[2:6]}-{digits[6:]}"
    return phone


def format_datetime(value: Optional[str]) -> str:
    """Render an ISO timestamp from the backend as ``dd/mm/yyyy HH:MM`` local time."""
    if not value:
        return "-"
    try:
        moment = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(DISPLAY_TIMEZONE).strftime("%d/%m/%Y %H:%M")


def status_icon(status: str) -> str:
    label = STATUS_LABELS.get(status)
    return label.split(" ", 1)[0] if label else "❓"


def format_status(status: str) -> str:
    return STATUS_LABELS.get(status, status)


def format_payment_method(method: Optional[str]) -> str:
    return PAYMENT_LABELS.get(method or "", method or "-")


def format_delivery_type(delivery_type: Any) -> str:
    value = getattr(delivery_type, "value", delivery_type)
    return "🛵 Entrega" if value == "entrega" else "🏪 Retirada no balcão"


def format_order_number(order: Any) -> str:
    """
    Single display form for order numbers.

    The backend assigns ``numero_pedido`` (``YYMMDD`` + 4-digit daily sequence);
    when it is missing the database id is shown zero-padded (``#0007``).
    """
    number = getattr(order, "number", None)
    if number:
        return f"#{number}"
    identifier = getattr(order, "id", order)
    return f"#{str(identifier).zfill(4)}"


def normalize_text(text: str) -> str:
    """Lower-case and strip accents, so "Porções" matches "porcoes"."""
    decomposed = unicodedata.normalize("NFD", text or "")
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).lower().strip()


def normalize_phone(raw: str, country_code: str = "55") -> str:
    """
    Digits only, without the country code.

    Local Brazilian numbers have 10 or 11 digits, so the prefix is only
    stripped from longer inputs (area code 55 must survive).
    """
    digits = re.sub(r"\D", "", raw or "")
    if country_code and digits.startswith(country_code) and len(digits) > 11:
        digits = digits[len(country_code):]
    return digits
