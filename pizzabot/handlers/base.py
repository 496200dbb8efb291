import re
from typing import List, Optional, Sequence, Tuple, TypeVar

from pizzabot.formatters import format_money
from pizzabot.models import DeliveryFee

T = TypeVar("T")

MIN_NAME_LENGTH = 2
MIN_ADDRESS_LENGTH = 5
MIN_NEIGHBORHOOD_LENGTH = 2

OPTION_PATTERN = re.compile(r"[0-9]+")


def parse_option(text: str) -> Optional[int]:
    """Menu options are plain non-negative integers; anything else is invalid."""
    value = (text or "").strip()
    return int(value) if OPTION_PATTERN.fullmatch(value) else None


def pick(options: Sequence[T], text: str, first: int = 1) -> Optional[T]:
    """Return the option the customer typed (numbered from ``first``) or None."""
    number = parse_option(text)
    if number is None:
        return None
    index = number - first
    if 0 <= index < len(options):
        return options[index]
    return None


def fee_listing(fees: List[DeliveryFee]) -> str:
    if not fees:
        return "Qual é o *bairro*?"
    lines = ["📍 *Bairros que atendemos:*", ""]
    for index, fee in enumerate(fees, start=1):
        lines.append(f"*{index}* - {fee.neighborhood} (Taxa: {format_money(fee.fee)})")
    lines.append("")
    lines.append("Digite o *número* do seu bairro ou o nome do bairro:")
    return "\n".join(lines)


def pick_neighborhood(fees: List[DeliveryFee], text: str) -> Optional[Tuple[str, Optional[DeliveryFee]]]:
    """
    Resolve the neighborhood answer.

    Returns (neighborhood, fee row) for a listed index, (free text, None)
    for a typed name, or None when the answer is unusable.
    """
    selected = pick(fees, text)
    if selected is not None:
        return selected.neighborhood, selected
    value = text.strip()
    if parse_option(value) is not None or len(value) < MIN_NEIGHBORHOOD_LENGTH:
        return None
    return value, None
