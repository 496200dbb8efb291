import logging

from pizzabot.formatters import format_money
from pizzabot.handlers.base import pick
from pizzabot.handlers.checkout import CheckoutHandler
from pizzabot.handlers.ordering import OrderingHandler
from pizzabot.messages import BotMessages
from pizzabot.pricing import cart_subtotal
from pizzabot.state import Session, State

logger = logging.getLogger(__name__)


class CartHandler:
    """Cart review, item removal and the hand-off into checkout."""

    def __init__(self, ordering: OrderingHandler, checkout: CheckoutHandler):
        self.ordering = ordering
        self.checkout = checkout

    def item_added(self, session: Session, text: str) -> str:
        if text == "1":
            return self.ordering.show_categories(session)
        if text == "2":
            return self.show_cart(session)
        return BotMessages.INVALID_ITEM_ADDED

    def show_cart(self, session: Session, prefix: str = "") -> str:
        session.flow = None
        if not session.cart:
            session.state = State.MAIN_MENU
            return prefix + BotMessages.EMPTY_CART

        session.state = State.CART_REVIEW
        lines = ["🛒 *Seu Carrinho*", ""]
        for index, item in enumerate(session.cart, start=1):
            quantity = f"{item.quantity}x " if item.quantity > 1 else ""
            lines.append(f"{index}. {quantity}{item.name}")
            if item.description:
                lines.append(f"   {item.description}")
            lines.append(f"   {format_money(item.subtotal)}")
            lines.append("")
        lines.append("━━━━━━━━━━━━━━━━━━")
        lines.append(f"*Subtotal:* {format_money(cart_subtotal(session.cart))}")
        lines.append("")
        lines.append(BotMessages.CART_OPTIONS)
        return prefix + "\n".join(lines)

    def cart_review(self, session: Session, text: str) -> str:
        if text == "1":
            return self.ordering.show_categories(session)

        if text == "2":
            session.state = State.REMOVE_ITEM
            lines = ["🗑️ *Qual item deseja remover?*", ""]
            for index, item in enumerate(session.cart, start=1):
                lines.append(f"*{index}* - {item.name}")
            lines.append("")
            lines.append("*0* - Voltar")
            return "\n".join(lines)

        if text == "3":
            return self.checkout.start(session)

        if text == "0":
            session.reset()
            logger.info(f"🗑️ {session.conversation_id} cancelled the cart")
            return BotMessages.ORDER_CANCELLED

        return BotMessages.INVALID_CART

    def remove_item(self, session: Session, text: str) -> str:
        if text == "0":
            return self.show_cart(session)

        item = pick(session.cart, text)
        if item is None:
            return BotMessages.INVALID_REMOVE

        session.cart.remove(item)
        removed = f"🗑️ *{item.name}* removido!\n\n"
        if not session.cart:
            session.state = State.MAIN_MENU
            return removed + "🛒 Seu carrinho está vazio agora.\n\nDigite *1* para fazer um novo pedido."
        return self.show_cart(session, prefix=removed)
