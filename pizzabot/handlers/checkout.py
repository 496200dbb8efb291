"""
Checkout: delivery type, delivery address, payment, change and submission.
"""
import logging
from typing import List

from pizzabot import config
from pizzabot.formatters import format_money, format_order_number, format_payment_method, format_phone
from pizzabot.handlers.base import MIN_ADDRESS_LENGTH, fee_listing, parse_option, pick_neighborhood
from pizzabot.messages import BotMessages
from pizzabot.models import DeliveryType, OrderItemRequest, OrderRequest, PaymentMethod
from pizzabot.pricing import ZERO, cart_subtotal, order_total, parse_amount
from pizzabot.services.api import CatalogClient, CustomerDirectory, OrderClient
from pizzabot.state import CartItem, CheckoutFlow, PizzaItem, Session, State

logger = logging.getLogger(__name__)

PAYMENT_CHOICES = {
    1: PaymentMethod.CASH,
    2: PaymentMethod.CREDIT_CARD,
    3: PaymentMethod.DEBIT_CARD,
    4: PaymentMethod.PIX,
}

def order_items(cart: List[CartItem]) -> List[OrderItemRequest]:
    """Translate cart lines into backend order items (a pizza is keyed by its first topping)."""
    items = []
    for item in cart:
        if isinstance(item, PizzaItem):
            items.append(OrderItemRequest(
                product_id=item.toppings[0].id,
                size_id=item.size.id,
                crust_id=item.crust.id if item.crust else None,
                quantity=item.quantity,
                unit_price=item.unit_price,
                note=item.note,
            ))
        else:
            items.append(OrderItemRequest(
                product_id=item.product.id,
                quantity=item.quantity,
                unit_price=item.unit_price,
                note=item.note,
            ))
    return items


class CheckoutHandler:
    def __init__(self, catalog: CatalogClient, customers: CustomerDirectory, orders: OrderClient):
        self.catalog = catalog
        self.customers = customers
        self.orders = orders

    def start(self, session: Session) -> str:
        if not session.cart:
            session.reset()
            return BotMessages.EMPTY_CART
        if session.customer is None:
            session.flow = None
            session.state = State.REGISTER_NAME
            return BotMessages.REGISTER_START
        subtotal = cart_subtotal(session.cart)
        session.flow = CheckoutFlow(subtotal=subtotal, total=subtotal)
        session.state = State.DELIVERY_TYPE
        return BotMessages.DELIVERY_TYPE

    def _apply_fee(self, flow: CheckoutFlow, fee) -> None:
        flow.delivery_fee = fee
        flow.total = order_total(flow.subtotal, fee, flow.delivery_type)

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    def delivery_type(self, session: Session, text: str) -> str:
        flow = session.flow
        if not isinstance(flow, CheckoutFlow):
            return self.start(session)

        if text == "1":
            flow.delivery_type = DeliveryType.DELIVERY
            customer = session.customer
            if customer is None or not customer.has_address:
                session.state = State.COLLECT_ADDRESS
                return BotMessages.ASK_DELIVERY_ADDRESS

            fee = self.catalog.fee_for_neighborhood(customer.neighborhood)
            self._apply_fee(flow, fee.fee if fee else ZERO)
            return self.show_payment(session)

        if text == "2":
            flow.delivery_type = DeliveryType.PICKUP
            self._apply_fee(flow, ZERO)
            return self.show_payment(session)

        return BotMessages.INVALID_DELIVERY_TYPE

    def collect_address(self, session: Session, text: str) -> str:
        flow = session.flow
        if not isinstance(flow, CheckoutFlow):
            return self.start(session)
        address = text.strip()
        if len(address) < MIN_ADDRESS_LENGTH:
            return BotMessages.INVALID_ADDRESS

        flow.pending_address = address
        flow.fees = self.catalog.list_fees()
        session.state = State.COLLECT_NEIGHBORHOOD
        return fee_listing(flow.fees)

    def collect_neighborhood(self, session: Session, text: str) -> str:
        flow = session.flow
        if not isinstance(flow, CheckoutFlow):
            return self.start(session)
        answer = pick_neighborhood(flow.fees, text)
        if answer is None:
            return BotMessages.INVALID_NEIGHBORHOOD

        neighborhood, fee = answer
        if fee is None:
            fee = self.catalog.fee_for_neighborhood(neighborhood)

        if session.customer is None:
            return self.start(session)
        session.customer = self.customers.update_address(session.customer.id, flow.pending_address, neighborhood)
        logger.info(f"📍 Address updated for {session.customer.name}: {neighborhood}")

        self._apply_fee(flow, fee.fee if fee else ZERO)
        flow.pending_address = None
        flow.fees = []
        return self.show_payment(session)

    def show_payment(self, session: Session) -> str:
        flow = session.flow
        session.state = State.PAYMENT_METHOD

        if flow.delivery_type == DeliveryType.DELIVERY:
            customer = session.customer
            return f"""📍 *Endereço de Entrega:*
{customer.address}
{customer.neighborhood}

🛵 *Taxa de entrega:* {format_money(flow.delivery_fee)}
💰 *Total:* {format_money(flow.total)}

{BotMessages.payment_options(delivery=True)}"""

        return f"""🏪 *Retirada no Balcão*

📍 {config.PIZZERIA_ADDRESS}

💰 *Total:* {format_money(flow.total)}

{BotMessages.payment_options(delivery=False)}"""

    # ------------------------------------------------------------------
    # Payment
    # ------------------------------------------------------------------

    def payment_method(self, session: Session, text: str) -> str:
        flow = session.flow
        if not isinstance(flow, CheckoutFlow):
            return self.start(session)
        method = PAYMENT_CHOICES.get(parse_option(text))
        if method is None:
            return BotMessages.INVALID_PAYMENT

        flow.payment_method = method
        flow.change_for = None
        if method == PaymentMethod.CASH:
            session.state = State.CHANGE_AMOUNT
            return f"""💵 *Troco*

Total do pedido: {format_money(flow.total)}

Precisa de troco? Digite o valor da nota (ex: 50, 100) ou *0* se não precisa de troco."""

        return self.show_summary(session)

    def change_amount(self, session: Session, text: str) -> str:
        flow = session.flow
        if not isinstance(flow, CheckoutFlow):
            return self.start(session)
        amount = parse_amount(text)
        if amount is None or (amount != ZERO and amount < flow.total):
            return (
                f"❌ Por favor, digite um valor válido maior que {format_money(flow.total)} "
                "ou *0* se não precisa de troco."
            )

        flow.change_for = amount if amount > ZERO else None
        return self.show_summary(session)

    # ------------------------------------------------------------------
    # Summary and submission
    # ------------------------------------------------------------------

    def show_summary(self, session: Session) -> str:
        flow = session.flow
        session.state = State.ORDER_SUMMARY
        customer = session.customer

        lines = ["📋 *Resumo do Pedido*", ""]
        if customer is not None:
            lines.append(f"👤 *Cliente:* {customer.name}")
            lines.append(f"📱 *Telefone:* {format_phone(customer.phone)}")
        if flow.delivery_type == DeliveryType.DELIVERY:
            lines.append(f"📍 *Entrega:* {customer.address}, {customer.neighborhood}")
        else:
            lines.append("🏪 *Retirada no balcão*")

        lines.append("")
        lines.append("━━━ *Itens* ━━━")
        for index, item in enumerate(session.cart, start=1):
            lines.append("")
            quantity = f"{item.quantity}x " if item.quantity > 1 else ""
            lines.append(f"{index}. {quantity}{item.name}")
            if item.description:
                lines.append(f"   {item.description}")
            lines.append(f"   {format_money(item.subtotal)}")

        lines.append("")
        lines.append("━━━━━━━━━━━━━━━━━━")
        lines.append(f"*Subtotal:* {format_money(flow.subtotal)}")
        if flow.delivery_type == DeliveryType.DELIVERY:
            lines.append(f"*Taxa Entrega:* {format_money(flow.delivery_fee)}")
        lines.append(f"*TOTAL:* {format_money(flow.total)}")
        lines.append("")
        lines.append(f"💳 *Pagamento:* {format_payment_method(flow.payment_method.value)}")

        if flow.change_for:
            change = flow.change_for - flow.total
            lines.append(f"💵 *Troco para:* {format_money(flow.change_for)} (Troco: {format_money(change)})")

        if flow.payment_method == PaymentMethod.PIX:
            lines.append("")
            lines.append(BotMessages.pix_instructions())
            lines.append("")
            lines.append("⚠️ _Após enviar o pedido, envie o comprovante de pagamento aqui._")

        lines.append("")
        lines.append("━━━━━━━━━━━━━━━━━━")
        lines.append("*1* - ✅ Enviar Pedido")
        lines.append("*2* - ❌ Cancelar")
        return "\n".join(lines)

    def order_summary(self, session: Session, text: str) -> str:
        if text == "2":
            session.reset()
            return BotMessages.ORDER_CANCELLED
        if text != "1":
            return BotMessages.INVALID_CONFIRMATION

        flow = session.flow
        if not isinstance(flow, CheckoutFlow):
            return self.start(session)
        customer = session.customer
        if customer is None:
            return self.start(session)

        delivery_address = None
        if flow.delivery_type == DeliveryType.DELIVERY:
            delivery_address = f"{customer.address}, {customer.neighborhood}"

        request = OrderRequest(
            customer_id=customer.id,
            delivery_type=flow.delivery_type,
            payment_method=flow.payment_method,
            change_for=flow.change_for,
            delivery_address=delivery_address,
            subtotal=flow.subtotal,
            delivery_fee=flow.delivery_fee,
            total=flow.total,
            items=order_items(session.cart),
            phone=session.conversation_id,
        )
        order = self.orders.submit(request)

        method = flow.payment_method
        total = flow.total
        session.reset()
        logger.info(f"🎉 Order {format_order_number(order)} placed by {customer.name}")
        return self.receipt(order, total, method)

    @staticmethod
    def receipt(order, total, method: PaymentMethod) -> str:
        header = f"""📤 *Pedido Enviado!*

🎉 Seu pedido {format_order_number(order)} foi recebido!

💰 *Total:* {format_money(total)}"""

        if method == PaymentMethod.PIX:
            return f"""{header}

{BotMessages.pix_instructions()}

⚠️ *IMPORTANTE:* Envie o comprovante de pagamento aqui para confirmarmos seu pedido.

Aguardamos a confirmação do pagamento para iniciar o preparo.

Digite *0* para voltar ao menu principal."""

        return f"""{header}

⏳ Aguarde a confirmação do seu pedido. Você receberá uma mensagem assim que for confirmado.

Acompanhe seu pedido digitando *2* no menu principal.

Obrigado por escolher a *{config.PIZZERIA_NAME}*! 🍕

Digite *0* para voltar ao menu principal."""
