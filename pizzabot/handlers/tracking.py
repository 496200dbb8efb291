import logging

from pizzabot.formatters import (format_datetime, format_delivery_type, format_money, format_order_number,
                                 format_payment_method, format_status, status_icon)
from pizzabot.handlers.base import pick
from pizzabot.messages import BotMessages
from pizzabot.models import DeliveryType, Order, OrderStatus, PaymentMethod
from pizzabot.services.api import OrderClient
from pizzabot.state import Session, State, TrackingFlow

logger = logging.getLogger(__name__)

RECENT_ORDERS = 5


def status_narrative(order: Order) -> str:
    """What the customer should expect next, given the order status."""
    status = order.status
    if status == OrderStatus.PENDING.value:
        return "⏳ Aguardando confirmação da pizzaria..."
    if status == OrderStatus.CONFIRMED.value:
        return "✅ Seu pedido foi confirmado!\n⏳ Em breve começaremos a preparar."
    if status == OrderStatus.PREPARING.value:
        return "👨‍🍳 Sua pizza está sendo preparada!\n⏳ Falta pouco..."
    if status == OrderStatus.READY.value:
        if order.delivery_type == DeliveryType.PICKUP:
            return "📦 Seu pedido está PRONTO!\n🏪 Pode retirar no balcão."
        return "📦 Seu pedido está pronto!\n🛵 Aguardando motoboy..."
    if status == OrderStatus.OUT_FOR_DELIVERY.value:
        text = "🛵 Seu pedido saiu para entrega!"
        if order.courier and order.courier.name:
            text += f"\n👤 Motoboy: {order.courier.name}"
        return text
    if status == OrderStatus.DELIVERED.value:
        return "✔️ Pedido entregue com sucesso!\n😋 Bom apetite!"
    if status == OrderStatus.CANCELLED.value:
        return "❌ Este pedido foi cancelado."
    return ""


def order_details(order: Order) -> str:
    lines = [
        f"📋 *Pedido {format_order_number(order)}*",
        "",
        f"📅 *Data:* {format_datetime(order.created_at)}",
        f"📌 *Status:* {format_status(order.status)}",
        f"🚗 *Tipo:* {format_delivery_type(order.delivery_type)}",
    ]
    if order.delivery_type == DeliveryType.DELIVERY and order.delivery_address:
        lines.append(f"📍 *Endereço:* {order.delivery_address}")

    lines.append("")
    lines.append("━━━ *Itens* ━━━")
    for index, item in enumerate(order.items, start=1):
        name = item.product.name if item.product and item.product.name else "Produto"
        size = f" ({item.size.name})" if item.size and item.size.name else ""
        crust = f" - Borda {item.crust.name}" if item.crust and item.crust.name else ""
        lines.append("")
        lines.append(f"{index}. {name}{size}{crust}")
        lines.append(f"   Qtd: {item.quantity} x {format_money(item.unit_price)}")
        if item.note:
            lines.append(f"   📝 {item.note}")

    lines.append("")
    lines.append("━━━━━━━━━━━━━━━━━━")
    lines.append(f"*Subtotal:* {format_money(order.subtotal)}")
    if order.delivery_type == DeliveryType.DELIVERY:
        lines.append(f"*Taxa Entrega:* {format_money(order.delivery_fee)}")
    if order.discount > 0:
        lines.append(f"*Desconto:* -{format_money(order.discount)}")
    lines.append(f"*TOTAL:* {format_money(order.total)}")
    lines.append("")
    lines.append(f"💳 *Pagamento:* {format_payment_method(order.payment_method)}")

    if order.payment_method == PaymentMethod.CASH.value and order.change_for:
        lines.append(f"💵 *Troco para:* {format_money(order.change_for)}")
        lines.append(f"💵 *Troco:* {format_money(order.change_for - order.total)}")

    narrative = status_narrative(order)
    if narrative:
        lines.append("")
        lines.append("━━━ *Acompanhamento* ━━━")
        lines.append("")
        lines.append(narrative)

    lines.append("")
    lines.append("Digite *0* para voltar ao menu principal.")
    return "\n".join(lines)


class TrackingHandler:
    def __init__(self, orders: OrderClient):
        self.orders = orders

    def show_orders(self, session: Session) -> str:
        orders = self.orders.list_for_customer(session.customer.id)[:RECENT_ORDERS]
        if not orders:
            session.flow = None
            session.state = State.MAIN_MENU
            return BotMessages.NO_ORDERS

        session.flow = TrackingFlow(orders=orders)
        session.state = State.TRACK_ORDER

        lines = ["📋 *Seus Últimos Pedidos*", ""]
        for index, order in enumerate(orders, start=1):
            lines.append(
                f"*{index}* - Pedido {format_order_number(order)} - {status_icon(order.status)} {order.status}"
            )
        lines.append("")
        lines.append("Digite o número para ver detalhes ou *0* para voltar.")
        return "\n".join(lines)

    def track_order(self, session: Session, text: str) -> str:
        if text == "0":
            session.flow = None
            session.state = State.MAIN_MENU
            return BotMessages.main_menu()

        flow = session.flow
        listed = flow.orders if isinstance(flow, TrackingFlow) else []
        selected = pick(listed, text)
        if selected is None:
            return BotMessages.INVALID_ORDER

        order = self.orders.get(selected.id)
        if order is None:
            logger.warning(f"⚠️ Order {selected.id} listed for {session.conversation_id} no longer exists")
            return BotMessages.INVALID_ORDER
        return order_details(order)
