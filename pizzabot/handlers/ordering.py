"""
Menu browsing and item composition: categories, the pizza builder
(size -> topping count -> toppings -> crust) and simple products.
"""
import logging
from typing import List, Optional

from pizzabot import config
from pizzabot.formatters import format_money, normalize_text
from pizzabot.handlers.base import parse_option, pick
from pizzabot.messages import BotMessages
from pizzabot.models import Category, PizzaSize, Product
from pizzabot.pricing import pizza_unit_price
from pizzabot.services.api import CatalogClient
from pizzabot.state import BrowsingFlow, PizzaFlow, PizzaItem, ProductItem, Session, State

logger = logging.getLogger(__name__)

CATEGORY_EMOJIS = {
    "pizza": "🍕",
    "bebida": "🥤",
    "porc": "🍟",
    "sobremesa": "🍰",
}


def category_emoji(category: Category) -> str:
    name = normalize_text(category.name)
    for key, emoji in CATEGORY_EMOJIS.items():
        if key in name:
            return emoji
    return "📦"


def topping_note(toppings: List[Product]) -> Optional[str]:
    names = " + ".join(topping.name for topping in toppings)
    if len(toppings) == 2:
        return f"Meio a meio: {names}"
    if len(toppings) > 2:
        return f"Sabores: {names}"
    return None


class OrderingHandler:
    def __init__(self, catalog: CatalogClient):
        self.catalog = catalog

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def show_categories(self, session: Session, prefix: str = "") -> str:
        categories = self.catalog.list_categories()
        session.flow = BrowsingFlow(categories=categories)
        session.state = State.SELECT_CATEGORY

        lines = [f"🍕 *Cardápio {config.PIZZERIA_NAME}*", "", "Escolha uma categoria:", ""]
        for index, category in enumerate(categories, start=1):
            lines.append(f"*{index}* - {category_emoji(category)} {category.name}")
        lines.append("")
        lines.append("*0* - Voltar ao menu principal")
        return prefix + "\n".join(lines)

    def select_category(self, session: Session, text: str) -> str:
        if text == "0":
            session.flow = None
            session.state = State.MAIN_MENU
            return BotMessages.main_menu()

        flow = session.flow
        if not isinstance(flow, BrowsingFlow) or not flow.categories:
            return self.show_categories(session)

        category = pick(flow.categories, text)
        if category is None:
            return BotMessages.INVALID_CATEGORY

        logger.info(f"📂 {session.conversation_id} chose category {category.name}")
        if category.is_pizza:
            return self.show_sizes(session, category)
        return self.show_products(session, category)

    # ------------------------------------------------------------------
    # Pizza builder
    # ------------------------------------------------------------------

    def show_sizes(self, session: Session, category: Category) -> str:
        sizes = self.catalog.list_sizes()
        session.flow = PizzaFlow(category=category, sizes=sizes)
        session.state = State.SELECT_SIZE

        lines = ["🍕 *Escolha o Tamanho da Pizza*", ""]
        for index, size in enumerate(sizes, start=1):
            lines.append(f"*{index}* - {size.name} ({size.slices} fatias) - até {size.max_toppings} sabor(es)")
        lines.append("")
        lines.append("*0* - Voltar às categorias")
        return "\n".join(lines)

    def select_size(self, session: Session, text: str) -> str:
        flow = session.flow
        if text == "0" or not isinstance(flow, PizzaFlow):
            return self.show_categories(session)

        size = pick(flow.sizes, text)
        if size is None:
            return BotMessages.INVALID_SIZE

        flow.size = size
        flow.toppings = []
        if size.max_toppings > 1:
            session.state = State.SELECT_TOPPING_COUNT
            return self.topping_count_prompt(size)

        flow.topping_count = 1
        return self.show_toppings(session)

    @staticmethod
    def topping_count_prompt(size: PizzaSize) -> str:
        lines = [f"🍕 *Pizza {size.name}* ({size.slices} fatias)", "", "Quantos sabores você deseja?", ""]
        for count in range(1, size.max_toppings + 1):
            if count == 1:
                lines.append("*1* - 1 sabor (pizza inteira)")
            elif count == 2:
                lines.append("*2* - 2 sabores (meio a meio)")
            else:
                lines.append(f"*{count}* - {count} sabores")
        lines.append("")
        lines.append("*0* - Voltar aos tamanhos")
        return "\n".join(lines)

    def select_topping_count(self, session: Session, text: str) -> str:
        flow = session.flow
        if not isinstance(flow, PizzaFlow) or flow.size is None:
            return self.show_categories(session)
        if text == "0":
            return self.show_sizes(session, flow.category)

        count = parse_option(text)
        if count is None or not 1 <= count <= flow.size.max_toppings:
            return f"❌ Opção inválida. Digite um número de 1 a {flow.size.max_toppings} ou *0* para voltar."

        flow.topping_count = count
        return self.show_toppings(session)

    def show_toppings(self, session: Session) -> str:
        flow = session.flow
        products = self.catalog.list_products(flow.category.id)
        flow.available_toppings = [product for product in products if product.is_pizza and product.active]
        session.state = State.SELECT_TOPPING
        return self.topping_menu(flow)

    @staticmethod
    def topping_menu(flow: PizzaFlow) -> str:
        chosen = {topping.id for topping in flow.toppings}
        lines = [
            f"🍕 *Sabores de Pizza* ({flow.size.name})",
            f"Escolhendo sabor {len(flow.toppings) + 1} de {flow.topping_count}",
            "",
        ]
        if not flow.available_toppings:
            lines.append("Nenhum sabor disponível no momento. 😕")
        for index, topping in enumerate(flow.available_toppings, start=1):
            price = topping.price_for_size(flow.size.id)
            label = f"*{index}* - {topping.name}"
            if price is not None:
                label += f" - {format_money(price)}"
            if topping.id in chosen:
                label += " ✅"
            lines.append(label)
        if flow.topping_count > 1:
            lines.append("")
            lines.append("_Na pizza com mais de um sabor vale o preço do sabor mais caro._")
        lines.append("")
        lines.append("*0* - Voltar")
        return "\n".join(lines)

    def select_topping(self, session: Session, text: str) -> str:
        flow = session.flow
        if not isinstance(flow, PizzaFlow) or flow.size is None:
            return self.show_categories(session)

        if text == "0":
            flow.toppings = []
            if flow.size.max_toppings > 1:
                session.state = State.SELECT_TOPPING_COUNT
                return self.topping_count_prompt(flow.size)
            return self.show_sizes(session, flow.category)

        topping = pick(flow.available_toppings, text)
        if topping is None:
            return BotMessages.INVALID_TOPPING
        if any(chosen.id == topping.id for chosen in flow.toppings):
            return f"❌ *{topping.name}* já foi escolhido. Escolha um sabor diferente ou *0* para voltar."

        flow.toppings.append(topping)
        if len(flow.toppings) < flow.topping_count:
            return (
                f"✅ *{topping.name}* adicionado!\n\n"
                f"Sabor {len(flow.toppings)} de {flow.topping_count} escolhido.\n\n"
                + self.topping_menu(flow)
            )
        return self.show_crusts(session)

    def show_crusts(self, session: Session) -> str:
        flow = session.flow
        flow.crusts = [crust for crust in self.catalog.list_crusts() if crust.is_stuffed]
        session.state = State.SELECT_CRUST

        lines = ["🧀 *Escolha a Borda*", "", "*1* - Tradicional (sem borda recheada) - Grátis"]
        for index, crust in enumerate(flow.crusts, start=2):
            lines.append(f"*{index}* - {crust.name} - +{format_money(crust.surcharge)}")
        return "\n".join(lines)

    def select_crust(self, session: Session, text: str) -> str:
        flow = session.flow
        if not isinstance(flow, PizzaFlow) or flow.size is None or not flow.toppings:
            return self.show_categories(session)

        if text == "1":
            crust = None
        else:
            crust = pick(flow.crusts, text, first=2)
            if crust is None:
                return BotMessages.INVALID_CRUST

        item = PizzaItem(
            size=flow.size,
            toppings=list(flow.toppings),
            crust=crust,
            unit_price=pizza_unit_price(flow.size, flow.toppings, crust),
            note=topping_note(flow.toppings),
        )
        session.cart.append(item)
        session.flow = None
        session.state = State.ITEM_ADDED
        logger.info(f"🛒 {session.conversation_id} added {item.name} ({item.unit_price})")

        return f"""✅ *Pizza adicionada ao carrinho!*

🍕 {item.size.name} - {item.toppings_label}
🧀 {item.crust_label}
💰 {format_money(item.unit_price)}

{BotMessages.ITEM_ADDED_OPTIONS}"""

    # ------------------------------------------------------------------
    # Simple products
    # ------------------------------------------------------------------

    def show_products(self, session: Session, category: Category) -> str:
        products = [product for product in self.catalog.list_products(category.id) if product.active]
        session.flow = BrowsingFlow(category=category, products=products)
        session.state = State.SELECT_PRODUCT

        lines = [f"📦 *{category.name}*", ""]
        if not products:
            lines.append("Nenhum produto disponível no momento. 😕")
        for index, product in enumerate(products, start=1):
            lines.append(f"*{index}* - {product.name} - {format_money(product.unit_price)}")
        lines.append("")
        lines.append("*0* - Voltar às categorias")
        return "\n".join(lines)

    def select_product(self, session: Session, text: str) -> str:
        flow = session.flow
        if text == "0" or not isinstance(flow, BrowsingFlow):
            return self.show_categories(session)

        product = pick(flow.products, text)
        if product is None:
            return BotMessages.INVALID_PRODUCT

        item = ProductItem(product=product, unit_price=product.unit_price)
        session.cart.append(item)
        session.flow = None
        session.state = State.ITEM_ADDED
        logger.info(f"🛒 {session.conversation_id} added {item.name} ({item.unit_price})")

        return f"""✅ *{product.name}* adicionado ao carrinho!

Preço: {format_money(item.unit_price)}

{BotMessages.ITEM_ADDED_OPTIONS}"""
