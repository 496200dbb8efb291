from decimal import Decimal

import pytest

from pizzabot.models import DeliveryType
from pizzabot.pricing import cart_subtotal, order_total, parse_amount, pizza_unit_price
from pizzabot.state import PizzaItem, ProductItem


class TestPizzaPrice:
    """Testa o preço de pizzas"""

    def test_half_and_half_uses_most_expensive_topping(self, sizes, toppings, crusts):
        """Testa que vale o sabor mais caro mais a borda (42 e 52 com borda 8 = 60)"""
        medium = sizes[1]
        price = pizza_unit_price(medium, [toppings["Calabresa"], toppings["Quatro Queijos"]], crusts["Catupiry"])

        assert price == Decimal("60.00")

    def test_single_topping_without_crust(self, sizes, toppings):
        """Testa uma pizza de um sabor sem borda recheada"""
        assert pizza_unit_price(sizes[0], [toppings["Portuguesa"]]) == Decimal("32.00")

    def test_order_of_toppings_does_not_matter(self, sizes, toppings):
        """Testa que a ordem dos sabores não altera o preço"""
        large = sizes[2]
        first = pizza_unit_price(large, [toppings["Calabresa"], toppings["Quatro Queijos"]])
        second = pizza_unit_price(large, [toppings["Quatro Queijos"], toppings["Calabresa"]])

        assert first == second == Decimal("65.00")

    def test_too_many_toppings(self, sizes, toppings):
        """Testa que o limite de sabores do tamanho é respeitado"""
        with pytest.raises(ValueError):
            pizza_unit_price(sizes[0], [toppings["Calabresa"], toppings["Portuguesa"]])

    def test_no_toppings(self, sizes):
        """Testa que uma pizza precisa de pelo menos um sabor"""
        with pytest.raises(ValueError):
            pizza_unit_price(sizes[0], [])


class TestTotals:
    """Testa subtotal e total do pedido"""

    def test_cart_subtotal_counts_quantities(self, sizes, toppings):
        """Testa que o subtotal soma preço vezes quantidade"""
        cart = [
            PizzaItem(size=sizes[2], toppings=[toppings["Calabresa"]], unit_price=Decimal("55.00")),
            ProductItem(product=toppings["Coca-Cola 2L"], unit_price=Decimal("14.00"), quantity=2),
            ProductItem(product=toppings["Guaraná Lata"], unit_price=Decimal("6.00")),
        ]

        assert cart_subtotal(cart) == Decimal("89.00")
        assert cart_subtotal([]) == Decimal("0")

    def test_delivery_adds_fee(self):
        """Testa que a entrega soma a taxa (94 + 6 = 100)"""
        assert order_total(Decimal("94"), Decimal("6"), DeliveryType.DELIVERY) == Decimal("100")

    def test_pickup_ignores_fee(self):
        """Testa que a retirada não cobra taxa"""
        assert order_total(Decimal("94"), Decimal("6"), DeliveryType.PICKUP) == Decimal("94")


class TestParseAmount:
    """Testa a leitura de valores digitados"""

    @pytest.mark.parametrize("text, expected", [
        ("50", Decimal("50")),
        ("50,00", Decimal("50.00")),
        ("R$ 100,50", Decimal("100.50")),
        ("r$50.5", Decimal("50.5")),
        ("1.000,00", Decimal("1000.00")),
        ("0", Decimal("0")),
    ])
    def test_valid_amounts(self, text, expected):
        """Testa formatos aceitos"""
        assert parse_amount(text) == expected

    @pytest.mark.parametrize("text", ["", "cem", "-10", "NaN", "R$", "1e999999999", "Infinity", "²", "12345678", "50,123"])
    def test_invalid_amounts(self, text):
        """Testa que textos inválidos não viram valores"""
        assert parse_amount(text) is None
