from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from pizzabot.formatters import (format_datetime, format_delivery_type, format_money,
                                 format_order_number, format_payment_method, format_phone, format_status,
                                 normalize_phone, normalize_text, status_icon)
from pizzabot.models import DeliveryType


class TestMoney:
    """Testa a formatação de valores"""

    @pytest.mark.parametrize("value, expected", [
        (Decimal("60"), "R$ 60,00"),
        (Decimal("1234.5"), "R$ 1234,50"),
        ("8.00", "R$ 8,00"),
        (0, "R$ 0,00"),
        (None, "R$ 0,00"),
        ("abc", "R$ 0,00"),
    ])
    def test_format_money(self, value, expected):
        """Testa valores em reais com vírgula decimal"""
        assert format_money(value) == expected


class TestPhone:
    """Testa telefones"""

    def test_format_mobile_and_landline(self):
        """Testa celular com 11 dígitos e fixo com 10"""
        assert format_phone("77988197145") == "(77) 98819-7145"
        assert format_phone("7732101234") == "(77) 3210-1234"
        assert format_phone("12345") == "12345"

    @pytest.mark.parametrize("raw, expected", [
        ("5577988197145", "77988197145"),
        ("+55 (77) 98819-7145", "77988197145"),
        ("77988197145", "77988197145"),
        # area code 55 must not be mistaken for the country code
        ("55988197145", "55988197145"),
        ("", ""),
    ])
    def test_normalize_phone(self, raw, expected):
        """Testa a remoção do código do país"""
        assert normalize_phone(raw) == expected


class TestLabels:
    """Testa rótulos de status, pagamento e entrega"""

    def test_status(self):
        """Testa rótulos e ícones de status conhecidos e desconhecidos"""
        assert format_status("saiu_entrega") == "🛵 Saiu para Entrega"
        assert status_icon("pendente") == "🆕"
        assert status_icon("em_transito") == "❓"
        assert format_status("em_transito") == "em_transito"

    def test_payment_method(self):
        """Testa rótulos das formas de pagamento"""
        assert format_payment_method("pix") == "📱 PIX"
        assert format_payment_method("cheque") == "cheque"
        assert format_payment_method(None) == "-"

    def test_delivery_type(self):
        """Testa rótulos do tipo de entrega a partir do enum ou do texto"""
        assert format_delivery_type(DeliveryType.DELIVERY) == "🛵 Entrega"
        assert format_delivery_type("retirada") == "🏪 Retirada no balcão"


class TestOrderNumber:
    """Testa a exibição do número do pedido"""

    def test_uses_backend_number(self):
        """Testa que o numero_pedido do backend é usado quando existe"""
        order = MagicMock(number="2501010042", id=42)
        assert format_order_number(order) == "#2501010042"

    def test_falls_back_to_padded_id(self):
        """Testa que sem numero_pedido o id é exibido com zeros à esquerda"""
        order = MagicMock(number=None, id=7)
        assert format_order_number(order) == "#0007"
        assert format_order_number(12345) == "#12345"


class TestMisc:
    """Testa datas e textos"""

    def test_format_datetime_in_local_time(self):
        """Testa a conversão de UTC para o horário de Brasília"""
        assert format_datetime("2025-01-01T22:30:00Z") == "01/01/2025 19:30"
        assert format_datetime(None) == "-"
        assert format_datetime("ontem") == "ontem"

    def test_normalize_text(self):
        """Testa a remoção de acentos e maiúsculas"""
        assert normalize_text(" Porções ") == "porcoes"
