from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
import requests

from conftest import PHONE
from pizzabot.exceptions import BackendError
from pizzabot.models import DeliveryType, OrderItemRequest, OrderRequest, PaymentMethod
from pizzabot.services.api import BackendAPI, CatalogClient, CustomerDirectory, OrderClient


def response(status_code, body=None):
    mock = MagicMock()
    mock.status_code = status_code
    mock.ok = 200 <= status_code < 400
    mock.text = "" if body is None else str(body)
    mock.json.return_value = body
    return mock


class TestBackendAPI:
    """Testa o cliente HTTP do backend"""

    @pytest.fixture
    def backend(self):
        return BackendAPI(base_url="http://backend:3001/api/chatbot/", timeout=5, retries=0)

    def test_get_returns_json(self, backend):
        """Testa uma chamada bem-sucedida com timeout fixo"""
        with patch.object(backend.session, "request", return_value=response(200, [{"id": 1}])) as request:
            assert backend.get("/categorias") == [{"id": 1}]

        request.assert_called_once_with("GET", "http://backend:3001/api/chatbot/categorias", timeout=5)

    def test_allowed_not_found_returns_none(self, backend):
        """Testa que 404 em buscas é um resultado normal"""
        with patch.object(backend.session, "request", return_value=response(404)):
            assert backend.get("/clientes/telefone/1", allow_not_found=True) is None

    def test_not_found_raises_when_not_allowed(self, backend):
        """Testa que 404 em listagens é erro"""
        with patch.object(backend.session, "request", return_value=response(404)):
            with pytest.raises(BackendError) as error:
                backend.get("/categorias")
        assert error.value.status_code == 404

    def test_server_error_raises(self, backend):
        """Testa que respostas 5xx viram BackendError"""
        with patch.object(backend.session, "request", return_value=response(500, {"error": "boom"})):
            with pytest.raises(BackendError) as error:
                backend.post("/pedidos", {})
        assert error.value.status_code == 500

    def test_network_error_raises(self, backend):
        """Testa que falhas de rede viram BackendError"""
        with patch.object(backend.session, "request", side_effect=requests.exceptions.Timeout("timeout")):
            with pytest.raises(BackendError):
                backend.get("/tamanhos")

    def test_invalid_json_raises(self, backend):
        """Testa que um corpo que não é JSON vira BackendError"""
        bad = response(200)
        bad.json.side_effect = ValueError("no json")
        with patch.object(backend.session, "request", return_value=bad):
            with pytest.raises(BackendError):
                backend.get("/bordas")


class TestCatalogClient:
    """Testa a leitura do cardápio"""

    def test_lists_are_parsed(self, catalog):
        """Testa que as listas do backend viram modelos"""
        categories = catalog.list_categories()
        sizes = catalog.list_sizes()
        crusts = catalog.list_crusts()

        assert [c.name for c in categories] == ["Pizzas", "Bebidas"]
        assert categories[0].is_pizza and not categories[1].is_pizza
        assert sizes[2].max_toppings == 3
        assert [c.name for c in crusts if c.is_stuffed] == ["Catupiry", "Cheddar"]

    def test_products_by_category(self, catalog, api):
        """Testa o filtro por categoria e os preços por tamanho"""
        pizzas = catalog.list_products(1)
        drinks = catalog.list_products(2)

        assert pizzas[0].price_for_size(2) == Decimal("42.00")
        assert pizzas[0].price_for_size(99) is None
        assert drinks[0].unit_price == Decimal("14.00")

    def test_fee_for_neighborhood(self, catalog, api):
        """Testa a busca de taxa pelo nome do bairro"""
        assert catalog.fee_for_neighborhood("Jardim Brasil").fee == Decimal("8.00")
        assert catalog.fee_for_neighborhood("Lugar Nenhum") is None
        assert ("GET", "/taxas/bairro/Jardim%20Brasil") in api.calls


class TestCustomerDirectory:
    """Testa o cadastro de clientes"""

    def test_find_normalizes_phone(self, customers, registered):
        """Testa que a busca aceita o número com código do país"""
        found = customers.find_by_phone("55" + PHONE)

        assert found.id == registered.id
        assert found.has_address

    def test_register_is_idempotent(self, customers, api):
        """Testa que cadastrar duas vezes não duplica o cliente"""
        first = customers.register("Maria", PHONE)
        second = customers.register("Maria Silva", "55" + PHONE)

        assert first.id == second.id
        assert len(api.customers) == 1

    def test_register_completes_missing_address(self, customers, api):
        """Testa que o cadastro completa o endereço de um cliente existente"""
        customers.create("Maria", PHONE)

        updated = customers.register("Maria", PHONE, "Rua das Flores, 10", "Centro")

        assert updated.address == "Rua das Flores, 10"
        assert ("PUT", "/clientes/1") in api.calls

    def test_register_keeps_existing_address(self, customers, api, registered):
        """Testa que um endereço já cadastrado não é sobrescrito"""
        customers.register("Maria", PHONE, "Outra Rua, 5", "Jardim Brasil")

        assert api.customers[registered.id]["bairro"] == "Centro"
        assert not any(method == "PUT" for method, _ in api.calls)


class TestOrderClient:
    """Testa o envio e a leitura de pedidos"""

    def test_submit_then_read_back(self, orders, api, registered):
        """Testa que o pedido enviado pode ser lido de volta"""
        request = OrderRequest(
            customer_id=registered.id,
            delivery_type=DeliveryType.DELIVERY,
            payment_method=PaymentMethod.CASH,
            change_for=Decimal("50"),
            delivery_address="Rua das Flores, 10, Centro",
            subtotal=Decimal("20.00"),
            delivery_fee=Decimal("6.00"),
            total=Decimal("26.00"),
            items=[OrderItemRequest(product_id=20, unit_price=Decimal("14.00")),
                   OrderItemRequest(product_id=21, unit_price=Decimal("6.00"))],
            phone=PHONE,
        )

        created = orders.submit(request)
        stored = orders.get(created.id)

        assert stored.total == Decimal("26.00")
        assert stored.delivery_type == DeliveryType.DELIVERY
        assert [item.product.name for item in stored.items] == ["Coca-Cola 2L", "Guaraná Lata"]
        assert orders.list_for_customer(registered.id)[0].id == created.id
        assert orders.get(999) is None

    def test_payload_uses_backend_field_names(self):
        """Testa que o corpo enviado usa os nomes de campo do backend"""
        payload = OrderRequest(
            customer_id=1,
            delivery_type=DeliveryType.PICKUP,
            payment_method=PaymentMethod.PIX,
            subtotal=Decimal("14"),
            delivery_fee=Decimal("0"),
            total=Decimal("14"),
            items=[OrderItemRequest(product_id=20, unit_price=Decimal("14"))],
        ).to_payload()

        assert payload["cliente_id"] == 1
        assert payload["tipo_entrega"] == "retirada"
        assert payload["forma_pagamento"] == "pix"
        assert payload["itens"][0]["produto_id"] == 20
        assert payload["itens"][0]["quantidade"] == 1
