import copy
from urllib.parse import unquote

import pytest

from pizzabot.exceptions import BackendError
from pizzabot.formatters import normalize_text
from pizzabot.models import Crust, PizzaSize, Product
from pizzabot.services.api import CatalogClient, CustomerDirectory, OrderClient
from pizzabot.sessions import InMemorySessionStore
from pizzabot.state import Session, State
from pizzabot.workflow import Workflow

PHONE = "77988197145"

CATEGORIES = [
    {"id": 1, "nome": "Pizzas", "ordem": 1},
    {"id": 2, "nome": "Bebidas", "ordem": 2},
]

SIZES = [
    {"id": 1, "nome": "Pequena", "fatias": 4, "max_sabores": 1},
    {"id": 2, "nome": "Média", "fatias": 6, "max_sabores": 2},
    {"id": 3, "nome": "Grande", "fatias": 8, "max_sabores": 3},
]


def pizza(product_id, name, small, medium, large, active=True):
    return {
        "id": product_id,
        "nome": name,
        "categoria_id": 1,
        "is_pizza": True,
        "ativo": active,
        "precos": [
            {"tamanho_id": 1, "preco": small},
            {"tamanho_id": 2, "preco": medium},
            {"tamanho_id": 3, "preco": large},
        ],
    }


PRODUCTS = [
    pizza(10, "Calabresa", "30.00", "42.00", "55.00"),
    pizza(11, "Quatro Queijos", "35.00", "52.00", "65.00"),
    pizza(12, "Portuguesa", "32.00", "45.00", "60.00"),
    pizza(13, "Sabor Fora do Cardápio", "1.00", "1.00", "1.00", active=False),
    {"id": 20, "nome": "Coca-Cola 2L", "categoria_id": 2, "preco": {"preco": "14.00"}},
    {"id": 21, "nome": "Guaraná Lata", "categoria_id": 2, "preco": {"preco": "6.00"}},
]

CRUSTS = [
    {"id": 1, "nome": "Sem borda", "preco": "0.00"},
    {"id": 2, "nome": "Catupiry", "preco": "8.00"},
    {"id": 3, "nome": "Cheddar", "preco": "10.00"},
]

FEES = [
    {"id": 1, "bairro": "Centro", "taxa": "6.00", "tempo_estimado": 30},
    {"id": 2, "bairro": "Jardim Brasil", "taxa": "8.00", "tempo_estimado": 45},
]


class FakeBackendAPI:
    """In-memory stand-in for the backend chatbot routes, behind the same get/post/put surface."""

    def __init__(self):
        self.categories = copy.deepcopy(CATEGORIES)
        self.sizes = copy.deepcopy(SIZES)
        self.products = copy.deepcopy(PRODUCTS)
        self.crusts = copy.deepcopy(CRUSTS)
        self.fees = copy.deepcopy(FEES)
        self.customers = {}
        self.orders = {}
        self.calls = []
        self.failures = set()

    def fail_on(self, method, prefix):
        self.failures.add((method, prefix))

    def recover(self):
        self.failures.clear()

    def _check(self, method, path):
        self.calls.append((method, path))
        for failing_method, prefix in self.failures:
            if failing_method == method and path.startswith(prefix):
                raise BackendError(f"{method} {path} returned HTTP 500", status_code=500)

    def _not_found(self, path, allow_not_found):
        if allow_not_found:
            return None
        raise BackendError(f"GET {path} returned HTTP 404", status_code=404)

    def get(self, path, params=None, allow_not_found=False):
        self._check("GET", path)
        if path == "/categorias":
            return self.categories
        if path == "/produtos":
            category_id = (params or {}).get("categoria_id")
            return [p for p in self.products if category_id is None or p["categoria_id"] == category_id]
        if path == "/tamanhos":
            return self.sizes
        if path == "/bordas":
            return self.crusts
        if path == "/taxas":
            return self.fees
        if path.startswith("/taxas/bairro/"):
            wanted = normalize_text(unquote(path.rsplit("/", 1)[1]))
            for fee in self.fees:
                if normalize_text(fee["bairro"]) == wanted:
                    return fee
            return self._not_found(path, allow_not_found)
        if path.startswith("/clientes/telefone/"):
            phone = path.rsplit("/", 1)[1]
            for customer in self.customers.values():
                if customer["telefone"] == phone:
                    return customer
            return self._not_found(path, allow_not_found)
        if path.startswith("/pedidos/cliente/"):
            customer_id = int(path.rsplit("/", 1)[1])
            rows = [o for o in self.orders.values() if o["cliente_id"] == customer_id]
            return sorted(rows, key=lambda o: o["id"], reverse=True)[:10]
        if path.startswith("/pedidos/"):
            order = self.orders.get(int(path.rsplit("/", 1)[1]))
            return order if order else self._not_found(path, allow_not_found)
        raise AssertionError(f"unexpected GET {path}")

    def post(self, path, data):
        self._check("POST", path)
        if path == "/clientes":
            row = dict(data, id=len(self.customers) + 1)
            self.customers[row["id"]] = row
            return row
        if path == "/pedidos":
            order_id = len(self.orders) + 1
            products = {p["id"]: p for p in self.products}
            sizes = {s["id"]: s for s in self.sizes}
            crusts = {c["id"]: c for c in self.crusts}
            items = []
            for item in data["itens"]:
                items.append(dict(
                    item,
                    produto={"id": item["produto_id"], "nome": products[item["produto_id"]]["nome"]},
                    tamanho=sizes.get(item["tamanho_id"]),
                    borda=crusts.get(item["borda_id"]),
                ))
            row = dict(
                data,
                id=order_id,
                numero_pedido=f"250101{order_id:04d}",
                status="pendente",
                desconto="0.00",
                created_at="2025-01-01T22:30:00.000Z",
                itens=items,
            )
            self.orders[order_id] = row
            return row
        raise AssertionError(f"unexpected POST {path}")

    def put(self, path, data):
        self._check("PUT", path)
        if path.startswith("/clientes/"):
            customer = self.customers[int(path.rsplit("/", 1)[1])]
            customer.update(data)
            return customer
        raise AssertionError(f"unexpected PUT {path}")


class Conversation:
    """Drives a workflow the way the transport does: one session, one text at a time."""

    def __init__(self, workflow, phone=PHONE):
        self.workflow = workflow
        self.session = Session(conversation_id=phone, thread_id=f"55{phone}")
        self.last_reply = None

    def send(self, text):
        self.session, self.last_reply = self.workflow.handle(self.session, text)
        return self.last_reply

    def send_all(self, *texts):
        for text in texts:
            self.send(text)
        return self.last_reply

    @property
    def state(self):
        return self.session.state


@pytest.fixture
def api():
    return FakeBackendAPI()


@pytest.fixture
def catalog(api):
    return CatalogClient(api)


@pytest.fixture
def customers(api):
    return CustomerDirectory(api)


@pytest.fixture
def orders(api):
    return OrderClient(api)


@pytest.fixture
def workflow(catalog, customers, orders):
    return Workflow(catalog, customers, orders)


@pytest.fixture
def chat(workflow):
    """Conversation of a customer the bot has never seen."""
    return Conversation(workflow)


@pytest.fixture
def registered(api, customers):
    """Customer already on file with a delivery address in Centro."""
    return customers.create("Maria", PHONE, "Rua das Flores, 10", "Centro")


@pytest.fixture
def known_chat(workflow, registered):
    """Conversation of a registered customer, already at the main menu."""
    conversation = Conversation(workflow)
    conversation.send("oi")
    assert conversation.state == State.MAIN_MENU
    return conversation


@pytest.fixture
def sizes():
    return [PizzaSize.model_validate(row) for row in SIZES]


@pytest.fixture
def toppings():
    return {row["nome"]: Product.model_validate(row) for row in PRODUCTS}


@pytest.fixture
def crusts():
    return {row["nome"]: Crust.model_validate(row) for row in CRUSTS}


@pytest.fixture
def store():
    return InMemorySessionStore()
