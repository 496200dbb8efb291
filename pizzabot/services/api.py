"""
HTTP clients for the backend chatbot routes.

Every call is a single round trip with a fixed timeout. A 404 on the
lookup endpoints is a normal "not found" answer; any other failure is
raised as ``BackendError`` for the conversation layer to handle.
"""
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from pizzabot import config
from pizzabot.exceptions import BackendError
from pizzabot.formatters import normalize_phone
from pizzabot.models import (Category, Crust, Customer, DeliveryFee, Order, OrderRequest,
                             PizzaSize, Product)

logger = logging.getLogger(__name__)


class BackendAPI:
    """Shared HTTP session for the backend, with retries on idempotent requests."""

    def __init__(self, base_url: str = None, timeout: float = None, retries: int = None):
        self.base_url = (base_url or config.API_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else config.API_TIMEOUT

        # Setup HTTP session with retries (urllib3 only retries GET/PUT by default, never POST)
        self.session = requests.Session()
        retry_strategy = Retry(
            total=retries if retries is not None else config.API_RETRIES,
            backoff_factor=0.5,
            status_forcelist=[502, 503, 504],
            allowed_methods=["GET"],
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)
        self.session.headers.update({"Content-Type": "application/json"})

    def request(self, method: str, path: str, allow_not_found: bool = False, **kwargs) -> Optional[Any]:
        """
        Make a request to the backend.

        Args:
            method: HTTP method
            path: Path relative to the API base URL
            allow_not_found: Return None instead of raising on 404

        Returns:
            Decoded JSON body, or None for an allowed 404
        """
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            raise BackendError(f"{method} {path} failed: {e}") from e

        if response.status_code == 404 and allow_not_found:
            logger.info(f"🔍 {method} {path} -> not found")
            return None

        if not response.ok:
            raise BackendError(
                f"{method} {path} returned HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise BackendError(f"{method} {path} returned invalid JSON", status_code=response.status_code) from e

    def get(self, path: str, **kwargs) -> Optional[Any]:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, data: Dict[str, Any]) -> Any:
        return self.request("POST", path, json=data)

    def put(self, path: str, data: Dict[str, Any]) -> Any:
        return self.request("PUT", path, json=data)


class CatalogClient:
    """Read-only access to categories, products, sizes, crusts and delivery fees."""

    def __init__(self, api: BackendAPI):
        self.api = api

    def list_categories(self) -> List[Category]:
        return [Category.model_validate(row) for row in self.api.get("/categorias")]

    def list_products(self, category_id: int) -> List[Product]:
        rows = self.api.get("/produtos", params={"categoria_id": category_id})
        return [Product.model_validate(row) for row in rows]

    def list_sizes(self) -> List[PizzaSize]:
        return [PizzaSize.model_validate(row) for row in self.api.get("/tamanhos")]

    def list_crusts(self) -> List[Crust]:
        return [Crust.model_validate(row) for row in self.api.get("/bordas")]

    def list_fees(self) -> List[DeliveryFee]:
        return [DeliveryFee.model_validate(row) for row in self.api.get("/taxas")]

    def fee_for_neighborhood(self, neighborhood: str) -> Optional[DeliveryFee]:
        row = self.api.get(f"/taxas/bairro/{quote(neighborhood, safe='')}", allow_not_found=True)
        return DeliveryFee.model_validate(row) if row else None


class CustomerDirectory:
    """Customer lookup, registration and address updates."""

    def __init__(self, api: BackendAPI, country_code: str = None):
        self.api = api
        self.country_code = country_code if country_code is not None else config.DEFAULT_COUNTRY_CODE

    def find_by_phone(self, phone: str) -> Optional[Customer]:
        digits = normalize_phone(phone, self.country_code)
        row = self.api.get(f"/clientes/telefone/{digits}", allow_not_found=True)
        return Customer.model_validate(row) if row else None

    def create(self, name: str, phone: str, address: Optional[str] = None,
               neighborhood: Optional[str] = None, reference: Optional[str] = None) -> Customer:
        row = self.api.post("/clientes", {
            "nome": name,
            "telefone": normalize_phone(phone, self.country_code),
            "endereco": address,
            "bairro": neighborhood,
            "referencia": reference,
        })
        customer = Customer.model_validate(row)
        logger.info(f"✅ Customer saved: {customer.name} ({customer.phone})")
        return customer

    def update_address(self, customer_id: int, address: str, neighborhood: str) -> Customer:
        row = self.api.put(f"/clientes/{customer_id}", {"endereco": address, "bairro": neighborhood})
        return Customer.model_validate(row)

    def register(self, name: str, phone: str, address: Optional[str] = None,
                 neighborhood: Optional[str] = None) -> Customer:
        """
        Create the customer unless one already exists for this phone.

        An existing record missing an address gets the new one, so repeating
        the registration never produces a second customer.
        """
        existing = self.find_by_phone(phone)
        if existing is None:
            return self.create(name, phone, address, neighborhood)

        logger.info(f"👤 Customer already registered: {existing.name} ({existing.phone})")
        if address and neighborhood and not existing.has_address:
            return self.update_address(existing.id, address, neighborhood)
        return existing


class OrderClient:
    """Order submission and read-back."""

    def __init__(self, api: BackendAPI):
        self.api = api

    def submit(self, order: OrderRequest) -> Order:
        created = Order.model_validate(self.api.post("/pedidos", order.to_payload()))
        logger.info(f"📤 Order {created.number or created.id} created for customer {order.customer_id}")
        return created

    def list_for_customer(self, customer_id: int) -> List[Order]:
        return [Order.model_validate(row) for row in self.api.get(f"/pedidos/cliente/{customer_id}")]

    def get(self, order_id: int) -> Optional[Order]:
        row = self.api.get(f"/pedidos/{order_id}", allow_not_found=True)
        return Order.model_validate(row) if row else None
