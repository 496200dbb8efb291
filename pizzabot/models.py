"""
Data models for the pizzeria bot.
These mirror the JSON served by the backend chatbot routes (Portuguese field
names on the wire, English attribute names in code).
"""
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from pizzabot.formatters import normalize_text


class DeliveryType(str, Enum):
    DELIVERY = "entrega"
    PICKUP = "retirada"


class PaymentMethod(str, Enum):
    CASH = "dinheiro"
    CREDIT_CARD = "cartao_credito"
    DEBIT_CARD = "cartao_debito"
    PIX = "pix"


class OrderStatus(str, Enum):
    PENDING = "pendente"
    CONFIRMED = "confirmado"
    PREPARING = "preparando"
    READY = "pronto"
    OUT_FOR_DELIVERY = "saiu_entrega"
    DELIVERED = "entregue"
    CANCELLED = "cancelado"


class ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


def _none_to_list(value: Any) -> Any:
    return [] if value is None else value


class Customer(ApiModel):
    id: int
    name: str = Field(alias="nome")
    phone: str = Field(alias="telefone")
    address: Optional[str] = Field(default=None, alias="endereco")
    neighborhood: Optional[str] = Field(default=None, alias="bairro")
    reference: Optional[str] = Field(default=None, alias="referencia")

    @property
    def has_address(self) -> bool:
        return bool(self.address and self.neighborhood)


class Category(ApiModel):
    id: int
    name: str = Field(alias="nome")
    order: int = Field(default=0, alias="ordem")

    @property
    def is_pizza(self) -> bool:
        return "pizza" in normalize_text(self.name)


class PizzaSize(ApiModel):
    id: int
    name: str = Field(alias="nome")
    slices: int = Field(default=8, alias="fatias")
    max_toppings: int = Field(default=1, alias="max_sabores")


class PizzaPrice(ApiModel):
    size_id: int = Field(alias="tamanho_id")
    price: Decimal = Field(alias="preco")


class ProductPrice(ApiModel):
    price: Decimal = Field(alias="preco")


class Product(ApiModel):
    id: int
    name: str = Field(alias="nome")
    category_id: Optional[int] = Field(default=None, alias="categoria_id")
    is_pizza: bool = False
    active: bool = Field(default=True, alias="ativo")
    size_prices: List[PizzaPrice] = Field(default_factory=list, alias="precos")
    single_price: Optional[ProductPrice] = Field(default=None, alias="preco")

    @field_validator("size_prices", mode="before")
    @classmethod
    def coerce_prices(cls, value: Any) -> Any:
        return _none_to_list(value)

    def price_for_size(self, size_id: int) -> Optional[Decimal]:
        for entry in self.size_prices:
            if entry.size_id == size_id:
                return entry.price
        return None

    @property
    def unit_price(self) -> Decimal:
        """Catalog price of a non-pizza product (first size price as a fallback)."""
        if self.single_price is not None:
            return self.single_price.price
        if self.size_prices:
            return self.size_prices[0].price
        return Decimal("0")


class Crust(ApiModel):
    id: int
    name: str = Field(alias="nome")
    surcharge: Decimal = Field(default=Decimal("0"), alias="preco")

    @property
    def is_stuffed(self) -> bool:
        return self.surcharge > 0 and "sem borda" not in normalize_text(self.name)


class DeliveryFee(ApiModel):
    id: Optional[int] = None
    neighborhood: str = Field(alias="bairro")
    fee: Decimal = Field(alias="taxa")
    estimated_minutes: Optional[int] = Field(default=None, alias="tempo_estimado")


# =============================================================================
# Orders
# =============================================================================

class NamedRef(ApiModel):
    id: Optional[int] = None
    name: Optional[str] = Field(default=None, alias="nome")


class OrderItemDetail(ApiModel):
    id: Optional[int] = None
    product: Optional[NamedRef] = Field(default=None, alias="produto")
    size: Optional[NamedRef] = Field(default=None, alias="tamanho")
    crust: Optional[NamedRef] = Field(default=None, alias="borda")
    quantity: int = Field(default=1, alias="quantidade")
    unit_price: Decimal = Field(default=Decimal("0"), alias="preco_unitario")
    subtotal: Optional[Decimal] = None
    note: Optional[str] = Field(default=None, alias="observacao")


class Order(ApiModel):
    id: int
    number: Optional[str] = Field(default=None, alias="numero_pedido")
    status: str = OrderStatus.PENDING.value
    delivery_type: Optional[DeliveryType] = Field(default=None, alias="tipo_entrega")
    payment_method: Optional[str] = Field(default=None, alias="forma_pagamento")
    change_for: Optional[Decimal] = Field(default=None, alias="troco_para")
    delivery_address: Optional[str] = Field(default=None, alias="endereco_entrega")
    subtotal: Decimal = Decimal("0")
    delivery_fee: Decimal = Field(default=Decimal("0"), alias="taxa_entrega")
    discount: Decimal = Field(default=Decimal("0"), alias="desconto")
    total: Decimal = Decimal("0")
    created_at: Optional[str] = None
    items: List[OrderItemDetail] = Field(default_factory=list, alias="itens")
    courier: Optional[NamedRef] = Field(default=None, alias="motoboy")

    @field_validator("items", mode="before")
    @classmethod
    def coerce_items(cls, value: Any) -> Any:
        return _none_to_list(value)

    @model_validator(mode="before")
    @classmethod
    def delivery_type_from_order_type(cls, data: Any) -> Any:
        # The backend stores tipo_pedido ("delivery"/"balcao") and only echoes
        # tipo_entrega on some routes.
        if isinstance(data, dict) and not data.get("tipo_entrega") and data.get("tipo_pedido"):
            data = dict(data)
            data["tipo_entrega"] = (
                DeliveryType.DELIVERY.value if data["tipo_pedido"] == "delivery" else DeliveryType.PICKUP.value
            )
        return data

    @field_validator("discount", "delivery_fee", mode="before")
    @classmethod
    def none_to_zero(cls, value: Any) -> Any:
        return Decimal("0") if value is None else value


class OrderItemRequest(ApiModel):
    product_id: int = Field(alias="produto_id")
    size_id: Optional[int] = Field(default=None, alias="tamanho_id")
    crust_id: Optional[int] = Field(default=None, alias="borda_id")
    quantity: int = Field(default=1, alias="quantidade")
    unit_price: Decimal = Field(alias="preco_unitario")
    note: Optional[str] = Field(default=None, alias="observacao")


class OrderRequest(ApiModel):
    customer_id: int = Field(alias="cliente_id")
    delivery_type: DeliveryType = Field(alias="tipo_entrega")
    payment_method: PaymentMethod = Field(alias="forma_pagamento")
    change_for: Optional[Decimal] = Field(default=None, alias="troco_para")
    delivery_address: Optional[str] = Field(default=None, alias="endereco_entrega")
    subtotal: Decimal
    delivery_fee: Decimal = Field(alias="taxa_entrega")
    total: Decimal
    items: List[OrderItemRequest] = Field(alias="itens")
    phone: Optional[str] = Field(default=None, alias="telefone")

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
