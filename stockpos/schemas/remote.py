# stockpos/schemas/remote.py
"""DTOs of the multi-tenant REST backend (camelCase on the wire)."""
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


# Base configuration: snake_case attributes, camelCase JSON
class RemoteBase(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ResultList(RemoteBase, Generic[T]):
    data: List[T] = Field(default_factory=list)
    total_count: int = 0


class TokenDto(RemoteBase):
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None


# ---- Products ----
class ProductCompositionDto(RemoteBase):
    component_product_id: str
    component_product_description: Optional[str] = None
    quantity: float
    component_product_price: Optional[float] = None
    component_product_cost: Optional[float] = None


class ProductPayload(RemoteBase):
    description: str
    cost: float = 0
    price: float = 0
    quantity: float = 0
    barcodes: List[str] = Field(default_factory=list)
    category_id: Optional[str] = None
    unit: Optional[str] = None
    image: Optional[str] = None
    is_active: Optional[bool] = None
    composite: Optional[bool] = None
    component_products: Optional[List[ProductCompositionDto]] = None


class ProductDto(ProductPayload):
    id: str


# ---- Sales ----
class SaleProductDto(RemoteBase):
    sale_id: Optional[str] = None
    product_id: str
    unit_price: float
    quantity: float
    discount: float = 0
    product: Optional[ProductDto] = None


class SaleDto(RemoteBase):
    id: Optional[str] = None
    checkout_id: str
    cashier_id: str
    total_value: float
    paid_value: float
    change_value: float = 0
    overall_discount: float = 0
    payment_form_id: str
    created_at: Optional[str] = None
    sale_products: List[SaleProductDto] = Field(default_factory=list)


# ---- Settings entities ----
class Category(RemoteBase):
    id: str
    description: str
    created_at: Optional[str] = None


class PaymentForm(RemoteBase):
    id: str
    description: str
    created_at: Optional[str] = None


class Cashier(RemoteBase):
    id: str
    name: str
    created_at: Optional[str] = None


class Checkout(RemoteBase):
    id: str
    name: str
    created_at: Optional[str] = None
