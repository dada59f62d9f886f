# stockpos/schemas/product.py
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


# Shared attributes of a product row in the local store
class ProductBase(BaseModel):
    description: str = Field(..., description="Descrição do produto")
    cost: float = Field(0, ge=0, allow_inf_nan=False)
    price: float = Field(0, ge=0, allow_inf_nan=False)
    quantity: float = Field(0, ge=0, allow_inf_nan=False, description="Estoque atual")
    barcode: str = Field(..., description="Código de barras principal")
    image: Optional[str] = None

    @field_validator("description", "barcode")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value


# Schema for creating a product
class ProductCreate(ProductBase):
    pass


# Schema for editing a product; the row is replaced as a whole
class ProductUpdate(ProductBase):
    pass


# Stored row as returned to clients; older rows may miss cells
class ProductOut(BaseModel):
    id: str
    description: str = ""
    cost: float = 0
    price: float = 0
    quantity: float = 0
    barcode: str = ""
    image: Optional[str] = None
    ind_active: bool = True


class ProductList(BaseModel):
    items: List[ProductOut]
    total: int
