# stockpos/schemas/sale.py
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

SalePeriod = Literal["day", "week", "month"]


# One cart line; negative quantities are treated as zero and skipped
class SaleItem(BaseModel):
    product_id: str = Field(alias="productId")
    quantity: float = Field(1, allow_inf_nan=False)

    model_config = ConfigDict(populate_by_name=True)


class SaleCreate(BaseModel):
    items: List[SaleItem] = Field(..., min_length=1)


class SaleCreated(BaseModel):
    ids: List[str]
    total: float


# Sale row joined with the product it references
class SaleOut(BaseModel):
    id: str
    product_id: str = Field(alias="productId")
    quantity: float
    timestamp: int
    description: str
    barcode: Optional[str] = None
    price: float
    subtotal: float

    model_config = ConfigDict(populate_by_name=True)


class SaleList(BaseModel):
    items: List[SaleOut]
    total: int
    period: Optional[SalePeriod] = None
