# stockpos/api/product.py
from typing import List, Optional
from urllib.parse import quote

from stockpos.api.client import HttpClient
from stockpos.schemas.remote import ProductDto, ProductPayload, ResultList


class ProductApi:
    def __init__(self, http: HttpClient):
        self.http = http

    async def get_products(
        self,
        description: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> ResultList[ProductDto]:
        data = await self.http.request(
            "GET",
            "/Product/ListProduct",
            params={"description": description, "limit": limit, "offset": offset},
        )
        return ResultList[ProductDto].model_validate(data or {})

    # Matches either the description or any of the barcodes
    async def search_products(self, text: str) -> List[ProductDto]:
        data = await self.http.request(
            "GET", f"/Product/GetProductByDescOrBarcode/{quote(text, safe='')}"
        )
        return [ProductDto.model_validate(item) for item in data or []]

    async def get_product(self, product_id: str) -> ProductDto:
        data = await self.http.request("GET", f"/product/{product_id}")
        return ProductDto.model_validate(data)

    async def create_product(self, payload: ProductPayload) -> ProductDto:
        data = await self.http.request("POST", "/product", json=payload.to_wire())
        return ProductDto.model_validate(data)

    async def update_product(self, product_id: str, payload: ProductPayload) -> ProductDto:
        data = await self.http.request("PUT", f"/product/{product_id}", json=payload.to_wire())
        return ProductDto.model_validate(data)

    # The backend keeps the row and flags it inactive
    async def deactivate_product(self, product_id: str) -> None:
        await self.http.request("DELETE", f"/product/{product_id}")
