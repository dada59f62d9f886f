# stockpos/api/sale.py
from typing import Optional

from stockpos.api.client import HttpClient
from stockpos.schemas.remote import ResultList, SaleDto


class SaleApi:
    def __init__(self, http: HttpClient):
        self.http = http

    async def get_sales(
        self,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        updated_at: Optional[str] = None,
    ) -> ResultList[SaleDto]:
        # This endpoint expects PascalCase query parameters
        data = await self.http.request(
            "GET",
            "/Sale/ListSale",
            params={"Limit": limit, "Offset": offset, "UpdatedAt": updated_at},
        )
        return ResultList[SaleDto].model_validate(data or {})

    async def get_sale(self, sale_id: str) -> SaleDto:
        data = await self.http.request("GET", f"/Sale/{sale_id}")
        return SaleDto.model_validate(data)

    async def create_sale(self, sale: SaleDto) -> SaleDto:
        data = await self.http.request("POST", "/Sale", json=sale.to_wire())
        return SaleDto.model_validate(data)

    async def delete_sale(self, sale_id: str) -> None:
        await self.http.request("DELETE", f"/Sale/{sale_id}")
