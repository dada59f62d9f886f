# stockpos/api/resources.py
from typing import Any, Generic, Optional, Type, TypeVar

from pydantic import BaseModel

from stockpos.api.client import HttpClient
from stockpos.schemas.remote import Cashier, Category, Checkout, PaymentForm, ResultList

M = TypeVar("M", bound=BaseModel)


class ResourceApi(Generic[M]):
    """CRUD endpoints of a simple settings entity.

    `resource` is the path segment (e.g. "Category"); the list endpoint is
    `/<resource>/List<resource>` filtered by `filter_field`.
    """

    def __init__(self, http: HttpClient, resource: str, model: Type[M], filter_field: str):
        self.http = http
        self.resource = resource
        self.model = model
        self.filter_field = filter_field

    async def list(
        self,
        filter_value: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> ResultList[M]:
        data = await self.http.request(
            "GET",
            f"/{self.resource}/List{self.resource}",
            params={self.filter_field: filter_value, "limit": limit, "offset": offset},
        )
        return ResultList[self.model].model_validate(data or {})

    async def get(self, item_id: str) -> M:
        data = await self.http.request("GET", f"/{self.resource}/{item_id}")
        return self.model.model_validate(data)

    async def create(self, **fields: Any) -> M:
        data = await self.http.request("POST", f"/{self.resource}", json=fields)
        return self.model.model_validate(data)

    async def update(self, item_id: str, **fields: Any) -> M:
        data = await self.http.request(
            "PUT", f"/{self.resource}/{item_id}", json={"id": item_id, **fields}
        )
        return self.model.model_validate(data)

    async def delete(self, item_id: str) -> None:
        await self.http.request("DELETE", f"/{self.resource}/{item_id}")


def category_api(http: HttpClient) -> ResourceApi[Category]:
    return ResourceApi(http, "Category", Category, "description")


def payment_form_api(http: HttpClient) -> ResourceApi[PaymentForm]:
    return ResourceApi(http, "PaymentForm", PaymentForm, "description")


def cashier_api(http: HttpClient) -> ResourceApi[Cashier]:
    return ResourceApi(http, "Cashier", Cashier, "name")


def checkout_api(http: HttpClient) -> ResourceApi[Checkout]:
    return ResourceApi(http, "Checkout", Checkout, "name")
