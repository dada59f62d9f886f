from stockpos.api.auth import AuthApi
from stockpos.api.client import ApiError, AuthError, HttpClient, TokenStore, UnauthorizedError
from stockpos.api.product import ProductApi
from stockpos.api.resources import (
    ResourceApi,
    cashier_api,
    category_api,
    checkout_api,
    payment_form_api,
)
from stockpos.api.sale import SaleApi


class RemoteApi:
    """Every endpoint group of the REST backend over one HttpClient."""

    def __init__(self, http: HttpClient):
        self.http = http
        self.auth = AuthApi(http)
        self.products = ProductApi(http)
        self.sales = SaleApi(http)
        self.categories = category_api(http)
        self.cashiers = cashier_api(http)
        self.checkouts = checkout_api(http)
        self.payment_forms = payment_form_api(http)

    def on_unauthorized(self, callback) -> None:
        self.http.set_unauthorized_handler(callback)


__all__ = [
    "ApiError",
    "AuthApi",
    "AuthError",
    "HttpClient",
    "ProductApi",
    "RemoteApi",
    "ResourceApi",
    "SaleApi",
    "TokenStore",
    "UnauthorizedError",
]
