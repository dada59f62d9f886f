import json

import httpx
import pytest
from jose import jwt

from conftest import API_BASE, Recorder
from stockpos.api import ApiError, AuthError, HttpClient, RemoteApi, TokenStore, UnauthorizedError
from stockpos.schemas.remote import ProductPayload, SaleDto, SaleProductDto

pytestmark = pytest.mark.anyio


def _token(**claims):
    return jwt.encode({"sub": "ana@loja.com", **claims}, "test-secret", algorithm="HS256")


def _api(recorder, tokens=None):
    return RemoteApi(HttpClient(API_BASE, tokens or TokenStore(), transport=recorder.transport))


def _logged_in_tokens(tmp_path, domain="ptdm"):
    tokens = TokenStore(str(tmp_path / "auth.json"))
    tokens.set_domain(domain)
    tokens.set_token(_token())
    tokens.set_refresh_token("refresh-1")
    return tokens


async def test_login_stores_tokens_and_sends_tenant(tmp_path):
    access = _token(tenant="ptdm")
    recorder = Recorder(httpx.Response(200, json={"accessToken": access, "refreshToken": "r1"}))
    tokens = TokenStore(str(tmp_path / "auth.json"))
    api = _api(recorder, tokens)

    result = await api.auth.login("ana@loja.com", "s3cret", "ptdm")

    assert result.access_token == access
    assert api.auth.is_authenticated()
    request = recorder.requests[0]
    assert str(request.url) == f"{API_BASE}/ptdm/login/authenticate"
    assert json.loads(request.content) == {"email": "ana@loja.com", "password": "s3cret", "tenant": "ptdm"}
    assert "authorization" not in request.headers

    restored = TokenStore(str(tmp_path / "auth.json"))
    restored.initialize()
    assert restored.access_token == access
    assert restored.refresh_token == "r1"
    assert restored.domain == "ptdm"


async def test_login_with_invalid_credentials(tmp_path):
    recorder = Recorder(httpx.Response(401, text="Invalid credentials"))
    tokens = TokenStore(str(tmp_path / "auth.json"))
    api = _api(recorder, tokens)
    fired = []
    api.on_unauthorized(lambda: fired.append(True))

    with pytest.raises(UnauthorizedError):
        await api.auth.login("ana@loja.com", "wrong", "ptdm")

    assert not api.auth.is_authenticated()
    assert api.auth.get_token() is None
    assert "@app:accessToken" not in json.loads((tmp_path / "auth.json").read_text())
    assert fired == []


async def test_login_response_without_tokens_is_not_stored():
    recorder = Recorder(httpx.Response(200, json={"accessToken": "only-access"}))
    api = _api(recorder)

    result = await api.auth.login("ana@loja.com", "x", "ptdm")

    assert result.refresh_token is None
    assert not api.auth.is_authenticated()


async def test_401_clears_session_and_fires_callback_once(tmp_path):
    recorder = Recorder(httpx.Response(401, text="expired"))
    tokens = _logged_in_tokens(tmp_path)
    api = _api(recorder, tokens)
    fired = []
    api.on_unauthorized(lambda: fired.append(True))

    with pytest.raises(UnauthorizedError) as exc:
        await api.products.get_products()
    assert exc.value.status_code == 401
    assert recorder.requests[0].headers["authorization"].startswith("Bearer ")

    with pytest.raises(UnauthorizedError):
        await api.categories.list()

    assert fired == [True]
    assert tokens.access_token is None and tokens.refresh_token is None and tokens.domain is None
    assert "authorization" not in recorder.requests[1].headers
    assert not api.auth.is_authenticated()


async def test_error_status_raises_api_error():
    recorder = Recorder(httpx.Response(500, text="boom"))
    api = _api(recorder)

    with pytest.raises(ApiError) as exc:
        await api.sales.get_sale("s1")

    assert exc.value.status_code == 500
    assert exc.value.body == "boom"
    assert not isinstance(exc.value, UnauthorizedError)


async def test_network_failure_raises_api_error():
    recorder = Recorder(httpx.ConnectError("unreachable"))
    api = _api(recorder)

    with pytest.raises(ApiError) as exc:
        await api.products.get_product("p1")
    assert exc.value.status_code is None


async def test_tenant_falls_back_to_token_claim():
    recorder = Recorder(httpx.Response(200, json={"id": "p1", "description": "Widget"}))
    tokens = TokenStore()
    tokens.set_token(_token(tenant="loja9"))
    api = _api(recorder, tokens)

    product = await api.products.get_product("p1")

    assert product.id == "p1"
    assert api.auth.tenant == "loja9"
    assert str(recorder.requests[0].url) == f"{API_BASE}/loja9/product/p1"


async def test_list_products_sends_only_set_filters(tmp_path):
    recorder = Recorder(httpx.Response(200, json={
        "data": [{"id": "p1", "description": "Widget", "barcodes": ["111", "112"], "isActive": True}],
        "totalCount": 1,
    }))
    api = _api(recorder, _logged_in_tokens(tmp_path))

    page = await api.products.get_products(description="wid", limit=20, offset=0)

    url = recorder.requests[0].url
    assert url.path == "/api/ptdm/Product/ListProduct"
    assert dict(url.params) == {"description": "wid", "limit": "20"}
    assert page.total_count == 1
    assert page.data[0].barcodes == ["111", "112"]
    assert page.data[0].is_active is True


async def test_search_products_quotes_text():
    recorder = Recorder(httpx.Response(200, json=[]))
    api = _api(recorder)

    assert await api.products.search_products("café 1/2") == []
    assert recorder.requests[0].url.raw_path.decode().endswith("/Product/GetProductByDescOrBarcode/caf%C3%A9%201%2F2")


async def test_create_and_update_product_send_camel_case():
    dto = {"id": "p1", "description": "Widget", "barcodes": ["111"], "categoryId": "c1", "unit": "UN", "price": 10}
    recorder = Recorder(httpx.Response(200, json=dto))
    api = _api(recorder)
    payload = ProductPayload(description="Widget", price=10, cost=5, quantity=3, barcodes=["111"], category_id="c1", unit="UN")

    await api.products.create_product(payload)
    await api.products.update_product("p1", payload)
    await api.products.deactivate_product("p1")

    create, update, delete = recorder.requests
    assert (create.method, create.url.path) == ("POST", "/api/product")
    assert json.loads(create.content)["categoryId"] == "c1"
    assert "isActive" not in json.loads(create.content)
    assert (update.method, update.url.path) == ("PUT", "/api/product/p1")
    assert (delete.method, delete.url.path) == ("DELETE", "/api/product/p1")


async def test_sales_endpoints():
    sale = {
        "id": "s1", "checkoutId": "k1", "cashierId": "c1", "totalValue": 20, "paidValue": 20,
        "changeValue": 0, "overallDiscount": 0, "paymentFormId": "pf1",
        "saleProducts": [{"productId": "p1", "unitPrice": 10, "quantity": 2, "discount": 0}],
    }
    recorder = Recorder(
        httpx.Response(200, json={"data": [sale], "totalCount": 1}),
        httpx.Response(200, json=sale),
        httpx.Response(204),
    )
    api = _api(recorder)

    page = await api.sales.get_sales(limit=10, offset=5, updated_at="2025-01-01")
    created = await api.sales.create_sale(SaleDto(
        checkout_id="k1", cashier_id="c1", total_value=20, paid_value=20, payment_form_id="pf1",
        sale_products=[SaleProductDto(product_id="p1", unit_price=10, quantity=2)],
    ))
    assert await api.sales.delete_sale("s1") is None

    listing, post, delete = recorder.requests
    assert dict(listing.url.params) == {"Limit": "10", "Offset": "5", "UpdatedAt": "2025-01-01"}
    assert page.data[0].sale_products[0].unit_price == 10
    assert json.loads(post.content)["saleProducts"][0]["unitPrice"] == 10
    assert created.id == "s1"
    assert (delete.method, delete.url.path) == ("DELETE", "/api/Sale/s1")


@pytest.mark.parametrize("group,resource,filter_field", [
    ("categories", "Category", "description"),
    ("payment_forms", "PaymentForm", "description"),
    ("cashiers", "Cashier", "name"),
    ("checkouts", "Checkout", "name"),
])
async def test_settings_resources(group, resource, filter_field):
    value_field = "description" if filter_field == "description" else "name"
    item = {"id": "x1", value_field: "Caixa 1", "createdAt": "2025-01-01T00:00:00"}
    recorder = Recorder(
        httpx.Response(200, json={"data": [item], "totalCount": 1}),
        httpx.Response(200, json=item),
        httpx.Response(200, json=item),
        httpx.Response(200, json=item),
        httpx.Response(204),
    )
    endpoint = getattr(_api(recorder), group)

    page = await endpoint.list("Caixa", limit=5)
    await endpoint.get("x1")
    await endpoint.create(**{value_field: "Caixa 1"})
    await endpoint.update("x1", **{value_field: "Caixa 2"})
    await endpoint.delete("x1")

    listing, get, create, update, delete = recorder.requests
    assert listing.url.path == f"/api/{resource}/List{resource}"
    assert dict(listing.url.params) == {filter_field: "Caixa", "limit": "5"}
    assert page.data[0].id == "x1"
    assert get.url.path == f"/api/{resource}/x1"
    assert (create.method, create.url.path) == ("POST", f"/api/{resource}")
    assert json.loads(update.content) == {"id": "x1", value_field: "Caixa 2"}
    assert (delete.method, delete.url.path) == ("DELETE", f"/api/{resource}/x1")


async def test_refresh_token(tmp_path):
    recorder = Recorder(httpx.Response(200, json={"accessToken": "a2", "refreshToken": "r2"}))
    tokens = _logged_in_tokens(tmp_path)
    previous = tokens.access_token
    api = _api(recorder, tokens)

    await api.auth.refresh_token()

    assert json.loads(recorder.requests[0].content) == {"accessToken": previous, "refreshToken": "refresh-1"}
    assert tokens.access_token == "a2"
    assert tokens.refresh_token == "r2"


async def test_refresh_without_tokens():
    api = _api(Recorder())

    with pytest.raises(AuthError):
        await api.auth.refresh_token()


async def test_logout_clears_stored_session(tmp_path):
    tokens = _logged_in_tokens(tmp_path)
    api = _api(Recorder(), tokens)

    api.auth.logout()

    assert not api.auth.is_authenticated()
    assert json.loads((tmp_path / "auth.json").read_text()) == {}


def test_corrupt_token_file_is_ignored(tmp_path):
    path = tmp_path / "auth.json"
    path.write_text("{not json")
    tokens = TokenStore(str(path))

    tokens.initialize()

    assert tokens.access_token is None
