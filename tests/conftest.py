import json

import httpx
import pytest

from stockpos.config import Settings
from stockpos.context import AppContext
from stockpos.schemas.product import ProductCreate
from stockpos.services import inventory
from stockpos.store import TableStore

SYNC_URL = "http://sync.test/sync"
API_BASE = "http://api.test/api"


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        DATABASE_PATH=str(tmp_path / "stock.db"),
        TOKEN_FILE=str(tmp_path / "auth.json"),
        IMAGES_DIR=str(tmp_path / "images"),
        EXPO_PUBLIC_SYNC_URL=SYNC_URL,
        EXPO_PUBLIC_API_BASE=API_BASE,
    )


class Recorder:
    """httpx.MockTransport handler that records requests and replays canned responses."""

    def __init__(self, *responses):
        self.requests = []
        self.responses = list(responses)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            return httpx.Response(200, json={})
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        # Fresh copy: the last canned response may be served several times
        return httpx.Response(response.status_code, headers=response.headers, content=response.content)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def bodies(self):
        return [json.loads(r.content) for r in self.requests]


@pytest.fixture
def sync_recorder():
    return Recorder(httpx.Response(200, json={"ok": True}))


@pytest.fixture
def context(settings, sync_recorder):
    ctx = AppContext(settings, sync_transport=sync_recorder.transport)
    ctx.start()
    yield ctx
    ctx.close()


@pytest.fixture
def store():
    return TableStore()


def widget(**overrides):
    data = {
        "description": "Widget",
        "price": 10,
        "cost": 5,
        "quantity": 100,
        "barcode": "111",
    }
    data.update(overrides)
    return ProductCreate(**data)


@pytest.fixture
def widget_id(store):
    return inventory.create_product(store, widget())
