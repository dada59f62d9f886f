# stockpos/api/client.py
import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import httpx

from stockpos.utils.token import tenant_from_token

logger = logging.getLogger(__name__)

TOKEN_KEY = "@app:accessToken"
REFRESH_TOKEN_KEY = "@app:refreshToken"
DOMAIN_KEY = "@app:domain"


class ApiError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class UnauthorizedError(ApiError):
    """HTTP 401; credentials have been dropped by the time this is raised."""


class AuthError(Exception):
    pass


class TokenStore:
    """Access token, refresh token and tenant domain, kept in a JSON file."""

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path) if path else None
        self.access_token: Optional[str] = None
        self.refresh_token: Optional[str] = None
        self.domain: Optional[str] = None

    def initialize(self) -> None:
        if self.path is None or not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error(f"Error initializing auth: {e}")
            return
        self.access_token = data.get(TOKEN_KEY)
        self.refresh_token = data.get(REFRESH_TOKEN_KEY)
        self.domain = data.get(DOMAIN_KEY)

    def set_token(self, token: Optional[str]) -> None:
        self.access_token = token
        self._persist()

    def set_refresh_token(self, token: Optional[str]) -> None:
        self.refresh_token = token
        self._persist()

    def set_domain(self, domain: Optional[str]) -> None:
        self.domain = domain
        self._persist()

    def clear(self) -> None:
        self.access_token = None
        self.refresh_token = None
        self.domain = None
        self._persist()

    def _persist(self) -> None:
        if self.path is None:
            return
        data = {
            key: value
            for key, value in (
                (TOKEN_KEY, self.access_token),
                (REFRESH_TOKEN_KEY, self.refresh_token),
                (DOMAIN_KEY, self.domain),
            )
            if value
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data), encoding="utf-8")


class HttpClient:
    def __init__(
        self,
        base_url: str,
        tokens: TokenStore,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.tokens = tokens
        self.timeout = timeout
        self._transport = transport
        self._on_unauthorized: Optional[Callable[[], None]] = None

    def set_unauthorized_handler(self, callback: Optional[Callable[[], None]]) -> None:
        self._on_unauthorized = callback

    @property
    def tenant(self) -> Optional[str]:
        # Explicit domain first, then the tenant claim of the session token
        return self.tokens.domain or tenant_from_token(self.tokens.access_token)

    def url_for(self, path: str) -> str:
        tenant = self.tenant
        full_path = f"/{tenant}{path}" if tenant else path
        return f"{self.base_url}{full_path}"

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        headers = {"Content-Type": "application/json"}
        if self.tokens.access_token:
            headers["Authorization"] = f"Bearer {self.tokens.access_token}"

        url = self.url_for(path)
        query = {key: value for key, value in (params or {}).items() if value}
        logger.info(f"[HTTP] {method} {url}")

        async with httpx.AsyncClient(
            transport=self._transport, timeout=self.timeout, follow_redirects=True
        ) as client:
            try:
                response = await client.request(
                    method, url, json=json, params=query or None, headers=headers
                )
            except httpx.RequestError as e:
                logger.error(f"[HTTP] {method} {url} failed: {e}")
                raise ApiError(f"Network error: {e}") from e

        if response.status_code == 401:
            self._handle_unauthorized()
            raise UnauthorizedError(f"HTTP 401: {response.text}", 401, response.text)

        if not response.is_success:
            body = response.text or "Unknown error"
            raise ApiError(f"HTTP {response.status_code}: {body}", response.status_code, body)

        if "application/json" in response.headers.get("content-type", ""):
            return response.json()
        return None

    def _handle_unauthorized(self) -> None:
        had_credentials = bool(self.tokens.access_token or self.tokens.refresh_token)
        if not had_credentials:
            return
        logger.warning("Session rejected with 401, logging out")
        self.tokens.clear()
        if self._on_unauthorized is not None:
            self._on_unauthorized()
