# stockpos/api/auth.py
from typing import Optional

from stockpos.api.client import AuthError, HttpClient
from stockpos.schemas.remote import TokenDto


class AuthApi:
    def __init__(self, http: HttpClient):
        self.http = http
        self.tokens = http.tokens

    # Restore tokens saved by a previous session
    def initialize(self) -> None:
        self.tokens.initialize()

    def _store(self, result: TokenDto) -> None:
        # Only a complete pair replaces the session
        if result.access_token and result.refresh_token:
            self.tokens.set_token(result.access_token)
            self.tokens.set_refresh_token(result.refresh_token)

    async def _authenticate(self, path: str, email: str, password: str, domain: str) -> TokenDto:
        self.tokens.set_domain(domain)
        data = await self.http.request(
            "POST", path, json={"email": email, "password": password, "tenant": domain}
        )
        result = TokenDto.model_validate(data or {})
        self._store(result)
        return result

    async def login(self, email: str, password: str, domain: str) -> TokenDto:
        return await self._authenticate("/login/authenticate", email, password, domain)

    async def register(self, email: str, password: str, domain: str) -> TokenDto:
        return await self._authenticate("/login/register", email, password, domain)

    async def refresh_token(self) -> TokenDto:
        access_token = self.tokens.access_token
        refresh_token = self.tokens.refresh_token
        if not access_token or not refresh_token:
            raise AuthError("No tokens available")

        data = await self.http.request(
            "POST",
            "/login/refresh",
            json={"accessToken": access_token, "refreshToken": refresh_token},
        )
        result = TokenDto.model_validate(data or {})
        self._store(result)
        return result

    def logout(self) -> None:
        self.tokens.clear()

    def is_authenticated(self) -> bool:
        return bool(self.tokens.access_token) and bool(self.tokens.refresh_token)

    def get_token(self) -> Optional[str]:
        return self.tokens.access_token

    def get_refresh_token(self) -> Optional[str]:
        return self.tokens.refresh_token

    @property
    def tenant(self) -> Optional[str]:
        return self.http.tenant
