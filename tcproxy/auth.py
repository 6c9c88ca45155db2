import secrets
import time
import urllib.parse
from typing import Dict, List, Optional

import httpx

from .config import DEFAULT_SCOPES, OAUTH_AUTHORIZE_PATH, OAUTH_TOKEN_PATH
from .exceptions import TokenExchangeError


def generate_state() -> str:
    return secrets.token_hex(32)


class OAuthToken:
    def __init__(
        self,
        access_token: str,
        token_type: str,
        expires_in: int,
        refresh_token: Optional[str] = None,
        scope: Optional[str] = None,
        data_region: Optional[str] = None,
        obtained_at: Optional[float] = None,
    ):
        self.access_token = access_token
        self.token_type = token_type
        self.expires_in = int(expires_in)
        self.refresh_token = refresh_token
        self.scope = scope
        self.data_region = data_region
        self.obtained_at = obtained_at or time.time()

    @property
    def expires_at(self) -> float:
        return self.obtained_at + self.expires_in

    @classmethod
    def from_payload(cls, payload: Dict, previous_refresh_token: Optional[str] = None) -> "OAuthToken":
        return cls(
            access_token=payload["access_token"],
            token_type=payload.get("token_type", "Bearer"),
            expires_in=payload.get("expires_in", 3600),
            refresh_token=payload.get("refresh_token", previous_refresh_token),
            scope=payload.get("scope"),
            data_region=payload.get("data_region"),
        )


class AuthManager:
    """
    OAuth2 Authorization Code flow + refresh-token grant against the identity
    provider. Holds no tokens itself; sessions live in the CredentialStore.
    """

    def __init__(
        self,
        *,
        base_url: str,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        scopes: Optional[List[str]] = None,
    ):
        self.base_url = base_url
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.scopes = scopes or DEFAULT_SCOPES

    @property
    def token_url(self) -> str:
        return f"{self.base_url}{OAUTH_TOKEN_PATH}"

    def authorization_url(self, state: Optional[str] = None) -> str:
        params = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "scope": " ".join(self.scopes),
        }
        if state:
            params["state"] = state
        return f"{self.base_url}{OAUTH_AUTHORIZE_PATH}?{urllib.parse.urlencode(params)}"

    async def _token_request(self, http: httpx.AsyncClient, data: Dict[str, str], action: str) -> Dict:
        try:
            resp = await http.post(self.token_url, data=data)
        except httpx.HTTPError as exc:
            raise TokenExchangeError(f"Token {action} failed: {exc}") from exc
        if resp.status_code != 200:
            raise TokenExchangeError(f"Token {action} failed: {resp.status_code} - {resp.text}")
        try:
            return resp.json()
        except ValueError as exc:
            raise TokenExchangeError(f"Token {action} failed: invalid JSON response") from exc

    async def exchange_code_for_token(self, http: httpx.AsyncClient, code: str) -> OAuthToken:
        data = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.redirect_uri,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }
        payload = await self._token_request(http, data, "exchange")
        try:
            return OAuthToken.from_payload(payload)
        except KeyError as exc:
            raise TokenExchangeError("Token exchange failed: no access_token in response") from exc

    async def refresh_access_token(self, http: httpx.AsyncClient, refresh_token: Optional[str]) -> OAuthToken:
        if not refresh_token:
            raise TokenExchangeError("No refresh token available")
        data = {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }
        payload = await self._token_request(http, data, "refresh")
        try:
            return OAuthToken.from_payload(payload, previous_refresh_token=refresh_token)
        except KeyError as exc:
            raise TokenExchangeError("Token refresh failed: no access_token in response") from exc
