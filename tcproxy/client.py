import logging
from typing import Optional, Tuple

import httpx

from .auth import AuthManager, OAuthToken
from .config import Settings
from .exceptions import AuthenticationError, RefreshFailedError, TokenExchangeError
from .fetcher import AuthenticatedFetcher
from .regions import resolve_region_code
from .resolver import ResourceProxy
from .sessions import CredentialStore, KeyValueStore, Session

logger = logging.getLogger(__name__)


class ConnectClient:
    """
    Top-level entry point for the proxy.
    - Builds per-request httpx.AsyncClient instances
    - Manages OAuth via AuthManager and sessions via CredentialStore
    - Hands out ResourceProxy instances bound to a token and region
    """

    def __init__(
        self,
        settings: Settings,
        *,
        store: Optional[KeyValueStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self.sessions = CredentialStore(store)
        self.auth = AuthManager(
            base_url=settings.identity_base_url,
            client_id=settings.client_id,
            client_secret=settings.client_secret,
            redirect_uri=settings.redirect_uri,
        )
        # test hook: replaces the network with e.g. httpx.MockTransport
        self._transport = transport

    def http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.settings.timeout,
            follow_redirects=True,
            transport=self._transport,
        )

    def proxy(self, http: httpx.AsyncClient, access_token: str, region: str) -> ResourceProxy:
        fetcher = AuthenticatedFetcher(http, access_token)
        return ResourceProxy(fetcher.fetch, region, staging=self.settings.staging)

    # ---------- OAuth convenience ----------
    def start_login(self, session_id: str, state: str) -> str:
        self.sessions.put_state(session_id, state)
        return self.auth.authorization_url(state=f"{state}:{session_id}")

    async def complete_login(self, http: httpx.AsyncClient, code: str, session_id: str) -> Session:
        token = await self.auth.exchange_code_for_token(http, code)
        session = self._session_from_token(session_id, token)
        self.sessions.put(session_id, session)
        logger.info("Session %s... authenticated (region %s)", session_id[:8], session.region)
        return session

    @staticmethod
    def _session_from_token(session_id: str, token: OAuthToken) -> Session:
        return Session(
            session_id=session_id,
            access_token=token.access_token,
            refresh_token=token.refresh_token,
            expires_at=token.expires_at,
            region=resolve_region_code(token.data_region or "us"),
        )

    # ---------- Session-mode auth ----------
    async def session_credentials(self, http: httpx.AsyncClient, session_id: str) -> Tuple[str, str]:
        """
        Return (access_token, region) for a session, refreshing the token first
        when it is about to expire.
        """
        session = self.sessions.get(session_id)
        if session is None:
            raise AuthenticationError("Not authenticated")

        if self.sessions.is_expiring_soon(session):
            logger.info("Token for session %s... expiring, refreshing", session_id[:8])
            try:
                token = await self.auth.refresh_access_token(http, session.refresh_token)
            except TokenExchangeError as exc:
                # session is kept; the caller decides whether to log out
                logger.error("Token refresh failed for session %s...: %s", session_id[:8], exc)
                raise RefreshFailedError("Token refresh failed - Please re-authenticate") from exc
            session.access_token = token.access_token
            session.refresh_token = token.refresh_token
            session.expires_at = token.expires_at
            self.sessions.put(session_id, session)
            logger.info("Token refreshed for session %s...", session_id[:8])

        return session.access_token, session.region

    def session_status(self, session_id: Optional[str]) -> Optional[Session]:
        if not session_id:
            return None
        session = self.sessions.get(session_id)
        if session is None or session.is_expired:
            return None
        return session

    def logout(self, session_id: Optional[str]) -> None:
        if session_id:
            self.sessions.delete(session_id)
