import logging
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)

# status reported when the upstream call never produced a response
TRANSPORT_ERROR_STATUS = 500
# status reported for a 2xx response whose body is not JSON
BAD_PAYLOAD_STATUS = 502


class FetchResult:
    def __init__(self, ok: bool, data: Any = None, status: Optional[int] = None, error: Optional[str] = None):
        self.ok = ok
        self.data = data
        self.status = status
        self.error = error

    @classmethod
    def success(cls, data: Any, status: int = 200) -> "FetchResult":
        return cls(True, data=data, status=status)

    @classmethod
    def failure(cls, status: Optional[int], error: Optional[str]) -> "FetchResult":
        return cls(False, status=status, error=error)

    def __repr__(self) -> str:
        if self.ok:
            return f"FetchResult(ok, status={self.status})"
        return f"FetchResult(failed, status={self.status})"


class AuthenticatedFetcher:
    """
    GETs upstream URLs with a bearer token and classifies the outcome.
    Never raises for HTTP, payload or transport problems.
    """

    def __init__(self, http: httpx.AsyncClient, access_token: str):
        self._http = http
        self._access_token = access_token

    def _headers(self):
        return {
            "Authorization": f"Bearer {self._access_token}",
            "Content-Type": "application/json",
        }

    async def fetch(self, url: str) -> FetchResult:
        logger.info("Connect API: GET %s", url)
        try:
            resp = await self._http.get(url, headers=self._headers())
        except httpx.HTTPError as exc:
            logger.warning("Transport error for %s: %s", url, exc)
            return FetchResult.failure(TRANSPORT_ERROR_STATUS, str(exc) or exc.__class__.__name__)

        if not resp.is_success:
            logger.warning("Connect API error %s for %s: %s", resp.status_code, url, resp.text[:200])
            return FetchResult.failure(resp.status_code, resp.text)

        try:
            data = resp.json()
        except ValueError as exc:
            logger.warning("Unparseable body from %s: %s", url, exc)
            return FetchResult.failure(BAD_PAYLOAD_STATUS, f"Invalid JSON from upstream: {exc}")
        return FetchResult.success(data, resp.status_code)
