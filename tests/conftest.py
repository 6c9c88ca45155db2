import json
import time

import httpx
import pytest

from tcproxy.config import Settings
from tcproxy.sessions import Session


class Upstream:
    """
    Stand-in for the Connect API and identity provider. Responses are looked
    up by full URL and given as (status, body), an httpx.Response or an
    exception to raise; unknown URLs answer 404.
    """

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(str(request.url))
        if route is None:
            return httpx.Response(404, text=f"no route for {request.url}")
        if isinstance(route, Exception):
            raise route
        if isinstance(route, httpx.Response):
            return route
        status, body = route
        if isinstance(body, (dict, list)):
            return httpx.Response(status, content=json.dumps(body).encode(), headers={"Content-Type": "application/json"})
        return httpx.Response(status, text=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def urls(self):
        return [str(r.url) for r in self.requests]


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def upstream():
    return Upstream()


@pytest.fixture
def settings():
    return Settings(
        client_id="client-123",
        client_secret="secret-456",
        redirect_uri="https://proxy.example.test/callback",
        frontend_url="https://dash.example.test",
        environment="production",
    )


@pytest.fixture
def fresh_session():
    return Session(
        session_id="sess-fresh-0001",
        access_token="fresh-token",
        refresh_token="refresh-1",
        expires_at=time.time() + 3600,
        region="eu",
    )


@pytest.fixture
def expired_session():
    return Session(
        session_id="sess-expired-0001",
        access_token="old-token",
        refresh_token="refresh-old",
        expires_at=time.time() - 60,
        region="us",
    )
