import logging
import os
from datetime import datetime, timezone
from typing import AsyncIterator, Optional

import httpx
from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse
from pydantic import ValidationError

from .auth import generate_state
from .client import ConnectClient
from .config import DEFAULT_FRONTEND_URL, SERVICE_NAME, SERVICE_VERSION, Settings
from .exceptions import AuthenticationError, ProxyError, TokenExchangeError
from .fetcher import BAD_PAYLOAD_STATUS
from .models import to_canonical
from .regions import REGION_CODES, resolve_region_code
from .sessions import KeyValueStore

logger = logging.getLogger(__name__)


class AuthContext:
    def __init__(self, access_token: str, region: str, session_id: Optional[str] = None):
        self.access_token = access_token
        self.region = region
        self.session_id = session_id


def _client(request: Request) -> ConnectClient:
    return request.app.state.client


async def get_http(request: Request) -> AsyncIterator[httpx.AsyncClient]:
    async with _client(request).http_client() as http:
        yield http


async def require_auth(request: Request, http: httpx.AsyncClient = Depends(get_http)) -> AuthContext:
    """
    Bearer mode: `Authorization: Bearer <token>` + `X-Project-Region`, token used as-is.
    Session mode: `X-Session-Id`, token refreshed server-side when expiring.
    """
    scheme, _, access_token = (request.headers.get("authorization") or "").strip().partition(" ")
    if scheme == "Bearer":
        access_token = access_token.strip()
        if not access_token:
            raise AuthenticationError("Invalid authorization header")
        location = request.headers.get("x-project-region") or "europe"
        region = resolve_region_code(location)
        logger.info("Bearer token auth, region %r -> %s", location, region)
        return AuthContext(access_token, region)

    session_id = request.headers.get("x-session-id")
    if not session_id:
        raise AuthenticationError("Missing session ID or authorization header")
    access_token, region = await _client(request).session_credentials(http, session_id)
    return AuthContext(access_token, region, session_id)


async def _proxied(
    request: Request,
    resource: str,
    project_id: str,
    ctx: AuthContext,
    http: httpx.AsyncClient,
    fmt: Optional[str] = None,
):
    proxy = _client(request).proxy(http, ctx.access_token, ctx.region)
    outcome = await proxy.get(resource, project_id)
    if not outcome.ok:
        return JSONResponse({"error": outcome.error}, status_code=outcome.status)
    if fmt == "canonical":
        try:
            records = to_canonical(resource, outcome.data, project_id)
        except ValidationError as exc:
            logger.warning("Cannot map %s for project %s: %s", resource, project_id, exc)
            return JSONResponse(
                {"error": f"Upstream {resource} could not be mapped: {exc.error_count()} invalid field(s)"},
                status_code=BAD_PAYLOAD_STATUS,
            )
        return [record.model_dump(by_alias=True, mode="json") for record in records]
    return outcome.data


def _frontend_redirect(settings: Settings, session_id: str) -> str:
    frontend_url = settings.frontend_url or DEFAULT_FRONTEND_URL
    if "localhost" in frontend_url:
        return f"{frontend_url}/index-local.html?session={session_id}&auth=success"
    return f"{frontend_url}/trimble-dashboard/?session={session_id}&auth=success"


def create_app(
    settings: Optional[Settings] = None,
    *,
    store: Optional[KeyValueStore] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = FastAPI(title=SERVICE_NAME, version=SERVICE_VERSION)
    app.state.settings = settings
    app.state.client = ConnectClient(settings, store=store, transport=transport)
    allowed_origins = settings.allowed_origins

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Added last so it runs first: unknown origins never reach a handler.
    @app.middleware("http")
    async def reject_unknown_origins(request: Request, call_next):
        logger.info("%s %s", request.method, request.url.path)
        origin = request.headers.get("origin")
        if origin and origin not in allowed_origins:
            logger.warning("Origin rejected: %s", origin)
            return JSONResponse({"error": f"Origin {origin} not allowed by CORS"}, status_code=403)
        return await call_next(request)

    @app.exception_handler(ProxyError)
    async def proxy_error_handler(request: Request, exc: ProxyError):
        return JSONResponse({"error": str(exc)}, status_code=exc.status_code)

    # ---------- OAuth2 ----------
    @app.get("/auth/login")
    async def login(request: Request, session: Optional[str] = None):
        session_id = session or generate_state()
        url = _client(request).start_login(session_id, generate_state())
        return RedirectResponse(url, status_code=302)

    @app.get("/callback")
    async def callback(
        request: Request,
        code: Optional[str] = None,
        state: Optional[str] = None,
        http: httpx.AsyncClient = Depends(get_http),
    ):
        if not code or not state:
            return PlainTextResponse("Missing code or state parameter", status_code=400)

        state_value, _, session_id = state.partition(":")
        client = _client(request)
        stored_state = client.sessions.pop_state(session_id)
        if not stored_state or stored_state != state_value:
            return PlainTextResponse("Invalid state - Possible CSRF attack", status_code=403)

        try:
            await client.complete_login(http, code, session_id)
        except TokenExchangeError as exc:
            logger.error("OAuth callback error: %s", exc)
            return PlainTextResponse(f"Authentication failed: {exc}", status_code=500)

        redirect_url = _frontend_redirect(settings, session_id)
        logger.info("OAuth success, redirecting to %s", redirect_url)
        return RedirectResponse(redirect_url, status_code=302)

    @app.get("/api/auth/status")
    async def auth_status(request: Request, session: Optional[str] = None):
        session_id = request.headers.get("x-session-id") or session
        current = _client(request).session_status(session_id)
        if current is None:
            return {"authenticated": False}
        return {"authenticated": True, "tokens": current.to_public_dict()}

    @app.post("/api/auth/logout")
    async def logout(request: Request):
        _client(request).logout(request.headers.get("x-session-id"))
        return {"success": True}

    # ---------- Connect proxy ----------
    @app.get("/api/projects/{project_id}")
    async def project_info(
        request: Request,
        project_id: str,
        ctx: AuthContext = Depends(require_auth),
        http: httpx.AsyncClient = Depends(get_http),
    ):
        return await _proxied(request, "project", project_id, ctx, http)

    @app.get("/api/projects/{project_id}/todos")
    async def todos(
        request: Request,
        project_id: str,
        fmt: Optional[str] = Query(None, alias="format"),
        ctx: AuthContext = Depends(require_auth),
        http: httpx.AsyncClient = Depends(get_http),
    ):
        return await _proxied(request, "todos", project_id, ctx, http, fmt)

    @app.get("/api/projects/{project_id}/views")
    async def views(
        request: Request,
        project_id: str,
        fmt: Optional[str] = Query(None, alias="format"),
        ctx: AuthContext = Depends(require_auth),
        http: httpx.AsyncClient = Depends(get_http),
    ):
        return await _proxied(request, "views", project_id, ctx, http, fmt)

    @app.get("/api/projects/{project_id}/files")
    async def files(
        request: Request,
        project_id: str,
        fmt: Optional[str] = Query(None, alias="format"),
        ctx: AuthContext = Depends(require_auth),
        http: httpx.AsyncClient = Depends(get_http),
    ):
        return await _proxied(request, "files", project_id, ctx, http, fmt)

    @app.get("/api/projects/{project_id}/bcf/topics")
    async def topics(
        request: Request,
        project_id: str,
        fmt: Optional[str] = Query(None, alias="format"),
        ctx: AuthContext = Depends(require_auth),
        http: httpx.AsyncClient = Depends(get_http),
    ):
        return await _proxied(request, "topics", project_id, ctx, http, fmt)

    # ---------- Health / info ----------
    @app.get("/health")
    async def health(request: Request):
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": SERVICE_VERSION,
            "environment": settings.environment,
            "activeSessions": _client(request).sessions.count(),
        }

    @app.get("/")
    async def root():
        return {
            "name": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "environment": settings.environment,
            "supportedRegions": list(REGION_CODES),
            "endpoints": {
                "auth": {
                    "login": "/auth/login",
                    "callback": "/callback",
                    "status": "/api/auth/status",
                    "logout": "/api/auth/logout",
                },
                "api": {
                    "project": "/api/projects/{projectId}",
                    "todos": "/api/projects/{projectId}/todos",
                    "views": "/api/projects/{projectId}/views",
                    "files": "/api/projects/{projectId}/files",
                    "topics": "/api/projects/{projectId}/bcf/topics",
                },
            },
        }

    return app


def main():
    import uvicorn

    settings = Settings.from_env()
    uvicorn.run(
        create_app(settings),
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "3000")),
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
