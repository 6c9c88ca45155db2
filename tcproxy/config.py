import logging
import os
from typing import Dict, List, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Core API pools (files, todos, views, project info), one host per region.
CORE_API_HOSTS: Dict[str, str] = {
    "us": "app.connect.trimble.com",
    "eu": "app21.connect.trimble.com",
    "ap": "app31.connect.trimble.com",
    "ap-au": "app32.connect.trimble.com",
}
CORE_API_HOSTS_STAGING: Dict[str, str] = {
    "us": "app.stage.connect.trimble.com",
    "eu": "app21.stage.connect.trimble.com",
    "ap": "app31.stage.connect.trimble.com",
    "ap-au": "app32.stage.connect.trimble.com",
}

# BCF topics live on a separate server pool with its own naming scheme.
TOPICS_API_HOSTS: Dict[str, str] = {
    "us": "open11.connect.trimble.com",
    "eu": "open21.connect.trimble.com",
    "ap": "open31.connect.trimble.com",
    "ap-au": "open32.connect.trimble.com",
}
TOPICS_API_HOSTS_STAGING: Dict[str, str] = {
    "us": "open11.stage.connect.trimble.com",
    "eu": "open21.stage.connect.trimble.com",
    "ap": "open31.stage.connect.trimble.com",
    "ap-au": "open32.stage.connect.trimble.com",
}

# Core API root (todos/views/search/sync/projects live under /tc/api/2.0)
API_ROOT = "/tc/api/2.0"
BCF_ROOT = "/tc/api/bcf/2.1"

# Identity provider
IDENTITY_BASE_URL = "https://id.trimble.com"
IDENTITY_BASE_URL_STAGING = "https://stage.id.trimble.com"
OAUTH_AUTHORIZE_PATH = "/oauth/authorize"
OAUTH_TOKEN_PATH = "/oauth/token"

# openid + the application name grants Connect API access
DEFAULT_SCOPES = ["openid", "SMA-tc-dashboard"]

# Refresh tokens this many seconds before they actually expire
TOKEN_REFRESH_MARGIN = 300

# Request timeouts (seconds)
DEFAULT_TIMEOUT = 30.0

DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:8080",
    "http://localhost:3001",
    "http://localhost:5500",
    "https://simontrim.github.io",
]
DEFAULT_FRONTEND_URL = "https://simontrim.github.io"

SERVICE_NAME = "Trimble Dashboard Backend"
SERVICE_VERSION = "5.0.0"


def _split_csv(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip().rstrip("/") for item in value.split(",") if item.strip()]


class Settings:
    """
    Runtime configuration read from the environment (and `.env` when present).
    """

    def __init__(
        self,
        *,
        client_id: str = "",
        client_secret: str = "",
        redirect_uri: str = "",
        frontend_url: Optional[str] = None,
        environment: str = "production",
        extra_origins: Optional[List[str]] = None,
        timeout: float = DEFAULT_TIMEOUT,
        log_level: str = "INFO",
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.frontend_url = (frontend_url or "").rstrip("/") or None
        self.environment = environment.strip().lower() or "production"
        self.extra_origins = extra_origins or []
        self.timeout = float(timeout)
        self.log_level = log_level.upper()

    @property
    def staging(self) -> bool:
        return self.environment == "staging"

    @property
    def identity_base_url(self) -> str:
        return IDENTITY_BASE_URL_STAGING if self.staging else IDENTITY_BASE_URL

    @property
    def allowed_origins(self) -> List[str]:
        origins = list(DEFAULT_ALLOWED_ORIGINS)
        for origin in [self.frontend_url, *self.extra_origins]:
            if origin and origin not in origins:
                origins.append(origin)
        return origins

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        settings = cls(
            client_id=os.getenv("TRIMBLE_CLIENT_ID", ""),
            client_secret=os.getenv("TRIMBLE_CLIENT_SECRET", ""),
            redirect_uri=os.getenv("TRIMBLE_REDIRECT_URI", ""),
            frontend_url=os.getenv("FRONTEND_URL"),
            environment=os.getenv("ENVIRONMENT", "production"),
            extra_origins=_split_csv(os.getenv("CORS_ORIGINS")),
            timeout=float(os.getenv("HTTP_TIMEOUT") or DEFAULT_TIMEOUT),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
        if not settings.client_id:
            logger.warning("TRIMBLE_CLIENT_ID is not configured; the OAuth login flow will fail")
        return settings
