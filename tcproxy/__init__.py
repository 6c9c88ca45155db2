from .client import ConnectClient
from .config import Settings
from .endpoints import EndpointCandidate, candidates_for
from .envelopes import EnvelopeShape, unwrap
from .exceptions import (
    ProxyError,
    AuthenticationError,
    RefreshFailedError,
    TokenExchangeError,
    UnknownResourceError,
)
from .fetcher import AuthenticatedFetcher, FetchResult
from .regions import core_api_host, resolve_region_code, topics_api_host
from .resolver import Outcome, ResourceProxy, resolve
from .sessions import CredentialStore, InMemoryStore, Session

__all__ = [
    "ConnectClient",
    "Settings",
    "EndpointCandidate",
    "candidates_for",
    "EnvelopeShape",
    "unwrap",
    "ProxyError",
    "AuthenticationError",
    "RefreshFailedError",
    "TokenExchangeError",
    "UnknownResourceError",
    "AuthenticatedFetcher",
    "FetchResult",
    "core_api_host",
    "resolve_region_code",
    "topics_api_host",
    "Outcome",
    "ResourceProxy",
    "resolve",
    "CredentialStore",
    "InMemoryStore",
    "Session",
]
