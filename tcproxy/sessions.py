import time
from typing import Any, Dict, Iterable, Optional, Protocol

from .config import TOKEN_REFRESH_MARGIN

TOKENS_PREFIX = "tokens:"
STATE_PREFIX = "state:"


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[Any]: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...

    def keys(self) -> Iterable[str]: ...


class InMemoryStore:
    """Process-local store. Contents are lost on restart."""

    def __init__(self):
        self._data: Dict[str, Any] = {}

    def get(self, key: str) -> Optional[Any]:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> Iterable[str]:
        return list(self._data.keys())


class Session:
    def __init__(
        self,
        session_id: str,
        access_token: str,
        expires_at: float,
        refresh_token: Optional[str] = None,
        region: str = "us",
    ):
        self.session_id = session_id
        self.access_token = access_token
        self.refresh_token = refresh_token
        self.expires_at = float(expires_at)
        self.region = region

    @property
    def is_expired(self) -> bool:
        return time.time() >= self.expires_at

    def to_public_dict(self) -> Dict[str, Any]:
        # expiresAt in milliseconds for the browser side
        return {
            "accessToken": self.access_token,
            "refreshToken": self.refresh_token,
            "expiresAt": int(self.expires_at * 1000),
            "region": self.region,
        }

    def __repr__(self) -> str:
        return f"Session({self.session_id[:8]}..., region={self.region}, expires_at={self.expires_at})"


class CredentialStore:
    """
    Sessions (and pending OAuth states) keyed by session id, kept in an
    injected key-value store.
    """

    def __init__(self, store: Optional[KeyValueStore] = None):
        self._store = store if store is not None else InMemoryStore()

    def put(self, session_id: str, session: Session) -> None:
        self._store.set(TOKENS_PREFIX + session_id, session)

    def get(self, session_id: str) -> Optional[Session]:
        return self._store.get(TOKENS_PREFIX + session_id)

    def delete(self, session_id: str) -> None:
        self._store.delete(TOKENS_PREFIX + session_id)

    def count(self) -> int:
        return sum(1 for key in self._store.keys() if key.startswith(TOKENS_PREFIX))

    @staticmethod
    def is_expiring_soon(session: Session, margin_seconds: float = TOKEN_REFRESH_MARGIN) -> bool:
        return time.time() >= session.expires_at - margin_seconds

    # ---------- OAuth CSRF state ----------
    def put_state(self, session_id: str, state: str) -> None:
        self._store.set(STATE_PREFIX + session_id, state)

    def pop_state(self, session_id: str) -> Optional[str]:
        state = self._store.get(STATE_PREFIX + session_id)
        self._store.delete(STATE_PREFIX + session_id)
        return state
