class ProxyError(Exception):
    """Base error; rendered to callers as {"error": message} with `status_code`."""

    status_code = 500


class AuthenticationError(ProxyError):
    """Missing/invalid bearer token or unknown session."""

    status_code = 401


class RefreshFailedError(AuthenticationError):
    """Session token could not be refreshed; the caller must log in again."""


class TokenExchangeError(ProxyError):
    """Identity provider rejected a code exchange or refresh grant."""


class UnknownResourceError(ProxyError, ValueError):
    """No candidate table exists for the requested resource."""

    status_code = 404
