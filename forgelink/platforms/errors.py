"""
Error taxonomy shared by every forge implementation.

Configuration and authentication errors are fatal and never retried. API
errors carry the HTTP status and response body verbatim so callers can tell
permission problems from missing resources from server failures.
"""

from typing import Iterable, Optional


class ForgeError(Exception):
    """Base exception for forgelink errors."""
    pass


class ConfigurationError(ForgeError):
    """A required ambient variable is missing or malformed."""

    def __init__(self, message: str, fields: Iterable[str] = ()):
        super().__init__(message)
        self.fields = tuple(fields)

    @property
    def field(self) -> Optional[str]:
        return self.fields[0] if self.fields else None


class AuthError(ForgeError):
    """No credential could be found, or the forge rejected it."""
    pass


class ForgePermissionError(ForgeError):
    """The authenticated identity lacks the access level a run needs."""
    pass


class ApiError(ForgeError):
    """A forge API call returned a non-2xx response."""

    def __init__(self, method: str, endpoint: str, status_code: int, body: str):
        super().__init__(f"{method} {endpoint} failed with status {status_code}: {body}")
        self.method = method
        self.endpoint = endpoint
        self.status_code = status_code
        self.body = body


class TransientApiError(ApiError):
    """Non-2xx response other than 404; retried before it surfaces."""
    pass


class NotFoundError(ApiError):
    """404 response; used as a control signal in branch resolution."""
    pass


def api_error_for(method: str, endpoint: str, status_code: int, body: str) -> ApiError:
    """Build the ApiError subclass matching ``status_code``."""
    if status_code == 404:
        return NotFoundError(method, endpoint, status_code, body)
    return TransientApiError(method, endpoint, status_code, body)
