"""
Error taxonomy and classifier for MetalX responses 🚨

Remote failures are classified exactly once, at the adapter boundary, and
re-raised as one of the typed errors below. Only RateLimited is retryable;
retrying is left to the transport.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Dict, Optional, Type


class ExchangeError(Exception):
    """Base class for everything the adapter raises."""

    retryable = False

    def __init__(self, message: str = "", payload: Any = None, status: Optional[int] = None):
        super().__init__(message)
        self.payload = payload
        self.status = status


class ArgumentError(ExchangeError):
    """Missing or invalid caller input; raised before any network call."""


class ConfigurationError(ExchangeError):
    """Credentials required for a private call are absent."""


class InvalidAddress(ExchangeError):
    """A funding address is empty or malformed."""


class NetworkError(ExchangeError):
    """The transport gave up without getting an HTTP response."""


class AuthenticationFailure(ExchangeError):
    pass


class InvalidRequest(ExchangeError):
    pass


class NotFound(ExchangeError):
    pass


class RateLimited(ExchangeError):
    retryable = True


class ServerError(ExchangeError):
    pass


class Unclassified(ExchangeError):
    pass


class ErrorCode(str, Enum):
    """Documented MetalX error vocabulary; anything else is UNKNOWN."""

    TWO_FACTOR_REQUIRED = "two_factor_required"
    PARAM_REQUIRED = "param_required"
    VALIDATION_ERROR = "validation_error"
    INVALID_REQUEST = "invalid_request"
    AUTHENTICATION_ERROR = "authentication_error"
    INVALID_TOKEN = "invalid_token"
    REVOKED_TOKEN = "revoked_token"
    EXPIRED_TOKEN = "expired_token"
    INVALID_SCOPE = "invalid_scope"
    NOT_FOUND = "not_found"
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
    INTERNAL_SERVER_ERROR = "internal_server_error"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, code: Optional[str]) -> "ErrorCode":
        if not code:
            return cls.UNKNOWN
        try:
            return cls(str(code))
        except ValueError:
            return cls.UNKNOWN


ERROR_CODES: Dict[ErrorCode, Type[ExchangeError]] = {
    ErrorCode.TWO_FACTOR_REQUIRED: AuthenticationFailure,   # 402 over 2fa limit
    ErrorCode.PARAM_REQUIRED: InvalidRequest,               # 400
    ErrorCode.VALIDATION_ERROR: InvalidRequest,             # 400 POST/PUT validation
    ErrorCode.INVALID_REQUEST: InvalidRequest,              # 400
    ErrorCode.AUTHENTICATION_ERROR: AuthenticationFailure,  # 401
    ErrorCode.INVALID_TOKEN: AuthenticationFailure,         # 401
    ErrorCode.REVOKED_TOKEN: AuthenticationFailure,         # 401
    ErrorCode.EXPIRED_TOKEN: AuthenticationFailure,         # 401
    ErrorCode.INVALID_SCOPE: AuthenticationFailure,         # 403
    ErrorCode.NOT_FOUND: NotFound,                          # 404
    ErrorCode.RATE_LIMIT_EXCEEDED: RateLimited,             # 429
    ErrorCode.INTERNAL_SERVER_ERROR: ServerError,           # 500
    ErrorCode.UNKNOWN: Unclassified,
}

HTTP_STATUSES: Dict[int, Type[ExchangeError]] = {
    400: InvalidRequest,
    401: AuthenticationFailure,
    402: AuthenticationFailure,
    403: AuthenticationFailure,
    404: NotFound,
    429: RateLimited,
}


def _decode(payload: Any) -> Any:
    if isinstance(payload, (bytes, bytearray)):
        payload = payload.decode("utf-8", errors="replace")
    if isinstance(payload, str):
        text = payload.strip()
        if text.startswith("{"):
            try:
                return json.loads(text)
            except ValueError:
                return payload
    return payload


def extract_error(payload: Any) -> tuple[Optional[str], Optional[str]]:
    """Pull (code, message) out of the error body shapes MetalX uses."""
    body = _decode(payload)
    if not isinstance(body, dict):
        return None, (str(body) if body else None)
    err = body.get("error", body)
    if isinstance(err, str):
        return err, body.get("message")
    if isinstance(err, dict):
        code = err.get("id") or err.get("code")
        return (str(code) if code is not None else None), err.get("message")
    return None, body.get("message")


def classify(status: Optional[int], payload: Any = None) -> Type[ExchangeError]:
    """
    Map an HTTP status and/or error body to an error class.
    A documented error code wins over the HTTP status.
    """
    code, _ = extract_error(payload)
    kind = ErrorCode.parse(code)
    if kind is not ErrorCode.UNKNOWN:
        return ERROR_CODES[kind]
    if status is not None:
        if status in HTTP_STATUSES:
            return HTTP_STATUSES[status]
        if status >= 500:
            return ServerError
    return Unclassified


def build_error(status: Optional[int], payload: Any = None, context: str = "") -> ExchangeError:
    error_class = classify(status, payload)
    code, message = extract_error(payload)
    parts = [str(p) for p in (context, f"HTTP {status}" if status is not None else "", code, message) if p]
    # payload stays whole on the exception; only the message is shortened
    return error_class(" ".join(parts)[:300], payload=payload, status=status)
