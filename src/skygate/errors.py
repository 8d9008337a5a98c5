"""Error taxonomy shared by adapters, normalizers and the dispatcher."""
from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    UPSTREAM_UNAVAILABLE = "UpstreamUnavailable"
    UPSTREAM_REJECTED = "UpstreamRejected"
    MALFORMED_UPSTREAM_PAYLOAD = "MalformedUpstreamPayload"
    INVALID_PARAMETERS = "InvalidParameters"
    INTERNAL_ERROR = "InternalError"

    @property
    def transient(self) -> bool:
        return self is ErrorKind.UPSTREAM_UNAVAILABLE


class GatewayError(Exception):
    """Base class for every failure a single field resolution can hit."""

    kind: ErrorKind = ErrorKind.INTERNAL_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UpstreamUnavailable(GatewayError):
    """Network failure, timeout or 5xx from a provider. Transient."""

    kind = ErrorKind.UPSTREAM_UNAVAILABLE


class UpstreamRejected(GatewayError):
    """4xx from a provider. Permanent, usually a caller parameter problem."""

    kind = ErrorKind.UPSTREAM_REJECTED

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class MalformedUpstreamPayload(GatewayError):
    """Body decoded but is missing required keys or has the wrong shape."""

    kind = ErrorKind.MALFORMED_UPSTREAM_PAYLOAD


class InvalidParameters(GatewayError):
    kind = ErrorKind.INVALID_PARAMETERS


class FieldResolutionError(GatewayError):
    """Field-scoped wrapper surfaced to the caller."""

    def __init__(self, field: str, cause: GatewayError) -> None:
        super().__init__(cause.message)
        self.field = field
        self.cause = cause
        self.kind = cause.kind

    def __repr__(self) -> str:
        return f"FieldResolutionError(field={self.field!r}, kind={self.kind.value!r}, message={self.message!r})"


class QueryDocumentError(ValueError):
    """The query document itself cannot be executed."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
