"""Error taxonomy shared by the oracle, sources and config layers."""

from __future__ import annotations

from enum import Enum


class SaakshError(Exception):
    """Base class for all errors raised by saaksh."""

    @property
    def transient(self) -> bool:
        """True when retrying later may succeed."""
        return False


class OracleErrorKind(str, Enum):
    RATE_LIMITED = "rate_limited"
    PROVIDER_ERROR = "provider_error"
    MALFORMED_RESPONSE = "malformed_response"


class OracleError(SaakshError):
    """An LLM provider call failed or returned unusable output."""

    def __init__(
        self,
        kind: OracleErrorKind,
        message: str,
        provider: str = "",
        retry_after: float | None = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.provider = provider
        self.retry_after = retry_after

    @property
    def transient(self) -> bool:
        return self.kind is OracleErrorKind.RATE_LIMITED

    def __str__(self) -> str:
        prefix = f"[{self.provider}] " if self.provider else ""
        return f"{prefix}{self.kind.value}: {self.args[0]}"


class SourceErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    RATE_LIMITED = "rate_limited"
    TRANSPORT = "transport"
    INVALID_RESPONSE = "invalid_response"


class SourceError(SaakshError):
    """A content source (Reddit, YouTube) request failed."""

    def __init__(
        self,
        kind: SourceErrorKind,
        message: str,
        source: str = "",
        status_code: int | None = None,
        reason: str = "",
        retry_after: float | None = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.source = source
        self.status_code = status_code
        self.reason = reason
        self.retry_after = retry_after

    @property
    def transient(self) -> bool:
        return self.kind in (SourceErrorKind.RATE_LIMITED, SourceErrorKind.TRANSPORT)

    def __str__(self) -> str:
        prefix = f"[{self.source}] " if self.source else ""
        return f"{prefix}{self.kind.value}: {self.args[0]}"


class ConfigurationError(SaakshError):
    """Required configuration (usually a credential) is missing or invalid."""
