"""Abstract base class for LLM providers."""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass

from saaksh.errors import OracleError, OracleErrorKind, SaakshError
from saaksh.retry import retry_async

logger = logging.getLogger(__name__)

RATE_LIMIT_PATTERN = re.compile(
    r"quota|rate.?limit|resource.?exhausted|too many requests", re.IGNORECASE,
)


@dataclass
class LLMResponse:
    """Response from an LLM call."""

    text: str
    input_tokens: int = 0
    output_tokens: int = 0
    model: str = ""


class BaseLLMProvider(ABC):
    """Base class for LLM providers.

    Subclasses implement ``_do_complete``; ``complete`` wraps it with error
    classification and the rate-limit retry policy.
    """

    requires_api_key = True

    def __init__(
        self,
        api_key: str,
        base_url: str,
        default_model: str,
        max_retries: int = 3,
        initial_backoff: float = 1.0,
        max_backoff: float = 60.0,
        timeout: int = 120,
        json_mode: bool = False,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.default_model = default_model
        self.max_retries = max_retries
        self.initial_backoff = initial_backoff
        self.max_backoff = max_backoff
        self.timeout = timeout
        self.json_mode = json_mode

    async def complete(
        self,
        prompt: str,
        system: str = "",
        model: str | None = None,
        temperature: float = 0.3,
        max_tokens: int = 2000,
    ) -> LLMResponse:
        """Send a completion request, retrying only on rate limits."""
        model = model or self.default_model
        response = await retry_async(
            self._classified_complete, prompt, system, model,
            temperature, max_tokens,
            max_retries=self.max_retries,
            base_delay=self.initial_backoff,
            max_delay=self.max_backoff,
        )
        logger.debug(
            "%s/%s used %d input + %d output tokens",
            self.provider_name, model,
            response.input_tokens, response.output_tokens,
        )
        return response

    async def _classified_complete(
        self,
        prompt: str,
        system: str,
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> LLMResponse:
        try:
            return await self._do_complete(
                prompt, system, model, temperature, max_tokens,
            )
        except SaakshError:
            raise
        except Exception as exc:
            raise classify_llm_error(exc, self.provider_name) from exc

    @abstractmethod
    async def _do_complete(
        self,
        prompt: str,
        system: str,
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> LLMResponse:
        """Issue one request against the provider API."""
        ...

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Human-readable provider name."""
        ...


def classify_llm_error(exc: Exception, provider: str = "") -> OracleError:
    """Map an SDK or HTTP exception to an OracleError.

    Rate-limit signals: HTTP 429, an SDK ``RateLimitError``, a
    ``RESOURCE_EXHAUSTED`` status, or a message mentioning quota or rate
    limiting. Everything else is a provider error.
    """
    message = str(exc) or type(exc).__name__
    rate_limited = (
        _status_code(exc) == 429
        or type(exc).__name__ == "RateLimitError"
        or getattr(exc, "status", None) == "RESOURCE_EXHAUSTED"
        or RATE_LIMIT_PATTERN.search(message) is not None
    )
    if rate_limited:
        return OracleError(
            OracleErrorKind.RATE_LIMITED, message,
            provider=provider, retry_after=_retry_after(exc),
        )
    return OracleError(OracleErrorKind.PROVIDER_ERROR, message, provider=provider)


def _status_code(exc: Exception) -> int | None:
    response = getattr(exc, "response", None)
    status = getattr(response, "status_code", None)
    if isinstance(status, int):
        return status
    for attr in ("status_code", "code"):
        value = getattr(exc, attr, None)
        if isinstance(value, int):
            return value
    return None


def _retry_after(exc: Exception) -> float | None:
    """Provider-supplied wait: Retry-After header or Google RetryInfo."""
    response = getattr(exc, "response", None)
    headers = getattr(response, "headers", None)
    if headers is not None:
        try:
            value = headers.get("retry-after")
        except AttributeError:
            value = None
        if value:
            try:
                return float(value)
            except ValueError:
                pass

    explicit = getattr(exc, "retry_after", None)
    if isinstance(explicit, (int, float)):
        return float(explicit)

    return parse_retry_info(getattr(exc, "details", None))


def parse_retry_info(details) -> float | None:
    """Extract ``retryDelay`` (e.g. ``"31s"``) from a Google error payload."""
    if isinstance(details, dict):
        details = details.get("error", details).get("details", [])
    if not isinstance(details, list):
        return None
    for item in details:
        if not isinstance(item, dict):
            continue
        if "RetryInfo" not in str(item.get("@type", "")):
            continue
        delay = str(item.get("retryDelay", "")).strip().rstrip("s")
        try:
            return float(delay)
        except ValueError:
            return None
    return None
