"""Shared plumbing for content sources: pacing, retrying HTTP, batch analysis."""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Protocol

import httpx

from saaksh.cache import ResultCache
from saaksh.config import get_source_config
from saaksh.errors import ConfigurationError, SourceError, SourceErrorKind
from saaksh.models import PlatformAnalysisResult
from saaksh.retry import LINEAR, retry_async
from saaksh.schema import AnalysisRecord

logger = logging.getLogger(__name__)

FAILURE_POLICIES = ("drop", "substitute")
REQUEST_TIMEOUT = 15
MAX_RETRY_DELAY = 30.0

ProgressCallback = Callable[[int, int], None]


class Analyzer(Protocol):
    async def analyze(self, text: str) -> AnalysisRecord: ...


class RateLimiter:
    """Enforce a minimum interval between requests to one source.

    Each caller reserves the next free slot before sleeping, so concurrent
    callers are spaced out instead of all waking at the same moment. The
    watermark is plain state on the event loop thread (no lock).
    """

    def __init__(
        self,
        min_interval: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.min_interval = min_interval
        self._clock = clock
        self._last: float | None = None

    async def wait(self) -> float:
        """Sleep until this caller's slot; returns the time slept."""
        now = self._clock()
        if self._last is None:
            slot = now
        else:
            slot = max(now, self._last + self.min_interval)
        self._last = slot

        delay = slot - now
        if delay > 0:
            await asyncio.sleep(delay)
        return delay


class BaseSource(ABC):
    """Base class for platform sources (Reddit, YouTube)."""

    def __init__(
        self,
        config: dict,
        analyzer: Analyzer,
        cache: ResultCache | None = None,
        rate_limiter: RateLimiter | None = None,
    ):
        self.config = config
        self.settings = get_source_config(config, self.name)
        self.analyzer = analyzer

        if self.settings["on_failure"] not in FAILURE_POLICIES:
            raise ConfigurationError(
                f"sources.{self.name}.on_failure must be one of "
                f"{', '.join(FAILURE_POLICIES)}"
            )

        self.cache = cache if cache is not None else ResultCache(
            ttl_seconds=self.settings["cache_ttl_seconds"],
            max_entries=self.settings["cache_max_entries"],
        )
        self.rate_limiter = rate_limiter or RateLimiter(self.settings["min_interval"])

    @property
    @abstractmethod
    def name(self) -> str:
        """Source name, also the config section under ``sources``."""
        ...

    @abstractmethod
    def item_id(self, item: Any) -> str:
        ...

    @abstractmethod
    async def analyze_item(self, item: Any, **options) -> PlatformAnalysisResult:
        """Analyze one raw item (cached by its platform id)."""
        ...

    @abstractmethod
    def fallback_result(self, item: Any) -> PlatformAnalysisResult:
        """Inert result substituted when an item cannot be analyzed."""
        ...

    def cache_key(self, item_id: str) -> str:
        return f"{self.name}_{item_id}"

    def clear_cache(self) -> None:
        self.cache.clear()

    async def analyze_batch(
        self,
        items: list,
        on_progress: ProgressCallback | None = None,
        **options,
    ) -> list[PlatformAnalysisResult]:
        """Analyze items in fixed-size concurrent chunks.

        Chunks run one after another with ``batch_delay`` seconds between
        them. A failed item is dropped or replaced by ``fallback_result``
        depending on the ``on_failure`` policy; it never aborts the batch.
        Extra keyword ``options`` are passed on to ``analyze_item``.
        """
        batch_size = self.settings["batch_size"]
        batch_delay = self.settings["batch_delay"]
        total = len(items)
        results: list[PlatformAnalysisResult] = []
        failures = 0

        for start in range(0, total, batch_size):
            chunk = items[start:start + batch_size]
            outcomes = await asyncio.gather(
                *[self._analyze_isolated(item, options) for item in chunk]
            )
            for outcome, failed in outcomes:
                failures += failed
                if outcome is not None:
                    results.append(outcome)

            completed = min(start + batch_size, total)
            if on_progress:
                on_progress(completed, total)
            if completed < total:
                await asyncio.sleep(batch_delay)

        logger.info(
            "%s analyzed %d/%d items (%d failed, policy=%s)",
            self.name, len(results), total, failures,
            self.settings["on_failure"],
        )
        return results

    async def _analyze_isolated(
        self, item: Any, options: dict,
    ) -> tuple[PlatformAnalysisResult | None, bool]:
        try:
            return await self.analyze_item(item, **options), False
        except Exception as exc:
            logger.error(
                "Failed to analyze %s item %s: %s",
                self.name, self.item_id(item), exc,
            )
            if self.settings["on_failure"] == "substitute":
                return self.fallback_result(item), True
            return None, True

    async def _get_json(
        self,
        url: str,
        params: dict | None = None,
        headers: dict | None = None,
    ) -> Any:
        """Rate-limited GET with linear-backoff retry on transient errors."""
        return await retry_async(
            self._request_json, url, params, headers,
            max_retries=self.settings["max_retries"],
            base_delay=self.settings["retry_delay"],
            max_delay=MAX_RETRY_DELAY,
            backoff=LINEAR,
        )

    async def _request_json(
        self,
        url: str,
        params: dict | None,
        headers: dict | None,
    ) -> Any:
        await self.rate_limiter.wait()
        try:
            async with httpx.AsyncClient(
                timeout=REQUEST_TIMEOUT, follow_redirects=True,
            ) as client:
                resp = await client.get(url, params=params, headers=headers)
        except httpx.TransportError as exc:
            raise SourceError(
                SourceErrorKind.TRANSPORT,
                f"{type(exc).__name__}: {exc}",
                source=self.name,
            ) from exc

        if resp.status_code >= 400:
            raise self.classify_status(resp)

        try:
            return resp.json()
        except ValueError as exc:
            raise SourceError(
                SourceErrorKind.INVALID_RESPONSE,
                "response body is not JSON",
                source=self.name,
                status_code=resp.status_code,
            ) from exc

    def error_reason(self, resp: httpx.Response) -> str:
        """Platform-specific reason string from an error response."""
        return ""

    def classify_status(self, resp: httpx.Response) -> SourceError:
        status = resp.status_code
        reason = self.error_reason(resp)
        message = f"HTTP {status}" + (f" ({reason})" if reason else "")

        if status == 429:
            kind = SourceErrorKind.RATE_LIMITED
        elif status in (404, 410):
            kind = SourceErrorKind.NOT_FOUND
        elif status >= 500:
            kind = SourceErrorKind.TRANSPORT
        else:
            kind = SourceErrorKind.FORBIDDEN

        retry_after = None
        header = resp.headers.get("retry-after")
        if kind is SourceErrorKind.RATE_LIMITED and header:
            try:
                retry_after = float(header)
            except ValueError:
                pass

        return SourceError(
            kind, message, source=self.name, status_code=status,
            reason=reason, retry_after=retry_after,
        )
