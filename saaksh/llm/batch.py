"""Debounced batch queue in front of the oracle adapter."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from saaksh.cache import DEFAULT_FINGERPRINT_LENGTH, ResultCache, fingerprint
from saaksh.llm.oracle import OracleAdapter
from saaksh.schema import AnalysisRecord

logger = logging.getLogger(__name__)


@dataclass
class BatchRequest:
    """A queued analysis waiting for its chunk to be dispatched."""

    text: str
    future: asyncio.Future


class BatchDispatcher:
    """Coalesce near-simultaneous analysis requests into bounded chunks.

    Cache hits resolve immediately. A miss whose fingerprint matches a
    queued or in-flight request shares that request's future. Other
    misses are queued; the first one starts a debounce timer, and when it
    fires up to ``batch_size`` queued requests are sent to the oracle
    concurrently. Each request's future is settled on its own, so one
    failure never affects the rest of the chunk. Once a chunk settles the
    timer is rescheduled if work remains, which keeps at most
    ``batch_size`` oracle calls in flight.
    """

    def __init__(
        self,
        oracle: OracleAdapter,
        cache: ResultCache[AnalysisRecord] | None = None,
        batch_size: int = 5,
        debounce_seconds: float = 0.2,
        fingerprint_length: int = DEFAULT_FINGERPRINT_LENGTH,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.oracle = oracle
        self.cache = cache if cache is not None else ResultCache()
        self.batch_size = batch_size
        self.debounce_seconds = debounce_seconds
        self.fingerprint_length = fingerprint_length
        self.chunks_dispatched = 0
        self._queue: list[BatchRequest] = []
        self._inflight: set[asyncio.Future] = set()
        self._by_key: dict[str, asyncio.Future] = {}
        self._timer: asyncio.TimerHandle | None = None
        self._task: asyncio.Task | None = None

    @property
    def pending(self) -> int:
        """Requests queued but not yet dispatched."""
        return len(self._queue)

    def submit(self, text: str) -> asyncio.Future:
        """Queue ``text`` for analysis and return a future for its record."""
        if not text or not text.strip():
            raise ValueError("Cannot analyze empty text")

        loop = asyncio.get_running_loop()
        key = self._key(text)

        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Returning cached analysis")
            future = loop.create_future()
            future.set_result(cached)
            return future

        if key in self._by_key:
            logger.debug("Joining pending analysis with the same fingerprint")
            return self._by_key[key]

        future = loop.create_future()
        self._by_key[key] = future
        self._queue.append(BatchRequest(text=text, future=future))
        if self._timer is None:
            self._timer = loop.call_later(self.debounce_seconds, self._fire)
        return future

    async def analyze(self, text: str) -> AnalysisRecord:
        return await self.submit(text)

    async def drain(self) -> None:
        """Wait until every queued and in-flight request has settled."""
        while self._queue or self._inflight:
            waiting = [r.future for r in self._queue] + list(self._inflight)
            await asyncio.gather(*waiting, return_exceptions=True)

    def _key(self, text: str) -> str:
        return fingerprint(text, self.fingerprint_length)

    def _fire(self) -> None:
        self._task = asyncio.ensure_future(self._process_batch())

    async def _process_batch(self) -> None:
        chunk = self._queue[:self.batch_size]
        del self._queue[:self.batch_size]
        self.chunks_dispatched += 1
        logger.debug(
            "Dispatching chunk of %d (%d still queued)",
            len(chunk), len(self._queue),
        )

        await asyncio.gather(*[self._run(request) for request in chunk])

        if self._queue:
            loop = asyncio.get_running_loop()
            self._timer = loop.call_later(self.debounce_seconds, self._fire)
        else:
            self._timer = None
            self._task = None

    async def _run(self, request: BatchRequest) -> None:
        self._inflight.add(request.future)
        try:
            record = await self.oracle.analyze(request.text)
        except Exception as exc:
            logger.error("Analysis failed: %s", exc)
            if not request.future.done():
                request.future.set_exception(exc)
            return
        finally:
            self._inflight.discard(request.future)
            self._by_key.pop(self._key(request.text), None)

        self.cache.put(self._key(request.text), record)
        if not request.future.done():
            request.future.set_result(record)
