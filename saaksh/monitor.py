"""Monitor flows: wire oracle, dispatcher and sources together from config."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from saaksh.cache import ResultCache
from saaksh.config import (
    get_batch_config,
    get_cache_config,
    get_llm_provider_config,
)
from saaksh.errors import ConfigurationError
from saaksh.ingest import SOURCES
from saaksh.ingest.base import BaseSource, ProgressCallback
from saaksh.llm import build_provider
from saaksh.llm.batch import BatchDispatcher
from saaksh.llm.oracle import OracleAdapter
from saaksh.models import NarrativeCluster, PlatformAnalysisResult, TrendingTopic
from saaksh.process.cluster import ClusterSettings, detect_clusters
from saaksh.process.trends import trending_topics
from saaksh.schema import AnalysisRecord

logger = logging.getLogger(__name__)


@dataclass
class MonitorReport:
    """Outcome of one platform monitoring pass."""

    platform: str
    query: str
    items_fetched: int = 0
    results: list[PlatformAnalysisResult] = field(default_factory=list)
    clusters: list[NarrativeCluster] = field(default_factory=list)
    trends: list[TrendingTopic] = field(default_factory=list)


def build_oracle(config: dict) -> OracleAdapter:
    """Primary provider plus an optional fallback.

    A fallback whose credentials are missing is skipped with a warning;
    a misconfigured primary is fatal.
    """
    primary = build_provider(get_llm_provider_config(config, "primary"))

    fallback = None
    fallback_cfg = get_llm_provider_config(config, "fallback")
    if fallback_cfg:
        try:
            fallback = build_provider(fallback_cfg)
        except ConfigurationError as exc:
            logger.warning("Fallback provider disabled: %s", exc)

    logger.info(
        "Oracle ready: primary=%s fallback=%s",
        primary.provider_name, fallback.provider_name if fallback else "none",
    )
    return OracleAdapter(primary, fallback)


def build_dispatcher(config: dict, oracle: OracleAdapter | None = None) -> BatchDispatcher:
    cache_cfg = get_cache_config(config)
    batch_cfg = get_batch_config(config)
    return BatchDispatcher(
        oracle or build_oracle(config),
        cache=ResultCache(
            ttl_seconds=cache_cfg["ttl_seconds"],
            max_entries=cache_cfg["max_entries"],
        ),
        batch_size=batch_cfg["size"],
        debounce_seconds=batch_cfg["debounce_seconds"],
        fingerprint_length=cache_cfg["fingerprint_length"],
    )


class Monitor:
    """Long-lived entry point owning one dispatcher and one source per platform.

    Reuse a single instance for the life of the process: the dispatcher's
    text cache and each source's per-item cache only pay off across calls
    made through the same Monitor.
    """

    def __init__(self, config: dict, dispatcher: BatchDispatcher | None = None):
        self.config = config
        self._dispatcher = dispatcher
        self._sources: dict[str, BaseSource] = {}

    @property
    def dispatcher(self) -> BatchDispatcher:
        if self._dispatcher is None:
            self._dispatcher = build_dispatcher(self.config)
        return self._dispatcher

    def source(self, platform: str) -> BaseSource:
        """The source for ``platform``, created on first use."""
        if platform not in self._sources:
            self._sources[platform] = SOURCES[platform](self.config, self.dispatcher)
        return self._sources[platform]

    async def analyze_text(self, text: str) -> AnalysisRecord:
        """Analyze one piece of free text through the cache and batch queue."""
        if not text or not text.strip():
            raise ValueError("Cannot analyze empty text")
        return await self.dispatcher.analyze(text)

    async def run_reddit(
        self,
        subreddit: str,
        sort: str = "hot",
        limit: int = 10,
        search: str | None = None,
        include_comments: bool | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> MonitorReport:
        """Fetch (or search) a subreddit, analyze each post, then cluster."""
        source = self.source("reddit")
        if search:
            posts = await source.search_posts(search, subreddit=subreddit, limit=limit)
        else:
            posts = await source.fetch_posts(subreddit, sort=sort, limit=limit)

        report = MonitorReport(
            platform="reddit",
            query=search or f"r/{subreddit}",
            items_fetched=len(posts),
        )
        if posts:
            report.results = await source.analyze_batch(
                posts, on_progress, include_comments=include_comments,
            )
        return self._finish_report(report)

    async def run_youtube(
        self,
        query: str,
        max_results: int = 10,
        order: str = "relevance",
        on_progress: ProgressCallback | None = None,
    ) -> MonitorReport:
        """Search YouTube, analyze each video with its comments, then cluster."""
        source = self.source("youtube")
        videos = await source.search_videos(query, max_results=max_results, order=order)

        report = MonitorReport(platform="youtube", query=query, items_fetched=len(videos))
        if videos:
            report.results = await source.analyze_batch(videos, on_progress)
        return self._finish_report(report)

    def _finish_report(self, report: MonitorReport) -> MonitorReport:
        report.clusters = detect_clusters(
            report.results, ClusterSettings.from_config(self.config, report.platform),
        )
        report.trends = trending_topics(report.results)
        logger.info(
            "%s monitor '%s': %d/%d analyzed, %d clusters, %d trending topics",
            report.platform, report.query, len(report.results),
            report.items_fetched, len(report.clusters), len(report.trends),
        )
        return report
