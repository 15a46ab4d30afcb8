"""Core data models for platform monitoring."""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from saaksh.schema import AnalysisRecord, LinguisticRisk, ThreatLevel


@dataclass
class RedditComment:
    id: str
    author: str
    body: str
    score: int = 0
    created: float = 0.0


@dataclass
class RedditPost:
    """A submission from Reddit's listing or search endpoints."""

    id: str
    subreddit: str
    title: str
    selftext: str = ""
    author: str = ""
    score: int = 0
    upvote_ratio: float = 0.0
    num_comments: int = 0
    created: float = 0.0
    url: str = ""
    permalink: str = ""


@dataclass
class YouTubeComment:
    id: str
    author_display_name: str
    text_display: str
    like_count: int = 0
    published_at: str = ""
    video_id: str = ""


@dataclass
class YouTubeVideo:
    """A video returned by the YouTube Data API (search + details)."""

    id: str
    title: str
    description: str
    channel_id: str
    channel_title: str
    published_at: str = ""
    view_count: int = 0
    like_count: int = 0
    comment_count: int = 0
    thumbnail_url: str = ""
    duration: str = ""
    tags: list[str] = field(default_factory=list)

    @property
    def url(self) -> str:
        return f"https://www.youtube.com/watch?v={self.id}"


@dataclass
class PlatformAnalysisResult:
    """An analysis record wrapped with the platform item it came from.

    The record itself is immutable; only ``narrative_cluster_id`` is set
    after the fact, by signature-keyed clustering.
    """

    item_id: str
    container: str  # subreddit or channel
    title: str
    url: str
    analysis: AnalysisRecord
    top_comments: list = field(default_factory=list)
    analyzed_at: float = field(default_factory=time.time)
    narrative_cluster_id: str | None = None

    @property
    def credibility_score(self) -> float:
        return self.analysis.credibility_score

    @property
    def fake_risk_score(self) -> float:
        return self.analysis.fake_risk_score

    @property
    def threat_level(self) -> ThreatLevel:
        return self.analysis.threat_level

    @property
    def linguistic_risks(self) -> tuple[LinguisticRisk, ...]:
        return self.analysis.linguistic_risks

    @property
    def risk_categories(self) -> list[str]:
        return self.analysis.risk_categories


@dataclass
class RedditAnalysisResult(PlatformAnalysisResult):
    post_text: str = ""

    @property
    def subreddit(self) -> str:
        return self.container


@dataclass
class YouTubeAnalysisResult(PlatformAnalysisResult):
    description: str = ""
    published_at: str = ""
    view_count: int = 0
    comment_count: int = 0
    thumbnail_url: str = ""

    @property
    def channel_title(self) -> str:
        return self.container


@dataclass
class NarrativeCluster:
    """A group of analyzed items sharing correlated risk signals."""

    id: str
    key: str  # subreddit name or risk signature
    theme: str
    member_ids: list[str]
    average_fake_risk: float
    average_threat_level: ThreatLevel
    detected_at: float = field(default_factory=time.time)

    @property
    def size(self) -> int:
        return len(self.member_ids)


@dataclass
class TrendingTopic:
    """A linguistic risk category recurring across high-risk items."""

    topic: str
    count: int
    average_risk: float
