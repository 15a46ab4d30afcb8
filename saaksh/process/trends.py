"""Trending misinformation topics across a batch of analyzed items."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from saaksh.models import PlatformAnalysisResult, TrendingTopic

logger = logging.getLogger(__name__)


def trending_topics(
    results: Sequence[PlatformAnalysisResult],
    min_fake_risk: float = 50,
    limit: int = 5,
) -> list[TrendingTopic]:
    """Most frequent linguistic risk categories among high-risk items.

    Each category occurrence counts once and contributes the item's fake
    risk score to the category's average. Ties keep first-seen order.
    """
    counts: dict[str, int] = {}
    totals: dict[str, float] = {}

    for result in results:
        if result.fake_risk_score < min_fake_risk:
            continue
        for category in result.risk_categories:
            counts[category] = counts.get(category, 0) + 1
            totals[category] = totals.get(category, 0.0) + result.fake_risk_score

    topics = [
        TrendingTopic(topic=topic, count=count, average_risk=totals[topic] / count)
        for topic, count in counts.items()
    ]
    topics.sort(key=lambda t: t.count, reverse=True)
    return topics[:limit]
