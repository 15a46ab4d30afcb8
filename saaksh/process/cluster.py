"""Group analyzed items into narrative clusters.

Two keying schemes are supported:

- ``container``: items from the same subreddit/channel form a group.
- ``signature``: items sharing the same set of linguistic risk categories
  form a group, regardless of where they were posted.

and two ways of summarizing a group's threat level:

- ``mean_bucket``: average the ordinal threat values and bucket the mean.
- ``majority``: count discrete levels (critical if more than half are
  critical, high if more than half are high or critical, medium if any
  member is medium, low otherwise).

The two threat rules disagree on the same input, so they are separate,
named strategies.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass

from saaksh.config import get_cluster_config
from saaksh.errors import ConfigurationError
from saaksh.models import NarrativeCluster, PlatformAnalysisResult
from saaksh.schema import ThreatLevel

logger = logging.getLogger(__name__)

GROUP_BY_CONTAINER = "container"
GROUP_BY_SIGNATURE = "signature"
THREAT_MEAN_BUCKET = "mean_bucket"
THREAT_MAJORITY = "majority"

SIGNATURE_DELIMITER = "|"


def mean_bucket_threat(levels: Sequence[ThreatLevel]) -> ThreatLevel:
    """Mean of ordinals {low=1 .. critical=4}, bucketed at 1.5/2.5/3.5."""
    if not levels:
        return ThreatLevel.LOW
    mean = sum(level.ordinal for level in levels) / len(levels)
    return ThreatLevel.from_ordinal(mean)


def majority_threat(levels: Sequence[ThreatLevel]) -> ThreatLevel:
    """Plurality counting over discrete threat levels."""
    if not levels:
        return ThreatLevel.LOW
    half = len(levels) / 2
    critical = sum(1 for level in levels if level is ThreatLevel.CRITICAL)
    high = sum(1 for level in levels if level is ThreatLevel.HIGH)

    if critical > half:
        return ThreatLevel.CRITICAL
    if high + critical > half:
        return ThreatLevel.HIGH
    if any(level is ThreatLevel.MEDIUM for level in levels):
        return ThreatLevel.MEDIUM
    return ThreatLevel.LOW


THREAT_RULES = {
    THREAT_MEAN_BUCKET: mean_bucket_threat,
    THREAT_MAJORITY: majority_threat,
}


def risk_signature(result: PlatformAnalysisResult) -> str:
    """Sorted, delimiter-joined linguistic risk categories of a result."""
    return SIGNATURE_DELIMITER.join(sorted(result.risk_categories))


@dataclass
class ClusterSettings:
    group_by: str = GROUP_BY_CONTAINER
    threat_rule: str = THREAT_MEAN_BUCKET
    min_fake_risk: float = 60
    min_cluster_size: int = 2
    assign_cluster_ids: bool = False
    id_prefix: str = "cluster"

    def __post_init__(self):
        if self.group_by not in (GROUP_BY_CONTAINER, GROUP_BY_SIGNATURE):
            raise ConfigurationError(f"Unknown cluster grouping: {self.group_by}")
        if self.threat_rule not in THREAT_RULES:
            raise ConfigurationError(f"Unknown threat rule: {self.threat_rule}")

    @classmethod
    def from_config(cls, config: dict, platform: str) -> ClusterSettings:
        cfg = get_cluster_config(config, platform)
        return cls(
            group_by=cfg["group_by"],
            threat_rule=cfg["threat_rule"],
            min_fake_risk=cfg["min_fake_risk"],
            min_cluster_size=cfg["min_size"],
            assign_cluster_ids=cfg["assign_cluster_ids"],
            id_prefix=cfg.get("id_prefix") or f"{platform}_cluster",
        )


class NarrativeClusterDetector:
    """Detect clusters in a snapshot of analysis results."""

    def __init__(self, settings: ClusterSettings | None = None):
        self.settings = settings or ClusterSettings()

    def detect(self, results: Sequence[PlatformAnalysisResult]) -> list[NarrativeCluster]:
        settings = self.settings
        groups: dict[str, list[PlatformAnalysisResult]] = {}

        for result in results:
            # Ids from an earlier pass are not carried over
            if settings.assign_cluster_ids:
                result.narrative_cluster_id = None
            if result.fake_risk_score < settings.min_fake_risk:
                continue
            key = self._group_key(result)
            if not key:
                continue
            groups.setdefault(key, []).append(result)

        threat_rule = THREAT_RULES[settings.threat_rule]
        detected_at = time.time()
        clusters = []

        for key, members in groups.items():
            if len(members) < settings.min_cluster_size:
                continue

            cluster_id = self._cluster_id(key, len(clusters), detected_at)
            clusters.append(
                NarrativeCluster(
                    id=cluster_id,
                    key=key,
                    theme=self._theme(members),
                    member_ids=[m.item_id for m in members],
                    average_fake_risk=sum(m.fake_risk_score for m in members) / len(members),
                    average_threat_level=threat_rule([m.threat_level for m in members]),
                    detected_at=detected_at,
                ),
            )

            if settings.assign_cluster_ids:
                for member in members:
                    member.narrative_cluster_id = cluster_id

        logger.info(
            "Detected %d narrative clusters from %d results (group_by=%s, rule=%s)",
            len(clusters), len(results), settings.group_by, settings.threat_rule,
        )
        return clusters

    def _group_key(self, result: PlatformAnalysisResult) -> str:
        if self.settings.group_by == GROUP_BY_SIGNATURE:
            return risk_signature(result)
        return result.container

    def _cluster_id(self, key: str, index: int, detected_at: float) -> str:
        if self.settings.group_by == GROUP_BY_SIGNATURE:
            return f"{self.settings.id_prefix}_{index}"
        return f"{self.settings.id_prefix}_{key}_{int(detected_at * 1000)}"

    def _theme(self, members: list[PlatformAnalysisResult]) -> str:
        if self.settings.group_by == GROUP_BY_SIGNATURE:
            return "Items showing similar patterns: " + ", ".join(members[0].risk_categories)
        return "Multiple high-risk posts detected"


def detect_clusters(
    results: Sequence[PlatformAnalysisResult],
    settings: ClusterSettings | None = None,
) -> list[NarrativeCluster]:
    """Convenience wrapper around NarrativeClusterDetector."""
    return NarrativeClusterDetector(settings).detect(results)
