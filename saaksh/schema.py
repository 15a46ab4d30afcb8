"""Structured verdict returned by the analysis oracle.

The wire format (what providers must return) uses camelCase keys, the
Python side uses snake_case attributes. Records are frozen and use tuples
for their collections, so a record handed out by the cache can be shared
between callers safely.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ThreatLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def ordinal(self) -> int:
        return _THREAT_ORDINALS[self]

    @classmethod
    def from_ordinal(cls, value: float) -> ThreatLevel:
        """Bucket an averaged ordinal back into a level."""
        if value >= 3.5:
            return cls.CRITICAL
        if value >= 2.5:
            return cls.HIGH
        if value >= 1.5:
            return cls.MEDIUM
        return cls.LOW


_THREAT_ORDINALS = {
    ThreatLevel.LOW: 1,
    ThreatLevel.MEDIUM: 2,
    ThreatLevel.HIGH: 3,
    ThreatLevel.CRITICAL: 4,
}


class ClaimVerdict(str, Enum):
    VERIFIED = "verified"
    UNVERIFIED = "unverified"
    REFUTED = "refuted"


class HighlightType(str, Enum):
    SUSPICIOUS = "suspicious"
    VERIFIED = "verified"
    NEUTRAL = "neutral"


class OracleModel(BaseModel):
    """Base for oracle payload models: frozen, camelCase on the wire."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


Score = Annotated[float, Field(ge=0, le=100)]


class LinguisticRisk(OracleModel):
    category: str = Field(alias="type")
    severity: Score
    description: str
    found_phrases: tuple[str, ...]


class EmotionalTone(OracleModel):
    anger: float = Field(ge=0)
    fear: float = Field(ge=0)
    urgency: float = Field(ge=0)
    neutrality: float = Field(ge=0)
    joy: float = Field(ge=0)


class ViralityRisk(OracleModel):
    score: Score
    triggers: tuple[str, ...]
    potential_impact: str


class ClaimBreakdown(OracleModel):
    claim: str
    verdict: ClaimVerdict
    source_relevance: Score
    explanation: str


class NewsRelevance(OracleModel):
    topic_match: Score
    top_trusted_sources: tuple[str, ...]
    summary_of_verified_facts: str


class HighlightSpan(OracleModel):
    text: str
    classification: HighlightType = Field(alias="type")
    tooltip: str | None = None


class AnalysisRecord(OracleModel):
    """The oracle's verdict for one piece of content."""

    language: str
    credibility_score: Score
    fake_risk_score: Score
    threat_level: ThreatLevel
    linguistic_risks: tuple[LinguisticRisk, ...]
    emotional_tone: EmotionalTone
    virality_risk: ViralityRisk
    claims: tuple[ClaimBreakdown, ...]
    news_relevance: NewsRelevance
    highlighted_text: tuple[HighlightSpan, ...]

    @property
    def risk_categories(self) -> list[str]:
        return [risk.category for risk in self.linguistic_risks]

    def reconstructed_text(self) -> str:
        return "".join(span.text for span in self.highlighted_text)

    def to_wire(self) -> dict:
        """Serialize back to the camelCase oracle format."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def unknown(cls) -> AnalysisRecord:
        """Inert placeholder used when an item could not be analyzed."""
        return cls(
            language="unknown",
            credibility_score=50,
            fake_risk_score=0,
            threat_level=ThreatLevel.LOW,
            linguistic_risks=(),
            emotional_tone=EmotionalTone(
                anger=0, fear=0, urgency=0, neutrality=100, joy=0,
            ),
            virality_risk=ViralityRisk(
                score=0, triggers=(), potential_impact="Unknown",
            ),
            claims=(),
            news_relevance=NewsRelevance(
                topic_match=0, top_trusted_sources=(), summary_of_verified_facts="",
            ),
            highlighted_text=(),
        )
