"""Shared test fixtures."""

from __future__ import annotations

import copy

import pytest

from saaksh.config import load_config
from saaksh.models import PlatformAnalysisResult
from saaksh.schema import AnalysisRecord

SAMPLE_TEXT = "Breaking: vaccines contain microchips, doctors confirm!"

SAMPLE_PAYLOAD = {
    "language": "English",
    "credibilityScore": 12,
    "fakeRiskScore": 88,
    "threatLevel": "high",
    "linguisticRisks": [
        {
            "type": "Fear-mongering",
            "severity": 80,
            "description": "Invokes fear about vaccine safety.",
            "foundPhrases": ["vaccines contain microchips"],
        },
    ],
    "emotionalTone": {"anger": 10, "fear": 70, "urgency": 60, "neutrality": 5, "joy": 0},
    "viralityRisk": {
        "score": 75,
        "triggers": ["Breaking"],
        "potentialImpact": "Could increase vaccine hesitancy.",
    },
    "claims": [
        {
            "claim": "Vaccines contain microchips",
            "verdict": "refuted",
            "sourceRelevance": 95,
            "explanation": "No vaccine contains tracking hardware.",
        },
    ],
    "newsRelevance": {
        "topicMatch": 40,
        "topTrustedSources": ["WHO", "Reuters"],
        "summaryOfVerifiedFacts": "Health agencies have repeatedly debunked this claim.",
    },
    "highlightedText": [
        {"text": "Breaking: ", "type": "neutral"},
        {"text": "vaccines contain microchips", "type": "suspicious", "tooltip": "Debunked claim"},
        {"text": ", doctors confirm!", "type": "neutral"},
    ],
}


@pytest.fixture
def sample_config(tmp_path):
    """Minimal config for testing (no real API keys)."""
    config_text = """
llm:
  primary: mock
  fallback: ""
  max_retries: 1
  initial_backoff: 0.01
  providers:
    mock:
      type: "openai_compatible"
      api_key: "test-key"
      base_url: "http://localhost:9999"
      default_model: "test-model"
      json_mode: true

cache:
  ttl_seconds: 60
  max_entries: 10

batch:
  size: 2
  debounce_seconds: 0.01

sources:
  reddit:
    client_id: ""
    client_secret: ""
    min_interval: 0
    retry_delay: 0.01
    batch_delay: 0
  youtube:
    api_key: "test-youtube-key"
    min_interval: 0
    retry_delay: 0.01
    batch_delay: 0

logging:
  level: debug
  file: "LOG_PATH_PLACEHOLDER"
"""
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text(
        config_text.replace("LOG_PATH_PLACEHOLDER", str(tmp_path / "saaksh.log")),
    )
    return load_config(str(cfg_path))


@pytest.fixture
def analysis_payload():
    """Wire-format oracle response for SAMPLE_TEXT."""
    return copy.deepcopy(SAMPLE_PAYLOAD)


@pytest.fixture
def make_record():
    """Factory for AnalysisRecord with the interesting fields overridable."""

    def _make(
        fake_risk: float = 88,
        threat: str = "high",
        categories: tuple[str, ...] = ("Fear-mongering",),
        credibility: float = 12,
    ) -> AnalysisRecord:
        payload = copy.deepcopy(SAMPLE_PAYLOAD)
        payload["fakeRiskScore"] = fake_risk
        payload["threatLevel"] = threat
        payload["credibilityScore"] = credibility
        payload["linguisticRisks"] = [
            {
                "type": category,
                "severity": 50,
                "description": f"{category} detected",
                "foundPhrases": [],
            }
            for category in categories
        ]
        return AnalysisRecord.model_validate(payload)

    return _make


@pytest.fixture
def make_result(make_record):
    """Factory for platform results wrapping a generated record."""

    def _make(
        item_id: str,
        container: str = "worldnews",
        fake_risk: float = 88,
        threat: str = "high",
        categories: tuple[str, ...] = ("Fear-mongering",),
    ) -> PlatformAnalysisResult:
        return PlatformAnalysisResult(
            item_id=item_id,
            container=container,
            title=f"Item {item_id}",
            url=f"https://example.com/{item_id}",
            analysis=make_record(fake_risk=fake_risk, threat=threat, categories=categories),
        )

    return _make


@pytest.fixture
def sample_text():
    return SAMPLE_TEXT
