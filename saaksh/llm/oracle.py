"""Oracle adapter: text in, validated AnalysisRecord out, with provider failover."""

from __future__ import annotations

import json
import logging
import re

from pydantic import ValidationError

from saaksh.errors import OracleError, OracleErrorKind
from saaksh.llm.base import BaseLLMProvider
from saaksh.llm.prompts import ANALYZE_CONTENT, SYSTEM_ANALYST
from saaksh.schema import AnalysisRecord, HighlightSpan, HighlightType

logger = logging.getLogger(__name__)

ANALYSIS_TEMPERATURE = 0.1
ANALYSIS_MAX_TOKENS = 8192


def _normalize_quotes(text: str) -> str:
    """Replace smart/curly quotes with straight quotes for JSON parsing."""
    return (
        text
        .replace("\u201c", '"')   # left double quote
        .replace("\u201d", '"')   # right double quote
        .replace("\u2018", "'")   # left single quote
        .replace("\u2019", "'")   # right single quote
    )


def _try_parse(text: str) -> dict | None:
    """Try json.loads with and without quote normalization."""
    for candidate in (text, _normalize_quotes(text)):
        try:
            data = json.loads(candidate)
        except (json.JSONDecodeError, ValueError):
            continue
        if isinstance(data, dict):
            return data
    return None


def extract_json(text: str) -> dict | None:
    """Extract a JSON object from LLM output that may contain fences or extra text."""
    result = _try_parse(text)
    if result is not None:
        return result

    fenced = re.search(r"```(?:json)?\s*\n?(.*?)\n?```", text, re.DOTALL)
    if fenced:
        result = _try_parse(fenced.group(1))
        if result is not None:
            return result

    brace = re.search(r"\{.*\}", text, re.DOTALL)
    if brace:
        result = _try_parse(brace.group(0))
        if result is not None:
            return result

    return None


def parse_analysis(raw: str, provider: str = "") -> AnalysisRecord:
    """Validate raw provider output against the AnalysisRecord schema."""
    data = extract_json(raw)
    if data is None:
        raise OracleError(
            OracleErrorKind.MALFORMED_RESPONSE,
            f"response is not a JSON object: {raw[:200]!r}",
            provider=provider,
        )
    try:
        return AnalysisRecord.model_validate(data)
    except ValidationError as exc:
        raise OracleError(
            OracleErrorKind.MALFORMED_RESPONSE,
            f"response does not match the analysis schema: {exc}",
            provider=provider,
        ) from exc


def reconcile_highlights(record: AnalysisRecord, text: str) -> AnalysisRecord:
    """Ensure the highlighted fragments concatenate back to ``text``.

    Providers do not always split the input faithfully. When they don't,
    the highlights collapse to one neutral span holding the whole input.
    """
    if record.reconstructed_text() == text:
        return record
    logger.debug(
        "Highlighted text does not reconstruct the input (%d spans); "
        "replacing with a single neutral span",
        len(record.highlighted_text),
    )
    return record.model_copy(update={
        "highlighted_text": (
            HighlightSpan(text=text, classification=HighlightType.NEUTRAL),
        ),
    })


class OracleAdapter:
    """Send text to the primary provider, failing over on rate limits.

    Retries happen inside each provider (see BaseLLMProvider.complete);
    this class only decides whether a failure moves on to the fallback.
    It neither reads nor writes any cache.
    """

    def __init__(
        self,
        primary: BaseLLMProvider,
        fallback: BaseLLMProvider | None = None,
    ):
        self.primary = primary
        self.fallback = fallback

    async def analyze(self, text: str) -> AnalysisRecord:
        if not text or not text.strip():
            raise ValueError("Cannot analyze empty text")

        try:
            return await self._analyze_with(self.primary, text)
        except OracleError as exc:
            if exc.kind is not OracleErrorKind.RATE_LIMITED or self.fallback is None:
                raise
            logger.warning(
                "%s rate limited (%s), falling back to %s",
                self.primary.provider_name, exc, self.fallback.provider_name,
            )

        return await self._analyze_with(self.fallback, text)

    async def _analyze_with(
        self, provider: BaseLLMProvider, text: str,
    ) -> AnalysisRecord:
        response = await provider.complete(
            ANALYZE_CONTENT.format(text=text),
            system=SYSTEM_ANALYST,
            temperature=ANALYSIS_TEMPERATURE,
            max_tokens=ANALYSIS_MAX_TOKENS,
        )
        record = parse_analysis(response.text, provider.provider_name)
        return reconcile_highlights(record, text)
