"""Google Gemini LLM provider.

Uses the google-genai SDK. The client is created lazily, so the app loads
without an API key and only fails on an actual call.
"""

from __future__ import annotations

import logging

from google import genai
from google.genai import types

from saaksh.errors import ConfigurationError
from saaksh.llm import register_provider
from saaksh.llm.base import BaseLLMProvider, LLMResponse

logger = logging.getLogger(__name__)


@register_provider("gemini")
class GeminiProvider(BaseLLMProvider):
    """Provider for Google Gemini models."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._client: genai.Client | None = None

    @property
    def provider_name(self) -> str:
        return "gemini"

    def _get_client(self) -> genai.Client:
        if self._client is None:
            if not self.api_key:
                raise ConfigurationError(
                    "GEMINI_API_KEY not set. Get one from "
                    "https://aistudio.google.com/apikey"
                )
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def _do_complete(
        self,
        prompt: str,
        system: str,
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> LLMResponse:
        client = self._get_client()

        config = types.GenerateContentConfig(
            temperature=temperature,
            max_output_tokens=max_tokens,
            system_instruction=system or None,
            response_mime_type="application/json" if self.json_mode else None,
        )
        response = await client.aio.models.generate_content(
            model=model,
            contents=prompt,
            config=config,
        )

        usage = response.usage_metadata
        return LLMResponse(
            text=response.text or "",
            input_tokens=(usage.prompt_token_count or 0) if usage else 0,
            output_tokens=(usage.candidates_token_count or 0) if usage else 0,
            model=model,
        )
