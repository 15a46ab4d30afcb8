"""Anthropic Claude LLM provider."""

from __future__ import annotations

import logging

import anthropic

from saaksh.llm import register_provider
from saaksh.llm.base import BaseLLMProvider, LLMResponse

logger = logging.getLogger(__name__)


@register_provider("anthropic")
class AnthropicProvider(BaseLLMProvider):
    """Provider for Anthropic Claude models."""

    @property
    def provider_name(self) -> str:
        return "anthropic"

    async def _do_complete(
        self,
        prompt: str,
        system: str,
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> LLMResponse:
        # SDK retries are disabled; BaseLLMProvider owns the retry policy
        client = anthropic.AsyncAnthropic(
            api_key=self.api_key, max_retries=0, timeout=self.timeout,
        )

        kwargs = {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            kwargs["system"] = system

        response = await client.messages.create(**kwargs)

        text = response.content[0].text if response.content else ""

        return LLMResponse(
            text=text,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            model=model,
        )
