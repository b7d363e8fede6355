"""Text-completion clients used for role labelling (OpenAI or Claude)."""

from __future__ import annotations

from typing import Protocol

import anthropic
import openai
from anthropic import Anthropic
from anthropic.types import TextBlock
from openai import OpenAI

from vidscribe.config import Settings
from vidscribe.exceptions import CompletionError
from vidscribe.pipeline_config import CompletionProvider


class CompletionClient(Protocol):
    def complete(self, system_prompt: str, user_content: str) -> str: ...


class OpenAICompletionClient:
    """Chat completions via the OpenAI SDK. SDK-level retries are disabled."""

    source = "OpenAI"

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        temperature: float = 0.2,
        timeout: float = 300.0,
        client: OpenAI | None = None,
    ) -> None:
        self.model = model
        self.temperature = temperature
        self._client = client or OpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    def complete(self, system_prompt: str, user_content: str) -> str:
        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_content},
                ],
                temperature=self.temperature,
            )
        except openai.OpenAIError as e:
            raise CompletionError(self.source, str(e), e) from e

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise CompletionError(self.source, "response has no content")
        return content.strip()


class AnthropicCompletionClient:
    """Messages API via the Anthropic SDK. SDK-level retries are disabled."""

    source = "Claude"

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-20250514",
        temperature: float = 0.2,
        max_tokens: int = 16000,
        timeout: float = 300.0,
        client: Anthropic | None = None,
    ) -> None:
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._client = client or Anthropic(api_key=api_key, timeout=timeout, max_retries=0)

    def complete(self, system_prompt: str, user_content: str) -> str:
        try:
            response = self._client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                system=system_prompt,
                messages=[{"role": "user", "content": user_content}],
            )
        except anthropic.AnthropicError as e:
            raise CompletionError(self.source, str(e), e) from e

        # We only ask for plain text, so the first block should be a TextBlock
        block = response.content[0] if response.content else None
        if not isinstance(block, TextBlock) or not block.text.strip():
            raise CompletionError(self.source, "response has no text content")
        return block.text.strip()


def build_completion_client(
    settings: Settings, provider: CompletionProvider | None = None
) -> CompletionClient:
    """Create the completion client for *provider* (``settings.completion_provider`` by default)."""
    provider = provider or settings.completion_provider
    if provider is CompletionProvider.ANTHROPIC:
        return AnthropicCompletionClient(
            settings.anthropic_api_key,
            model=settings.anthropic_completion_model,
            temperature=settings.completion_temperature,
            max_tokens=settings.completion_max_tokens,
            timeout=settings.completion_timeout_seconds,
        )
    return OpenAICompletionClient(
        settings.openai_api_key,
        model=settings.openai_completion_model,
        temperature=settings.completion_temperature,
        timeout=settings.completion_timeout_seconds,
    )


def completion_api_key(settings: Settings, provider: CompletionProvider) -> tuple[str, str]:
    """Return ``(env var name, value)`` of the credential *provider* needs."""
    if provider is CompletionProvider.ANTHROPIC:
        return "ANTHROPIC_API_KEY", settings.anthropic_api_key
    return "OPENAI_API_KEY", settings.openai_api_key
