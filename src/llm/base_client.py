# src/llm/base_client.py — v1
"""Abstract vision LLM client interface used by the ranking oracle."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel

from designscout.llm.models import ImageInput, LLMResponse, Message


class BaseLLMClient(ABC):
    """Unified interface for vision-capable LLM providers."""

    @abstractmethod
    async def complete_with_vision(
        self,
        messages: list[Message],
        images: list[ImageInput],
        system: str | None = None,
        max_tokens: int = 2048,
        response_format: type[BaseModel] | None = None,
    ) -> LLMResponse:
        """Vision completion (images + text).

        When ``response_format`` is given the provider is asked to answer
        with JSON matching that model's schema; the content is still returned
        as raw text for the caller to parse.
        """

    @property
    @abstractmethod
    def supports_vision(self) -> bool:
        """Whether this provider/model accepts image inputs."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identifier (anthropic, openai)."""
