# src/llm/adapters/anthropic_adapter.py — v1
"""Anthropic Claude adapter implementing BaseLLMClient.

Grid images are sent as base64 image blocks ahead of the prompt text.
Structured output is obtained through a forced tool call whose input schema
is the requested response model.
"""

from __future__ import annotations

import base64
import json
import logging
import time
from typing import Any

from pydantic import BaseModel

from designscout.llm.base_client import BaseLLMClient
from designscout.llm.models import ImageInput, LLMResponse, Message

logger = logging.getLogger(__name__)

_TOOL_NAME = "structured_output"


class AnthropicAdapter(BaseLLMClient):
    """Adapter for Anthropic Claude models."""

    def __init__(
        self,
        model: str = "claude-sonnet-4-20250514",
        api_key: str | None = None,
        temperature: float = 0.2,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._temperature = temperature
        self.__client = None  # Lazy initialization

    @property
    def _client(self):
        """Lazy-init Anthropic client (only on first API call)."""
        if self.__client is None:
            try:
                import anthropic
            except ImportError as e:
                raise ImportError(
                    "anthropic package required: pip install designscout[anthropic]"
                ) from e
            self.__client = anthropic.AsyncAnthropic(api_key=self._api_key or "")
        return self.__client

    async def complete_with_vision(
        self,
        messages: list[Message],
        images: list[ImageInput],
        system: str | None = None,
        max_tokens: int = 2048,
        response_format: type[BaseModel] | None = None,
    ) -> LLMResponse:
        """Vision completion via the Anthropic Messages API."""
        params: dict[str, Any] = {
            "model": self._model,
            "max_tokens": max_tokens,
            "temperature": self._temperature,
            "messages": self._build_messages(messages, images),
        }
        if system:
            params["system"] = system
        if response_format is not None:
            params["tools"] = [
                {
                    "name": _TOOL_NAME,
                    "description": "Return the selection matching the schema",
                    "input_schema": response_format.model_json_schema(),
                }
            ]
            params["tool_choice"] = {"type": "tool", "name": _TOOL_NAME}

        start = time.monotonic()
        response = await self._client.messages.create(**params)
        latency_ms = int((time.monotonic() - start) * 1000)

        content = self._extract_content(response, structured=response_format is not None)
        logger.debug(
            "Anthropic vision call: model=%s, %d images, %dms",
            response.model, len(images), latency_ms,
        )

        return LLMResponse(
            content=content,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            model=response.model,
            provider="anthropic",
            latency_ms=latency_ms,
            raw_response=response,
        )

    @property
    def supports_vision(self) -> bool:
        return True

    @property
    def provider_name(self) -> str:
        return "anthropic"

    # --- Internal helpers ---

    @staticmethod
    def _build_messages(
        messages: list[Message], images: list[ImageInput]
    ) -> list[dict[str, Any]]:
        """Keep every turn in order; the images lead the last user turn."""
        image_blocks: list[dict[str, Any]] = [
            {
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": img.media_type,
                    "data": base64.b64encode(img.data).decode("ascii"),
                },
            }
            for img in images
        ]

        last_user = max(
            (i for i, m in enumerate(messages) if m.role == "user"), default=None
        )
        built: list[dict[str, Any]] = []
        for index, m in enumerate(messages):
            if index == last_user:
                content = [*image_blocks, {"type": "text", "text": m.content}]
                built.append({"role": "user", "content": content})
            else:
                built.append({"role": m.role, "content": m.content})
        if last_user is None:
            content = [*image_blocks, {"type": "text", "text": ""}]
            built.append({"role": "user", "content": content})
        return built

    @staticmethod
    def _extract_content(response: Any, structured: bool) -> str:
        """Extract text (or forced tool input as JSON) from content blocks."""
        text = ""
        for block in response.content:
            block_type = getattr(block, "type", None)
            if structured and block_type == "tool_use":
                return json.dumps(block.input)
            if block_type == "text" and not text:
                text = block.text
        return text
