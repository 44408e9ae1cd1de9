# tests/unit/llm/test_unit_base_client.py — v1
"""Tests for llm/base_client.py and llm/models.py."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from designscout.llm.base_client import BaseLLMClient
from designscout.llm.models import ImageInput, LLMResponse, Message


class TestBaseLLMClient:
    def test_cannot_instantiate(self):
        with pytest.raises(TypeError):
            BaseLLMClient()  # type: ignore[abstract]

    def test_has_required_methods(self):
        assert hasattr(BaseLLMClient, "complete_with_vision")
        assert hasattr(BaseLLMClient, "supports_vision")
        assert hasattr(BaseLLMClient, "provider_name")


class TestModels:
    def test_message_roles(self):
        assert Message(role="user", content="hi").role == "user"
        with pytest.raises(ValidationError):
            Message(role="system", content="hi")

    def test_image_input_defaults(self):
        img = ImageInput(data=b"\x89PNG")
        assert img.media_type == "image/png"
        assert img.source_id is None

    def test_response_defaults(self):
        resp = LLMResponse(content="{}", model="m", provider="p")
        assert resp.input_tokens == 0
        assert resp.latency_ms == 0
