# tests/unit/llm/test_unit_client_factory.py — v1
"""Tests for llm/client_factory.py — provider registry and oracle client."""

from __future__ import annotations

import pytest

from designscout.config.settings import Settings
from designscout.llm.adapters.anthropic_adapter import AnthropicAdapter
from designscout.llm.adapters.openai_adapter import OpenAIAdapter
from designscout.llm.client_factory import (
    UnsupportedProviderError,
    create_llm_client,
    create_oracle_client,
    parse_assignment,
)


class TestParseAssignment:
    def test_valid(self):
        assert parse_assignment("openai:gpt-4o") == ("openai", "gpt-4o")

    def test_model_with_colon(self):
        assert parse_assignment("anthropic:claude:latest") == ("anthropic", "claude:latest")

    def test_malformed(self):
        assert parse_assignment("gpt-4o") is None
        assert parse_assignment("") is None


class TestCreateLLMClient:
    def test_anthropic(self):
        client = create_llm_client("anthropic", "claude-sonnet-4-20250514")
        assert isinstance(client, AnthropicAdapter)
        assert client.provider_name == "anthropic"
        assert client.supports_vision

    def test_openai(self):
        client = create_llm_client("openai", "gpt-4o")
        assert isinstance(client, OpenAIAdapter)

    def test_unknown_provider(self):
        with pytest.raises(UnsupportedProviderError, match="mistral"):
            create_llm_client("mistral", "large")

    def test_api_key_from_settings(self):
        s = Settings(_env_file=None, anthropic_api_key="sk-test")
        client = create_llm_client("anthropic", "m", settings=s)
        assert client._api_key == "sk-test"


class TestCreateOracleClient:
    def test_from_provider_and_model(self):
        s = Settings(_env_file=None, oracle_provider="openai", oracle_model="gpt-4o")
        assert isinstance(create_oracle_client(s), OpenAIAdapter)

    def test_provider_prefix_in_model(self):
        s = Settings(_env_file=None, oracle_provider="anthropic", oracle_model="openai:gpt-4o-mini")
        client = create_oracle_client(s)
        assert isinstance(client, OpenAIAdapter)
        assert client._model == "gpt-4o-mini"
