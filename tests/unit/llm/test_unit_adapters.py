# tests/unit/llm/test_unit_adapters.py — v1
"""Tests for the Anthropic and OpenAI adapters with mocked SDK clients."""

from __future__ import annotations

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from designscout.core.models import GridSelection
from designscout.llm.adapters.anthropic_adapter import AnthropicAdapter
from designscout.llm.models import ImageInput, Message


def _anthropic_response(*blocks):
    return SimpleNamespace(
        content=list(blocks),
        usage=SimpleNamespace(input_tokens=900, output_tokens=30),
        model="claude-sonnet-4-20250514",
    )


@pytest.fixture
def anthropic_adapter():
    adapter = AnthropicAdapter(api_key="sk-test")
    sdk = MagicMock()
    sdk.messages.create = AsyncMock()
    adapter._AnthropicAdapter__client = sdk
    return adapter, sdk


class TestAnthropicAdapter:
    @pytest.mark.asyncio
    async def test_structured_output_uses_forced_tool(self, anthropic_adapter):
        adapter, sdk = anthropic_adapter
        sdk.messages.create.return_value = _anthropic_response(
            SimpleNamespace(type="tool_use", input={"best_images": [{"number": 2, "reason": "r"}]})
        )
        resp = await adapter.complete_with_vision(
            [Message(role="user", content="rank")],
            [ImageInput(data=b"png")],
            system="sys",
            response_format=GridSelection,
        )
        assert json.loads(resp.content)["best_images"][0]["number"] == 2
        kwargs = sdk.messages.create.call_args.kwargs
        assert kwargs["tool_choice"] == {"type": "tool", "name": "structured_output"}
        assert kwargs["system"] == "sys"
        content = kwargs["messages"][-1]["content"]
        assert content[0]["type"] == "image"
        assert content[0]["source"]["data"] == "cG5n"
        assert content[-1] == {"type": "text", "text": "rank"}

    @pytest.mark.asyncio
    async def test_plain_text(self, anthropic_adapter):
        adapter, sdk = anthropic_adapter
        sdk.messages.create.return_value = _anthropic_response(
            SimpleNamespace(type="text", text="I pick 1 and 3")
        )
        resp = await adapter.complete_with_vision(
            [Message(role="user", content="rank")], [ImageInput(data=b"png")]
        )
        assert resp.content == "I pick 1 and 3"
        assert resp.provider == "anthropic"
        assert "tools" not in sdk.messages.create.call_args.kwargs


class TestAnthropicMessages:
    def test_every_turn_kept_in_order(self):
        built = AnthropicAdapter._build_messages(
            [
                Message(role="user", content="earlier brief"),
                Message(role="assistant", content="noted"),
                Message(role="user", content="rank"),
            ],
            [ImageInput(data=b"png")],
        )
        assert [m["role"] for m in built] == ["user", "assistant", "user"]
        assert built[0]["content"] == "earlier brief"
        assert built[1]["content"] == "noted"
        assert built[2]["content"][0]["type"] == "image"
        assert built[2]["content"][-1] == {"type": "text", "text": "rank"}

    def test_images_without_user_turn(self):
        built = AnthropicAdapter._build_messages([], [ImageInput(data=b"png")])
        assert built == [
            {
                "role": "user",
                "content": [
                    {
                        "type": "image",
                        "source": {"type": "base64", "media_type": "image/png", "data": "cG5n"},
                    },
                    {"type": "text", "text": ""},
                ],
            }
        ]
