"""
Tests for the OpenAI and Anthropic providers.

The SDK clients are replaced with mocks; no network calls are made.
"""

import dataclasses
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import anthropic
import httpx
import openai
import pytest

from miniagent.domain.entities import (
    ErrorType,
    Message,
    MessageRole,
    ToolCall,
    ToolDefinition,
)
from miniagent.providers.anthropic import AnthropicProvider
from miniagent.providers.base import LLMProviderConfig, LLMProviderError
from miniagent.providers.openai import OpenAIProvider

REQUEST = httpx.Request("POST", "https://api.example.com/v1/messages")

READ_TOOL = ToolDefinition(
    name="read",
    description="Read a file",
    parameters={"type": "object", "properties": {"file_path": {"type": "string"}}},
)


def conversation_with_tool_round():
    calls = [
        ToolCall(id="call_1", name="read", arguments='{"file_path": "a.txt"}'),
        ToolCall(id="call_2", name="read", arguments='{"file_path": "b.txt"}'),
    ]
    return [
        Message(role=MessageRole.SYSTEM, content="You are helpful."),
        Message(role=MessageRole.USER, content="Compare a.txt and b.txt"),
        Message(role=MessageRole.ASSISTANT, tool_calls=calls),
        Message(role=MessageRole.TOOL, content="alpha", tool_call_id="call_1"),
        Message(role=MessageRole.TOOL, content="beta", tool_call_id="call_2"),
    ]


@pytest.fixture
def openai_provider():
    with patch("miniagent.providers.openai.AsyncOpenAI") as mock_cls:
        client = MagicMock()
        client.chat.completions.create = AsyncMock()
        client.close = AsyncMock()
        mock_cls.return_value = client
        yield OpenAIProvider(LLMProviderConfig(api_key="sk-test", model="gpt-4o"))


@pytest.fixture
def anthropic_provider():
    with patch("miniagent.providers.anthropic.AsyncAnthropic") as mock_cls:
        client = MagicMock()
        client.messages.create = AsyncMock()
        client.close = AsyncMock()
        mock_cls.return_value = client
        yield AnthropicProvider(
            LLMProviderConfig(api_key="sk-ant-test", model="claude-test", max_tokens=512)
        )


def openai_completion(content=None, tool_calls=None):
    message = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)], model="gpt-4o-2024")


def openai_tool_call(call_id, name, arguments):
    return SimpleNamespace(
        id=call_id, function=SimpleNamespace(name=name, arguments=arguments)
    )


class TestProviderConfig:
    def test_defaults(self):
        config = LLMProviderConfig(api_key="sk-test", model="gpt-4o")

        assert config.max_retries == 0
        assert config.temperature is None
        assert [f.name for f in dataclasses.fields(config)] == [
            "api_key",
            "model",
            "base_url",
            "timeout",
            "max_retries",
            "temperature",
            "max_tokens",
        ]


class TestOpenAIFormatting:
    """Tests for OpenAI request formatting."""

    def test_messages(self, openai_provider):
        api_messages = openai_provider._format_messages_for_api(
            conversation_with_tool_round()
        )

        assert api_messages[0] == {"role": "system", "content": "You are helpful."}
        assert api_messages[1] == {"role": "user", "content": "Compare a.txt and b.txt"}
        assert api_messages[2]["role"] == "assistant"
        assert api_messages[2]["content"] is None
        assert api_messages[2]["tool_calls"][0] == {
            "id": "call_1",
            "type": "function",
            "function": {"name": "read", "arguments": '{"file_path": "a.txt"}'},
        }
        assert api_messages[3] == {"role": "tool", "tool_call_id": "call_1", "content": "alpha"}
        assert api_messages[4] == {"role": "tool", "tool_call_id": "call_2", "content": "beta"}

    @pytest.mark.asyncio
    async def test_request_kwargs(self, openai_provider):
        openai_provider.client.chat.completions.create.return_value = openai_completion("hi")

        await openai_provider.chat(
            [Message(role=MessageRole.USER, content="hello")], tools=[READ_TOOL]
        )

        kwargs = openai_provider.client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["max_tokens"] == 4096
        assert kwargs["tool_choice"] == "auto"
        assert kwargs["tools"] == [READ_TOOL.to_openai_format()]
        assert "temperature" not in kwargs

    @pytest.mark.asyncio
    async def test_no_tools_omits_tool_choice(self, openai_provider):
        openai_provider.client.chat.completions.create.return_value = openai_completion("hi")

        await openai_provider.chat([Message(role=MessageRole.USER, content="hello")])

        kwargs = openai_provider.client.chat.completions.create.call_args.kwargs
        assert "tools" not in kwargs
        assert "tool_choice" not in kwargs


class TestOpenAIResponses:
    """Tests for OpenAI response parsing and error mapping."""

    @pytest.mark.asyncio
    async def test_text_response(self, openai_provider):
        openai_provider.client.chat.completions.create.return_value = openai_completion("Done.")

        response = await openai_provider.chat([Message(role=MessageRole.USER, content="hi")])

        assert response.content == "Done."
        assert not response.has_tool_calls
        assert response.model == "gpt-4o-2024"

    @pytest.mark.asyncio
    async def test_tool_calls_keep_raw_arguments(self, openai_provider):
        openai_provider.client.chat.completions.create.return_value = openai_completion(
            tool_calls=[
                openai_tool_call("call_9", "read", '{"file_path": "x"}'),
                openai_tool_call("call_10", "bash", ""),
            ]
        )

        response = await openai_provider.chat([Message(role=MessageRole.USER, content="hi")])

        assert [(tc.id, tc.name, tc.arguments) for tc in response.tool_calls] == [
            ("call_9", "read", '{"file_path": "x"}'),
            ("call_10", "bash", "{}"),
        ]

    @pytest.mark.asyncio
    async def test_empty_choices(self, openai_provider):
        openai_provider.client.chat.completions.create.return_value = SimpleNamespace(
            choices=[], model="gpt-4o"
        )

        with pytest.raises(LLMProviderError, match="Empty response"):
            await openai_provider.chat([Message(role=MessageRole.USER, content="hi")])

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error, expected_type",
        [
            (openai.APITimeoutError(request=REQUEST), ErrorType.TIMEOUT),
            (
                openai.RateLimitError(
                    "slow down", response=httpx.Response(429, request=REQUEST), body=None
                ),
                ErrorType.RATE_LIMIT,
            ),
            (
                openai.AuthenticationError(
                    "bad key", response=httpx.Response(401, request=REQUEST), body=None
                ),
                ErrorType.FATAL,
            ),
            (openai.APIConnectionError(request=REQUEST), ErrorType.RECOVERABLE),
        ],
    )
    async def test_error_mapping(self, openai_provider, error, expected_type):
        openai_provider.client.chat.completions.create.side_effect = error

        with pytest.raises(LLMProviderError) as exc_info:
            await openai_provider.chat([Message(role=MessageRole.USER, content="hi")])

        assert exc_info.value.error_type == expected_type
        assert exc_info.value.original_error is error

    @pytest.mark.asyncio
    async def test_close(self, openai_provider):
        await openai_provider.close()

        openai_provider.client.close.assert_awaited_once()


def anthropic_message(*blocks):
    return SimpleNamespace(content=list(blocks), model="claude-test-001")


class TestAnthropicFormatting:
    """Tests for Anthropic request formatting."""

    def test_system_is_separate(self, anthropic_provider):
        system, api_messages = anthropic_provider._format_messages_for_api(
            conversation_with_tool_round()
        )

        assert system == "You are helpful."
        assert all(m["role"] != "system" for m in api_messages)

    def test_tool_use_blocks(self, anthropic_provider):
        _, api_messages = anthropic_provider._format_messages_for_api(
            conversation_with_tool_round()
        )

        assistant = api_messages[1]
        assert assistant["role"] == "assistant"
        assert assistant["content"][0] == {
            "type": "tool_use",
            "id": "call_1",
            "name": "read",
            "input": {"file_path": "a.txt"},
        }

    def test_consecutive_tool_results_share_one_user_turn(self, anthropic_provider):
        _, api_messages = anthropic_provider._format_messages_for_api(
            conversation_with_tool_round()
        )

        assert len(api_messages) == 3
        results = api_messages[2]
        assert results["role"] == "user"
        assert results["content"] == [
            {"type": "tool_result", "tool_use_id": "call_1", "content": "alpha"},
            {"type": "tool_result", "tool_use_id": "call_2", "content": "beta"},
        ]

    @pytest.mark.asyncio
    async def test_request_kwargs(self, anthropic_provider):
        anthropic_provider.client.messages.create.return_value = anthropic_message(
            SimpleNamespace(type="text", text="hi")
        )

        await anthropic_provider.chat(conversation_with_tool_round(), tools=[READ_TOOL])

        kwargs = anthropic_provider.client.messages.create.call_args.kwargs
        assert kwargs["model"] == "claude-test"
        assert kwargs["max_tokens"] == 512
        assert kwargs["system"] == "You are helpful."
        assert kwargs["tools"] == [READ_TOOL.to_anthropic_format()]


class TestAnthropicResponses:
    """Tests for Anthropic response parsing and error mapping."""

    @pytest.mark.asyncio
    async def test_text_blocks_are_joined(self, anthropic_provider):
        anthropic_provider.client.messages.create.return_value = anthropic_message(
            SimpleNamespace(type="text", text="Hello, "),
            SimpleNamespace(type="text", text="world"),
        )

        response = await anthropic_provider.chat([Message(role=MessageRole.USER, content="hi")])

        assert response.content == "Hello, world"
        assert response.model == "claude-test-001"

    @pytest.mark.asyncio
    async def test_tool_use_becomes_json_arguments(self, anthropic_provider):
        anthropic_provider.client.messages.create.return_value = anthropic_message(
            SimpleNamespace(type="text", text="Let me look."),
            SimpleNamespace(type="tool_use", id="toolu_1", name="read", input={"file_path": "a"}),
        )

        response = await anthropic_provider.chat([Message(role=MessageRole.USER, content="hi")])

        assert response.content == "Let me look."
        assert response.has_tool_calls
        call = response.tool_calls[0]
        assert (call.id, call.name) == ("toolu_1", "read")
        assert json.loads(call.arguments) == {"file_path": "a"}

    @pytest.mark.asyncio
    async def test_no_text_gives_none_content(self, anthropic_provider):
        anthropic_provider.client.messages.create.return_value = anthropic_message(
            SimpleNamespace(type="tool_use", id="toolu_1", name="bash", input={})
        )

        response = await anthropic_provider.chat([Message(role=MessageRole.USER, content="hi")])

        assert response.content is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error, expected_type",
        [
            (anthropic.APITimeoutError(request=REQUEST), ErrorType.TIMEOUT),
            (
                anthropic.RateLimitError(
                    "slow down", response=httpx.Response(429, request=REQUEST), body=None
                ),
                ErrorType.RATE_LIMIT,
            ),
            (
                anthropic.AuthenticationError(
                    "bad key", response=httpx.Response(401, request=REQUEST), body=None
                ),
                ErrorType.FATAL,
            ),
            (anthropic.APIConnectionError(request=REQUEST), ErrorType.RECOVERABLE),
        ],
    )
    async def test_error_mapping(self, anthropic_provider, error, expected_type):
        anthropic_provider.client.messages.create.side_effect = error

        with pytest.raises(LLMProviderError) as exc_info:
            await anthropic_provider.chat([Message(role=MessageRole.USER, content="hi")])

        assert exc_info.value.error_type == expected_type
