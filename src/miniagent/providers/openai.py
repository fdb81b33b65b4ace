"""
OpenAI GPT LLM Provider.

Implements the ILLMProvider interface for OpenAI's chat completions API.
Any OpenAI-compatible endpoint works through ``base_url``.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from ..domain.entities import (
    ErrorType,
    Message,
    MessageRole,
    ModelResponse,
    ToolCall,
    ToolDefinition,
)
from .base import BaseLLMProvider, LLMProviderConfig, LLMProviderError

logger = logging.getLogger(__name__)

# Lazy import to avoid requiring openai if not used
try:
    import openai
    from openai import AsyncOpenAI

    OPENAI_AVAILABLE = True
except ImportError:
    OPENAI_AVAILABLE = False
    openai = None
    AsyncOpenAI = None


class OpenAIProvider(BaseLLMProvider):
    """OpenAI GPT provider implementation.

    Usage:
        config = LLMProviderConfig(api_key="sk-...", model="gpt-4o")
        provider = OpenAIProvider(config)

        response = await provider.chat(messages, tools)
        if response.has_tool_calls:
            ...
    """

    DEFAULT_MODEL = "gpt-4o"

    def __init__(self, config: LLMProviderConfig):
        """Initialize the OpenAI provider.

        Args:
            config: Provider configuration

        Raises:
            ImportError: If openai package is not installed
        """
        if not OPENAI_AVAILABLE:
            raise ImportError(
                "openai package is required for OpenAIProvider. "
                "Install with: pip install openai"
            )

        super().__init__(config)

        self.client = AsyncOpenAI(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout=config.timeout,
            max_retries=config.max_retries,
        )

    def _format_messages_for_api(self, messages: list[Message]) -> list[dict[str, Any]]:
        """Convert messages to OpenAI format.

        OpenAI includes system messages in the messages array and
        expects tool call arguments as the raw JSON string.
        """
        api_messages = []

        for msg in messages:
            if msg.role == MessageRole.TOOL:
                api_messages.append({
                    "role": "tool",
                    "tool_call_id": msg.tool_call_id or "unknown",
                    "content": msg.content or "",
                })
            elif msg.role == MessageRole.ASSISTANT and msg.tool_calls:
                api_messages.append({
                    "role": "assistant",
                    "content": msg.content or None,
                    "tool_calls": [
                        {
                            "id": tc.id,
                            "type": "function",
                            "function": {
                                "name": tc.name,
                                "arguments": tc.arguments,
                            },
                        }
                        for tc in msg.tool_calls
                    ],
                })
            else:
                api_messages.append({
                    "role": msg.role.value,
                    "content": msg.content or "",
                })

        return api_messages

    def _format_tools_for_api(
        self, tools: list[ToolDefinition]
    ) -> list[dict[str, Any]]:
        """Convert tools to OpenAI format."""
        return [tool.to_openai_format() for tool in tools]

    async def chat(
        self,
        messages: list[Message],
        tools: Optional[list[ToolDefinition]] = None,
    ) -> ModelResponse:
        """Generate a response using GPT.

        Args:
            messages: Conversation history (system turn first, if any)
            tools: Available tools

        Returns:
            ModelResponse with text or tool calls

        Raises:
            LLMProviderError: On any API failure
        """
        kwargs: dict[str, Any] = {
            "model": self.config.model,
            "messages": self._format_messages_for_api(messages),
            "max_tokens": self.config.max_tokens,
        }
        if self.config.temperature is not None:
            kwargs["temperature"] = self.config.temperature
        if tools:
            kwargs["tools"] = self._format_tools_for_api(tools)
            kwargs["tool_choice"] = "auto"

        try:
            response = await self.client.chat.completions.create(**kwargs)

        except openai.RateLimitError as e:
            logger.warning(f"Rate limited by OpenAI: {e}")
            raise LLMProviderError(
                f"Rate limited: {e}", error_type=ErrorType.RATE_LIMIT, original_error=e
            )
        except openai.APITimeoutError as e:
            logger.error(f"OpenAI API timeout: {e}")
            raise LLMProviderError(
                f"Request timed out: {e}", error_type=ErrorType.TIMEOUT, original_error=e
            )
        except openai.AuthenticationError as e:
            logger.error(f"OpenAI authentication failed: {e}")
            raise LLMProviderError(
                f"Authentication failed: {e}", error_type=ErrorType.FATAL, original_error=e
            )
        except openai.APIError as e:
            logger.error(f"OpenAI API error: {e}")
            raise LLMProviderError(
                f"API error: {e}", error_type=ErrorType.RECOVERABLE, original_error=e
            )

        if not response.choices:
            raise LLMProviderError("Empty response from OpenAI", error_type=ErrorType.RECOVERABLE)

        message = response.choices[0].message
        tool_calls = [
            ToolCall(
                id=tc.id,
                name=tc.function.name,
                arguments=tc.function.arguments or "{}",
            )
            for tc in (message.tool_calls or [])
        ]

        return ModelResponse(
            content=message.content,
            tool_calls=tool_calls,
            model=getattr(response, "model", None) or self.config.model,
        )

    async def close(self) -> None:
        """Close the client."""
        await self.client.close()
