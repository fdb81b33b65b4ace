"""
Anthropic Claude LLM Provider.

Implements the ILLMProvider interface for Anthropic's Claude models.
"""

from __future__ import annotations

import json
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

# Lazy import to avoid requiring anthropic if not used
try:
    import anthropic
    from anthropic import AsyncAnthropic

    ANTHROPIC_AVAILABLE = True
except ImportError:
    ANTHROPIC_AVAILABLE = False
    anthropic = None
    AsyncAnthropic = None


class AnthropicProvider(BaseLLMProvider):
    """Anthropic Claude provider implementation.

    Usage:
        config = LLMProviderConfig(
            api_key="sk-ant-...",
            model="claude-sonnet-4-5-20250929",
        )
        provider = AnthropicProvider(config)

        response = await provider.chat(messages, tools)
    """

    DEFAULT_MODEL = "claude-sonnet-4-5-20250929"

    def __init__(self, config: LLMProviderConfig):
        """Initialize the Anthropic provider.

        Args:
            config: Provider configuration

        Raises:
            ImportError: If anthropic package is not installed
        """
        if not ANTHROPIC_AVAILABLE:
            raise ImportError(
                "anthropic package is required for AnthropicProvider. "
                "Install with: pip install anthropic"
            )

        super().__init__(config)

        self.client = AsyncAnthropic(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout=config.timeout,
            max_retries=config.max_retries,
        )

    def _format_messages_for_api(
        self, messages: list[Message]
    ) -> tuple[Optional[str], list[dict[str, Any]]]:
        """Convert messages to Anthropic format.

        Anthropic uses a separate system parameter, not in messages.
        Tool results go back as ``tool_result`` blocks in a user turn;
        consecutive results share one user turn.

        Returns:
            Tuple of (system_prompt, messages_list)
        """
        api_messages: list[dict[str, Any]] = []
        system: Optional[str] = None

        for msg in messages:
            if msg.role == MessageRole.SYSTEM:
                system = f"{system}\n\n{msg.content}" if system else msg.content
            elif msg.role == MessageRole.TOOL:
                block = {
                    "type": "tool_result",
                    "tool_use_id": msg.tool_call_id or "unknown",
                    "content": msg.content or "",
                }
                previous = api_messages[-1] if api_messages else None
                if (
                    previous is not None
                    and previous["role"] == "user"
                    and isinstance(previous["content"], list)
                    and previous["content"]
                    and previous["content"][-1].get("type") == "tool_result"
                ):
                    previous["content"].append(block)
                else:
                    api_messages.append({"role": "user", "content": [block]})
            elif msg.role == MessageRole.ASSISTANT and msg.tool_calls:
                content_blocks: list[dict[str, Any]] = []
                if msg.content:
                    content_blocks.append({"type": "text", "text": msg.content})
                for tc in msg.tool_calls:
                    content_blocks.append({
                        "type": "tool_use",
                        "id": tc.id,
                        "name": tc.name,
                        "input": tc.parsed_arguments(),
                    })
                api_messages.append({"role": "assistant", "content": content_blocks})
            else:
                api_messages.append({
                    "role": msg.role.value,
                    "content": msg.content or "",
                })

        return system, api_messages

    def _format_tools_for_api(
        self, tools: list[ToolDefinition]
    ) -> list[dict[str, Any]]:
        """Convert tools to Anthropic format."""
        return [tool.to_anthropic_format() for tool in tools]

    async def chat(
        self,
        messages: list[Message],
        tools: Optional[list[ToolDefinition]] = None,
    ) -> ModelResponse:
        """Generate a response using Claude.

        Args:
            messages: Conversation history (system turn first, if any)
            tools: Available tools

        Returns:
            ModelResponse with text or tool calls

        Raises:
            LLMProviderError: On any API failure
        """
        system, api_messages = self._format_messages_for_api(messages)

        kwargs: dict[str, Any] = {
            "model": self.config.model,
            "messages": api_messages,
            "max_tokens": self.config.max_tokens,
        }
        if system:
            kwargs["system"] = system
        if self.config.temperature is not None:
            kwargs["temperature"] = self.config.temperature
        if tools:
            kwargs["tools"] = self._format_tools_for_api(tools)

        try:
            response = await self.client.messages.create(**kwargs)

        except anthropic.RateLimitError as e:
            logger.warning(f"Rate limited by Anthropic: {e}")
            raise LLMProviderError(
                f"Rate limited: {e}", error_type=ErrorType.RATE_LIMIT, original_error=e
            )
        except anthropic.APITimeoutError as e:
            logger.error(f"Anthropic API timeout: {e}")
            raise LLMProviderError(
                f"Request timed out: {e}", error_type=ErrorType.TIMEOUT, original_error=e
            )
        except anthropic.AuthenticationError as e:
            logger.error(f"Anthropic authentication failed: {e}")
            raise LLMProviderError(
                f"Authentication failed: {e}", error_type=ErrorType.FATAL, original_error=e
            )
        except anthropic.APIError as e:
            logger.error(f"Anthropic API error: {e}")
            raise LLMProviderError(
                f"API error: {e}", error_type=ErrorType.RECOVERABLE, original_error=e
            )

        text_parts = []
        tool_calls = []
        for block in response.content:
            if block.type == "text":
                text_parts.append(block.text)
            elif block.type == "tool_use":
                tool_calls.append(
                    ToolCall(id=block.id, name=block.name, arguments=json.dumps(block.input))
                )

        return ModelResponse(
            content="".join(text_parts) if text_parts else None,
            tool_calls=tool_calls,
            model=getattr(response, "model", None) or self.config.model,
        )

    async def close(self) -> None:
        """Close the client."""
        await self.client.close()
