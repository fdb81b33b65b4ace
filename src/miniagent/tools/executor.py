"""
Tool Executor.

Handles execution of one batch of model-proposed tool calls. Shared by the
top-level Agent loop and by subagent workers so both append turns the
same way.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from ..domain.conversation import Conversation
from ..domain.entities import ToolCall
from .registry import ToolRegistry

logger = logging.getLogger(__name__)

# Longest tool result shown in traces
MAX_RESULT_PREVIEW = 500

ToolCallCallback = Callable[[ToolCall], None]
ToolResultCallback = Callable[[ToolCall, str], None]


def preview_result(result: str, limit: int = MAX_RESULT_PREVIEW) -> str:
    """Truncate a tool result for display."""
    if len(result) > limit:
        return result[:limit] + "...(truncated)"
    return result


class ToolExecutor:
    """Executes tool calls and records them in a conversation.

    The registry already converts every failure into an ``Error: ...``
    result, so a bad call never stops the rest of the batch.

    Usage:
        executor = ToolExecutor(tool_registry)

        # Appends the assistant tool-call turn, then one result turn per call
        results = await executor.execute_tool_calls(response.tool_calls, conversation)
    """

    def __init__(
        self,
        tool_registry: ToolRegistry,
        on_tool_call: Optional[ToolCallCallback] = None,
        on_tool_result: Optional[ToolResultCallback] = None,
        label: str = "agent",
    ):
        """Initialize the tool executor.

        Args:
            tool_registry: Registry that routes calls to handlers
            on_tool_call: Called before each call runs (e.g. CLI trace)
            on_tool_result: Called with each call and its full result
            label: Name used in log messages
        """
        self.tools = tool_registry
        self.on_tool_call = on_tool_call
        self.on_tool_result = on_tool_result
        self.label = label

    async def execute_tool_call(self, tool_call: ToolCall) -> str:
        """Execute a single tool call and return its text result."""
        logger.info(f"[{self.label}] Tool: {tool_call.name} {tool_call.arguments}")
        if self.on_tool_call:
            self.on_tool_call(tool_call)

        result = await self.tools.execute(tool_call.name, tool_call.arguments)

        logger.debug(f"[{self.label}] Tool {tool_call.name} result: {preview_result(result)}")
        if self.on_tool_result:
            self.on_tool_result(tool_call, result)
        return result

    async def execute_tool_calls(
        self,
        tool_calls: list[ToolCall],
        conversation: Conversation,
    ) -> list[str]:
        """Execute a batch of tool calls sequentially, in the order received.

        The whole batch is appended as one assistant turn first; each
        result is then appended as a tool turn tagged with its call id.

        Args:
            tool_calls: Calls from one model response
            conversation: Conversation to record the turns in

        Returns:
            Tool results, in call order
        """
        conversation.add_assistant_tool_calls(tool_calls)

        results = []
        for tool_call in tool_calls:
            result = await self.execute_tool_call(tool_call)
            conversation.add_tool_result(tool_call.id, result)
            results.append(result)

        return results
