"""
Tests for the shared tool executor.
"""

import logging

import pytest

from miniagent.domain.conversation import Conversation
from miniagent.domain.entities import MessageRole, ToolCall
from miniagent.tools.executor import MAX_RESULT_PREVIEW, ToolExecutor, preview_result
from miniagent.tools.registry import ToolRegistry

from conftest import RecordingHandler, make_tool


class TestPreviewResult:
    def test_short_result_unchanged(self):
        assert preview_result("abc") == "abc"

    def test_long_result_truncated(self):
        text = "x" * (MAX_RESULT_PREVIEW + 1)

        assert preview_result(text) == "x" * MAX_RESULT_PREVIEW + "...(truncated)"


class TestExecuteToolCalls:
    """execute_tool_calls records one request turn and one result per call."""

    @pytest.mark.asyncio
    async def test_records_turns_in_order(self):
        registry = ToolRegistry()
        registry.register_tool(make_tool("read", handler=RecordingHandler("contents")))
        executor = ToolExecutor(registry)
        conversation = Conversation()
        calls = [
            ToolCall(id="1", name="read", arguments="{}"),
            ToolCall(id="2", name="missing", arguments="{}"),
        ]

        results = await executor.execute_tool_calls(calls, conversation)

        assert results == ["contents", "Error: Tool not found: missing"]
        messages = conversation.messages
        assert [m.role for m in messages] == [
            MessageRole.ASSISTANT,
            MessageRole.TOOL,
            MessageRole.TOOL,
        ]
        assert [m.tool_call_id for m in messages[1:]] == ["1", "2"]

    @pytest.mark.asyncio
    async def test_logs_tool_name_and_arguments(self, caplog):
        registry = ToolRegistry()
        registry.register_tool(make_tool("read"))
        executor = ToolExecutor(registry, label="tester")

        with caplog.at_level(logging.INFO, logger="miniagent.tools.executor"):
            await executor.execute_tool_call(
                ToolCall(id="1", name="read", arguments='{"file_path": "a"}')
            )

        assert '[tester] Tool: read {"file_path": "a"}' in caplog.text
