"""
Subagent Worker.

Runs one delegated task to completion in its own conversation, with its
own tool registry and a hard cap on model calls.
"""

from __future__ import annotations

import logging
from typing import Mapping

from ..domain.conversation import Conversation
from ..domain.ports import ILLMProvider
from ..tools.executor import ToolExecutor
from ..tools.registry import Tool, ToolRegistry
from .types import SubagentConfig, SubagentResult

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 10


class WorkerAgent:
    """Bounded agent loop for one delegated task.

    The worker's registry is built from a read-only snapshot of the
    parent's tools: the profile's allow-list picks from it, and nothing
    the worker does can register tools back on the parent.

    Usage:
        worker = WorkerAgent(config, manager.available_tools, provider)
        result = await worker.execute("Find every TODO in src/")
    """

    def __init__(
        self,
        config: SubagentConfig,
        available_tools: Mapping[str, Tool],
        llm_provider: ILLMProvider,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
    ):
        """Initialize the worker.

        Args:
            config: Profile to run as
            available_tools: Snapshot of the parent's tools
            llm_provider: Model gateway
            max_iterations: Maximum model calls before giving up
        """
        if max_iterations < 1:
            raise ValueError(f"max_iterations must be at least 1, got {max_iterations}")

        self.config = config
        self.llm = llm_provider
        self.max_iterations = max_iterations
        self.tools = ToolRegistry(self._select_tools(available_tools))
        self.conversation = Conversation(config.system_prompt)
        self._executor = ToolExecutor(self.tools, label=f"subagent:{config.name}")

    def _select_tools(self, available_tools: Mapping[str, Tool]) -> dict[str, Tool]:
        if self.config.inherits_all_tools:
            return dict(available_tools)

        selected = {}
        for name in self.config.tools:
            tool = available_tools.get(name)
            if tool is None:
                logger.warning(
                    f"Subagent {self.config.name} allows unknown tool {name}, skipping"
                )
                continue
            selected[name] = tool
        return selected

    async def execute(self, task: str) -> SubagentResult:
        """Run the task until the model answers in plain text.

        Never raises: a model gateway failure or reaching the iteration
        cap both produce a failed result.
        """
        self.conversation.add_user(task)
        definitions = self.tools.get_definitions() or None

        for iteration in range(1, self.max_iterations + 1):
            logger.debug(f"Subagent {self.config.name} iteration {iteration}")

            try:
                response = await self.llm.chat(self.conversation.get_messages(), definitions)
            except Exception as e:
                logger.error(f"Subagent {self.config.name} model call failed: {e}")
                return SubagentResult.failed(str(e))

            if not response.has_tool_calls:
                content = response.content or ""
                self.conversation.add_assistant(content)
                return SubagentResult.ok(content)

            await self._executor.execute_tool_calls(response.tool_calls, self.conversation)

        logger.warning(
            f"Subagent {self.config.name} hit the iteration cap ({self.max_iterations})"
        )
        return SubagentResult.failed(f"Max iterations ({self.max_iterations}) reached")
