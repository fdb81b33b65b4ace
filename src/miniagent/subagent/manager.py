"""
Subagent Manager.

Keeps the registered subagent profiles, hands workers a read-only
snapshot of the parent's tools, and exposes delegation to the model as
the ``delegate_task`` tool.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Mapping, Optional

from ..domain.entities import ToolDefinition
from ..domain.ports import ILLMProvider
from ..tools.registry import Tool
from .types import SubagentConfig, SubagentResult
from .worker import DEFAULT_MAX_ITERATIONS, WorkerAgent

logger = logging.getLogger(__name__)

DELEGATE_TOOL_NAME = "delegate_task"


class SubagentManager:
    """Registry of subagent profiles and entry point for delegation.

    Usage:
        manager = SubagentManager(provider)
        manager.register_subagent(SubagentConfig(...))
        manager.set_available_tools(registry.snapshot())

        result = await manager.delegate_task("explorer", "Where is the CLI defined?")
    """

    def __init__(
        self,
        llm_provider: ILLMProvider,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
    ):
        """Initialize the subagent manager.

        Args:
            llm_provider: Model gateway shared by every worker
            max_iterations: Iteration cap for each worker

        Raises:
            ValueError: If max_iterations is less than 1
        """
        if max_iterations < 1:
            raise ValueError(f"max_iterations must be at least 1, got {max_iterations}")

        self.llm = llm_provider
        self.max_iterations = max_iterations
        self._subagents: dict[str, SubagentConfig] = {}
        self._available_tools: Mapping[str, Tool] = MappingProxyType({})

    def register_subagent(self, config: SubagentConfig) -> None:
        if config.name in self._subagents:
            logger.warning(f"Replacing already registered subagent: {config.name}")
        self._subagents[config.name] = config

    def unregister_subagent(self, name: str) -> bool:
        return self._subagents.pop(name, None) is not None

    def get_subagent(self, name: str) -> Optional[SubagentConfig]:
        return self._subagents.get(name)

    def get_subagent_names(self) -> list[str]:
        return list(self._subagents.keys())

    def get_subagent_descriptions(self) -> str:
        """One ``- name: description`` line per profile."""
        return "\n".join(
            f"- {name}: {config.description}" for name, config in self._subagents.items()
        )

    def set_available_tools(self, tools: Mapping[str, Tool]) -> None:
        """Store an immutable copy of the tools workers may draw from."""
        self._available_tools = MappingProxyType(dict(tools))

    @property
    def available_tools(self) -> Mapping[str, Tool]:
        return self._available_tools

    def _create_worker(self, config: SubagentConfig) -> WorkerAgent:
        return WorkerAgent(
            config,
            self._available_tools,
            self.llm,
            max_iterations=self.max_iterations,
        )

    async def delegate_task(self, agent_name: str, task: str) -> SubagentResult:
        """Run a task on a fresh worker for the named profile.

        Args:
            agent_name: Registered profile name
            task: Task text, becomes the worker's only user turn

        Returns:
            SubagentResult. An unknown profile fails immediately without
            any model call.
        """
        config = self._subagents.get(agent_name)
        if config is None:
            available = ", ".join(self.get_subagent_names())
            logger.warning(f"Delegation to unknown subagent: {agent_name}")
            return SubagentResult.failed(
                f'Subagent "{agent_name}" not found. Available: {available}'
            )

        summary = task if len(task) <= 100 else task[:100] + "..."
        logger.info(f"[Subagent: {agent_name}] Starting task: {summary}")

        result = await self._create_worker(config).execute(task)

        if result.success:
            logger.info(f"[Subagent: {agent_name}] Completed")
        else:
            logger.warning(f"[Subagent: {agent_name}] Failed: {result.error}")
        return result


def create_subagent_tool(manager: SubagentManager) -> Tool:
    """Create the ``delegate_task`` tool for a manager.

    The description lists the profiles registered at creation time.
    """

    async def handler(args: dict[str, Any]) -> str:
        result = await manager.delegate_task(args["agent_name"], args["task"])
        if result.success:
            return result.output
        return f"Subagent error: {result.error}"

    descriptions = manager.get_subagent_descriptions() or "None registered"
    return Tool(
        definition=ToolDefinition(
            name=DELEGATE_TOOL_NAME,
            description=(
                "Delegate a task to a specialized subagent. "
                f"Available subagents:\n{descriptions}"
            ),
            parameters={
                "type": "object",
                "properties": {
                    "agent_name": {
                        "type": "string",
                        "description": "The name of the subagent to delegate to",
                    },
                    "task": {
                        "type": "string",
                        "description": "The task to delegate. Be specific and provide context.",
                    },
                },
                "required": ["agent_name", "task"],
            },
        ),
        handler=handler,
    )


BUILTIN_SUBAGENTS: tuple[SubagentConfig, ...] = (
    SubagentConfig(
        name="explorer",
        description="Explores codebase structure, finds files, and searches code",
        system_prompt=(
            "You are a code exploration assistant. Your job is to:\n"
            "- Search for files and code patterns\n"
            "- Understand codebase structure\n"
            "- Find relevant files for a given task\n"
            "Be concise in your responses. Report findings clearly."
        ),
        tools=("glob", "grep", "read"),
    ),
    SubagentConfig(
        name="researcher",
        description="Researches and gathers information by reading files",
        system_prompt=(
            "You are a research assistant. Your job is to:\n"
            "- Read and understand code files\n"
            "- Summarize findings\n"
            "- Answer questions about code behavior\n"
            "Be thorough but concise. Provide relevant code snippets when helpful."
        ),
        tools=("read", "glob", "grep"),
    ),
    SubagentConfig(
        name="planner",
        description="Plans implementation steps for complex tasks",
        system_prompt=(
            "You are a planning assistant. Your job is to:\n"
            "- Analyze the task requirements\n"
            "- Explore the codebase to understand context\n"
            "- Create a step-by-step implementation plan\n"
            "Output a clear, numbered list of steps. Each step should be actionable."
        ),
        tools=("glob", "grep", "read"),
    ),
)
