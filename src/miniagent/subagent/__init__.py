"""Delegation of sub-tasks to bounded worker agents."""

from .manager import (
    BUILTIN_SUBAGENTS,
    DELEGATE_TOOL_NAME,
    SubagentManager,
    create_subagent_tool,
)
from .types import SubagentConfig, SubagentResult
from .worker import DEFAULT_MAX_ITERATIONS, WorkerAgent

__all__ = [
    "BUILTIN_SUBAGENTS",
    "DEFAULT_MAX_ITERATIONS",
    "DELEGATE_TOOL_NAME",
    "SubagentConfig",
    "SubagentManager",
    "SubagentResult",
    "WorkerAgent",
    "create_subagent_tool",
]
