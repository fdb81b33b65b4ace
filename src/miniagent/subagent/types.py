"""Subagent profile and result types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SubagentConfig:
    """A named, tool-scoped persona for delegated sub-tasks.

    Attributes:
        name: Profile name used by ``delegate_task``
        description: One line shown to the parent model
        system_prompt: System prompt of the worker conversation
        tools: Allow-list of tool names. None or empty means the worker
            inherits every tool available to the manager.
    """

    name: str
    description: str
    system_prompt: str
    tools: Optional[tuple[str, ...]] = None

    def __post_init__(self):
        # Accept any sequence but store a tuple so the profile stays immutable
        if self.tools is not None and not isinstance(self.tools, tuple):
            object.__setattr__(self, "tools", tuple(self.tools))

    @property
    def inherits_all_tools(self) -> bool:
        return not self.tools


@dataclass
class SubagentResult:
    """Outcome of a delegated task."""

    success: bool
    output: str = ""
    error: Optional[str] = None

    @classmethod
    def ok(cls, output: str) -> SubagentResult:
        return cls(success=True, output=output)

    @classmethod
    def failed(cls, error: str) -> SubagentResult:
        return cls(success=False, output="", error=error)


