"""Agent Orchestrator.

The orchestrator coordinates the components of the agent:
- Model gateway for responses
- Tool registry for local, MCP and synthetic tools
- Subagent manager for delegated tasks
"""

from ..tools.executor import ToolExecutor
from .agent import Agent, AgentConfig

__all__ = [
    "Agent",
    "AgentConfig",
    "ToolExecutor",
]
