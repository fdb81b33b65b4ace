"""
Mini-Agent.

A conversational, tool-using agent for coding tasks.

Architecture:
- Domain: Core entities, the conversation log and port interfaces
- Providers: LLM provider implementations (OpenAI, Anthropic)
- Tools: Tool registry, builtin tools, todo list and MCP client
- Orchestrator: The interactive agent loop
- Subagent: Delegation of bounded sub-tasks to worker agents
- Skills: Knowledge modules loaded on demand
"""

__version__ = "0.6.0"

from .domain.conversation import Conversation
from .domain.entities import (
    ErrorType,
    Message,
    MessageRole,
    ModelResponse,
    ToolCall,
    ToolDefinition,
)
from .orchestrator import Agent, AgentConfig
from .providers import LLMProviderConfig, LLMProviderError
from .skills import SkillRegistry, create_load_skill_tool
from .subagent import (
    BUILTIN_SUBAGENTS,
    SubagentConfig,
    SubagentManager,
    SubagentResult,
    WorkerAgent,
    create_subagent_tool,
)
from .tools import Tool, ToolRegistry, get_builtin_tools

__all__ = [
    "__version__",
    # Domain
    "Conversation",
    "ErrorType",
    "Message",
    "MessageRole",
    "ModelResponse",
    "ToolCall",
    "ToolDefinition",
    # Orchestrator
    "Agent",
    "AgentConfig",
    # Providers
    "LLMProviderConfig",
    "LLMProviderError",
    # Tools
    "Tool",
    "ToolRegistry",
    "get_builtin_tools",
    # Subagents
    "BUILTIN_SUBAGENTS",
    "SubagentConfig",
    "SubagentManager",
    "SubagentResult",
    "WorkerAgent",
    "create_subagent_tool",
    # Skills
    "SkillRegistry",
    "create_load_skill_tool",
]
