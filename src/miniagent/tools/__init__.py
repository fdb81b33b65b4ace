"""Tool system for the agent.

Provides:
- Tool registry with argument validation
- Sequential tool executor shared by agents and workers
- Builtin filesystem, shell and todo tools
- MCP client for external tool hosts
"""

from .builtin import get_builtin_tools
from .executor import ToolExecutor, preview_result
from .mcp_client import MCPClient, MCPServerConfig, MCPServerManager, MCPToolError
from .registry import Tool, ToolExecutionError, ToolNotFoundError, ToolRegistry
from .todo import Todo, TodoManager, TodoStatus, create_todo_write_tool

__all__ = [
    "MCPClient",
    "MCPServerConfig",
    "MCPServerManager",
    "MCPToolError",
    "Todo",
    "TodoManager",
    "TodoStatus",
    "Tool",
    "ToolExecutionError",
    "ToolExecutor",
    "ToolNotFoundError",
    "ToolRegistry",
    "create_todo_write_tool",
    "get_builtin_tools",
    "preview_result",
]
