"""
Agent Orchestrator.

Main orchestration logic for the interactive agent. Coordinates:
- Model gateway calls
- Tool execution and result handling
- Subagent delegation
- MCP server tool discovery
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from ..domain.conversation import Conversation
from ..domain.ports import ILLMProvider
from ..subagent.manager import DELEGATE_TOOL_NAME, SubagentManager, create_subagent_tool
from ..subagent.types import SubagentConfig
from ..subagent.worker import DEFAULT_MAX_ITERATIONS
from ..tools.executor import ToolCallCallback, ToolExecutor, ToolResultCallback
from ..tools.mcp_client import TOOL_NAME_SEPARATOR, MCPServerConfig, MCPServerManager
from ..tools.registry import Tool, ToolRegistry

logger = logging.getLogger(__name__)


@dataclass
class AgentConfig:
    """Configuration for the agent.

    Attributes:
        system_prompt: System prompt for the conversation
        subagent_max_iterations: Iteration cap for delegated tasks
    """

    system_prompt: str = ""
    subagent_max_iterations: int = DEFAULT_MAX_ITERATIONS


class Agent:
    """Interactive agent loop.

    Manages the conversation loop:
    1. Receive user message
    2. Call the model with the conversation and tool definitions
    3. Execute tool calls if any, in order
    4. Loop back to the model with the results
    5. Return the first plain-text answer

    The loop has no iteration cap; the user ends the session. A model
    gateway failure propagates to the caller.

    Usage:
        agent = Agent(provider, AgentConfig(system_prompt="You are..."))
        for tool in get_builtin_tools():
            agent.register_tool(tool)
        agent.register_subagent(explorer_config)
        agent.initialize_subagents()

        async with agent:
            answer = await agent.run("Where is the config loaded?")
    """

    def __init__(
        self,
        llm_provider: ILLMProvider,
        config: Optional[AgentConfig] = None,
        tool_registry: Optional[ToolRegistry] = None,
        mcp_manager: Optional[MCPServerManager] = None,
        on_tool_call: Optional[ToolCallCallback] = None,
        on_tool_result: Optional[ToolResultCallback] = None,
    ):
        """Initialize the agent.

        Args:
            llm_provider: Model gateway
            config: Agent configuration
            tool_registry: Registry to use (a new one by default)
            mcp_manager: MCP server manager (a new one by default)
            on_tool_call: Trace callback before each tool call
            on_tool_result: Trace callback with each tool result
        """
        self.llm = llm_provider
        self.config = config or AgentConfig()
        self.tools = tool_registry if tool_registry is not None else ToolRegistry()
        self.mcp = mcp_manager if mcp_manager is not None else MCPServerManager()
        self.subagents = SubagentManager(
            llm_provider, max_iterations=self.config.subagent_max_iterations
        )
        self.conversation = Conversation(self.config.system_prompt)
        self._executor = ToolExecutor(
            self.tools,
            on_tool_call=on_tool_call,
            on_tool_result=on_tool_result,
        )

    # ============================================
    # Tools and subagents
    # ============================================

    def register_tool(self, tool: Tool) -> None:
        self.tools.register_tool(tool)

    def register_subagent(self, config: SubagentConfig) -> None:
        self.subagents.register_subagent(config)

    def initialize_subagents(self) -> None:
        """Hand the current tools to the subagent manager and register ``delegate_task``.

        Workers see the tools registered at this moment. Call again after
        registering more tools (e.g. MCP tools) to refresh the snapshot.
        ``delegate_task`` itself is never offered to workers.
        """
        snapshot = {
            name: tool
            for name, tool in self.tools.snapshot().items()
            if name != DELEGATE_TOOL_NAME
        }
        self.subagents.set_available_tools(snapshot)
        self.tools.register_tool(create_subagent_tool(self.subagents))
        logger.info(
            f"Subagents initialized with {len(snapshot)} tools: "
            f"{', '.join(self.subagents.get_subagent_names()) or 'none'}"
        )

    def list_subagents(self) -> list[str]:
        return self.subagents.get_subagent_names()

    # ============================================
    # MCP servers
    # ============================================

    async def add_mcp_server(self, config: MCPServerConfig) -> list[str]:
        """Connect an MCP server and register its tools.

        Tools whose name is already registered are skipped, so MCP tools
        never shadow local ones.

        Returns:
            Names of the tools that were registered

        Raises:
            MCPToolError: If the server name is taken, the connection fails or
                tool discovery fails (the server is then disconnected)
        """
        client = await self.mcp.add_server(config)

        registered = []
        try:
            for tool in await client.get_tools():
                if self.tools.has(tool.name):
                    logger.warning(f"Skipping MCP tool {tool.name}: name already registered")
                    continue
                self.tools.register_tool(tool)
                registered.append(tool.name)
        except Exception:
            # Untrack the server so a later retry can connect again
            for name in registered:
                self.tools.unregister(name)
            await self.mcp.remove_server(config.name)
            raise

        logger.info(f"MCP server connected: {config.name} ({len(registered)} tools)")
        return registered

    async def remove_mcp_server(self, name: str) -> bool:
        """Disconnect an MCP server and unregister its tools."""
        prefix = f"{name}{TOOL_NAME_SEPARATOR}"
        for tool_name in self.tools.names():
            if tool_name.startswith(prefix):
                self.tools.unregister(tool_name)
        return await self.mcp.remove_server(name)

    def list_mcp_servers(self) -> list[str]:
        return self.mcp.list_servers()

    async def load_mcp_servers(self, configs: Iterable[MCPServerConfig]) -> int:
        """Connect several MCP servers; a failing server is logged and skipped.

        Returns:
            Number of servers connected
        """
        connected = 0
        for config in configs:
            try:
                await self.add_mcp_server(config)
                connected += 1
            except Exception as e:
                logger.error(f"Failed to connect MCP server {config.name}: {e}")
        return connected

    # ============================================
    # Conversation loop
    # ============================================

    async def run(self, user_input: str) -> str:
        """Process one user message and return the final answer.

        Args:
            user_input: User's message

        Returns:
            The model's plain-text answer ("" if it sent no content)

        Raises:
            LLMProviderError: If a model gateway call fails. Turns appended
                before the failure stay in the conversation.
        """
        self.conversation.add_user(user_input)

        while True:
            response = await self.llm.chat(
                self.conversation.get_messages(),
                self.tools.get_definitions() or None,
            )

            if response.has_tool_calls:
                await self._executor.execute_tool_calls(response.tool_calls, self.conversation)
                continue

            content = response.content or ""
            self.conversation.add_assistant(content)
            return content

    def get_conversation(self) -> Conversation:
        return self.conversation

    def reset(self) -> None:
        """Forget the conversation, keeping the system prompt."""
        self.conversation.clear()

    async def shutdown(self) -> None:
        """Disconnect all MCP servers."""
        await self.mcp.disconnect_all()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.shutdown()
