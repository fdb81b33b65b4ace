"""Interactive command-line interface.

Example Usage:
    $ mini-agent
    $ mini-agent --provider anthropic --skills-dir ./skills
    $ mini-agent --model gpt-4o-mini --no-mcp --verbose
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

from . import __version__
from .config import ConfigError, Settings
from .domain.entities import ToolCall
from .orchestrator.agent import Agent, AgentConfig
from .skills import SkillRegistry, create_load_skill_tool
from .subagent import BUILTIN_SUBAGENTS
from .tools.builtin import get_builtin_tools
from .tools.executor import preview_result
from .tools.todo import TodoManager, create_todo_write_tool

logger = logging.getLogger(__name__)

EXIT_COMMAND = "exit"


def build_system_prompt(skills_prompt: str) -> str:
    return f"""You are a helpful coding assistant with access to tools.
You can execute bash commands, read/write files, and search code.

IMPORTANT: Use the todo_write tool to track your tasks when working on multi-step tasks.
- Create a todo list at the start of complex tasks
- Update task status as you work (pending -> in_progress -> completed)
- This helps the user see your progress

You can delegate specialized tasks to subagents using the delegate_task tool:
- explorer: For searching and exploring the codebase
- researcher: For reading and understanding code
- planner: For creating implementation plans

{skills_prompt}""".rstrip()


def _print_tool_call(tool_call: ToolCall) -> None:
    print(f"\n[Tool: {tool_call.name}]")
    print(json.dumps(tool_call.parsed_arguments(), indent=2))


def _print_tool_result(tool_call: ToolCall, result: str) -> None:
    print(preview_result(result))


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


async def create_agent(settings: Settings, use_mcp: bool = True) -> tuple[Agent, SkillRegistry]:
    """Build an agent with the builtin tools, skills, subagents and MCP servers."""
    skill_registry = SkillRegistry()
    skill_registry.load_from_directory(settings.skills_dir)

    agent = Agent(
        settings.create_provider(),
        AgentConfig(
            system_prompt=build_system_prompt(skill_registry.get_metadata_prompt()),
            subagent_max_iterations=settings.subagent_max_iterations,
        ),
        on_tool_call=_print_tool_call,
        on_tool_result=_print_tool_result,
    )

    todo_manager = TodoManager(on_change=print)
    for tool in get_builtin_tools():
        agent.register_tool(tool)
    agent.register_tool(create_todo_write_tool(todo_manager))
    agent.register_tool(create_load_skill_tool(skill_registry))

    if use_mcp and settings.mcp_servers:
        await agent.load_mcp_servers(settings.mcp_servers)

    # Subagents see MCP tools too, so snapshot after connecting servers
    for subagent in BUILTIN_SUBAGENTS:
        agent.register_subagent(subagent)
    agent.initialize_subagents()

    return agent, skill_registry


async def repl(agent: Agent, skill_registry: SkillRegistry) -> None:
    print(f"Mini-Agent v{__version__}")
    print(f"Model: {agent.llm.model_name}")
    print(f"Tools: {', '.join(agent.tools.names())}")
    print(f"Subagents: {', '.join(agent.list_subagents())}")
    if len(skill_registry):
        print(f"Skills: {', '.join(skill_registry.list())}")
    if agent.list_mcp_servers():
        print(f"MCP Servers: {', '.join(agent.list_mcp_servers())}")
    print(f'Type "{EXIT_COMMAND}" to quit.\n')

    while True:
        try:
            line = await asyncio.to_thread(input, "> ")
        except (EOFError, KeyboardInterrupt):
            break

        user_input = line.strip()
        if not user_input:
            continue
        if user_input.lower() == EXIT_COMMAND:
            break

        try:
            response = await agent.run(user_input)
        except Exception as e:
            logger.debug("Agent run failed", exc_info=True)
            print(f"\nError: {e}\n")
            continue

        print(f"\nAssistant: {response}\n")

    print("Goodbye!")


async def run_cli(args: argparse.Namespace) -> int:
    try:
        settings = Settings.from_env()
    except ConfigError as e:
        print(f"[Main] Configuration error: {e}", file=sys.stderr)
        return 1

    if args.provider:
        settings.provider = args.provider
    if args.model:
        if settings.provider == "anthropic":
            settings.anthropic_model = args.model
        else:
            settings.openai_model = args.model
    if args.skills_dir:
        settings.skills_dir = args.skills_dir

    configure_logging("INFO" if args.verbose else settings.log_level)

    try:
        agent, skill_registry = await create_agent(settings, use_mcp=not args.no_mcp)
    except ConfigError as e:
        print(f"[Main] Configuration error: {e}", file=sys.stderr)
        return 1

    try:
        async with agent:
            await repl(agent, skill_registry)
    finally:
        await agent.llm.close()

    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Conversational coding agent with tools, subagents and skills",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  mini-agent                              # Start the REPL with settings from .env
  mini-agent --provider anthropic         # Use Claude
  mini-agent --skills-dir ./my-skills     # Load skills from another directory
  mini-agent --no-mcp --verbose           # Skip MCP servers, log at INFO
        """,
    )
    parser.add_argument(
        "--provider",
        choices=["openai", "anthropic"],
        help="LLM provider (overrides LLM_PROVIDER)",
    )
    parser.add_argument("--model", help="Model name (overrides MODEL / ANTHROPIC_MODEL)")
    parser.add_argument(
        "--skills-dir",
        metavar="DIR",
        help="Directory containing <skill>/SKILL.md (overrides SKILLS_DIR)",
    )
    parser.add_argument(
        "--no-mcp",
        action="store_true",
        help="Do not connect to configured MCP servers",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log at INFO level")

    args = parser.parse_args(argv)
    return asyncio.run(run_cli(args))


if __name__ == "__main__":
    sys.exit(main())
