"""The ``load_skill`` tool."""

from __future__ import annotations

from typing import Any

from ..domain.entities import ToolDefinition
from ..tools.registry import Tool
from .registry import SkillRegistry

LOAD_SKILL_TOOL_NAME = "load_skill"


def format_loaded_skill(name: str, body: str) -> str:
    return (
        f"# Skill Loaded: {name}\n\n"
        f"{body}\n\n"
        "---\n"
        "You now have this expertise loaded. Apply it to the current task."
    )


def create_load_skill_tool(registry: SkillRegistry) -> Tool:
    """Create the load_skill tool bound to a registry.

    The skill body is returned as the tool result so the system prompt
    stays unchanged. The description reflects the skills registered at
    creation time.
    """

    async def handler(args: dict[str, Any]) -> str:
        skill_name = args["skill_name"]

        skill = registry.get_skill(skill_name)
        if skill is None:
            available = ", ".join(registry.list()) or "none"
            return f'Skill "{skill_name}" not found. Available skills: {available}'

        return format_loaded_skill(skill.name, skill.body)

    return Tool(
        definition=ToolDefinition(
            name=LOAD_SKILL_TOOL_NAME,
            description=(
                "Load domain expertise for a specific task. "
                f"{registry.get_metadata_prompt()}"
            ).strip(),
            parameters={
                "type": "object",
                "properties": {
                    "skill_name": {
                        "type": "string",
                        "description": (
                            f"The skill to load. Available: {', '.join(registry.list()) or 'none'}"
                        ),
                    },
                },
                "required": ["skill_name"],
            },
        ),
        handler=handler,
    )
