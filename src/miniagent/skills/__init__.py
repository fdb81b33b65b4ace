"""Skills: knowledge modules loaded on demand."""

from .loader import (
    Skill,
    SkillParseError,
    parse_skill_content,
    parse_skill_file,
    scan_skills_directory,
)
from .registry import SkillRegistry
from .tool import LOAD_SKILL_TOOL_NAME, create_load_skill_tool

__all__ = [
    "LOAD_SKILL_TOOL_NAME",
    "Skill",
    "SkillParseError",
    "SkillRegistry",
    "create_load_skill_tool",
    "parse_skill_content",
    "parse_skill_file",
    "scan_skills_directory",
]
