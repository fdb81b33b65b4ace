"""
Skill loader for SKILL.md files with YAML frontmatter.

Expected layout: one directory per skill, each holding a SKILL.md:

    skills/
      code-review/
        SKILL.md

SKILL.md format:

    ---
    name: code-review
    description: Reviews code for bugs and style issues
    ---

    ## Markdown body loaded on demand
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any

import yaml

logger = logging.getLogger(__name__)

SKILL_FILENAME = "SKILL.md"
FRONTMATTER_DELIMITER = "---"


class SkillParseError(Exception):
    """Raised when a SKILL.md file cannot be turned into a Skill."""

    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.path = path


@dataclass(frozen=True)
class Skill:
    """A knowledge module.

    Attributes:
        name: Skill name (unique per registry)
        description: One line, always shown in the system prompt
        body: Full instructions, only returned when the skill is loaded
        path: Source file, empty for skills registered in code
    """

    name: str
    description: str
    body: str
    path: str = ""


def _split_frontmatter(content: str, path: str) -> tuple[str, str]:
    lines = content.split("\n")

    if not lines or lines[0].strip() != FRONTMATTER_DELIMITER:
        raise SkillParseError(
            f"Invalid SKILL.md format: missing YAML frontmatter in {path}", path
        )

    for index in range(1, len(lines)):
        if lines[index].strip() == FRONTMATTER_DELIMITER:
            return "\n".join(lines[1:index]), "\n".join(lines[index + 1:])

    raise SkillParseError(
        f"Invalid SKILL.md format: unterminated YAML frontmatter in {path}", path
    )


def _require_string(metadata: dict[str, Any], key: str, path: str) -> str:
    value = metadata.get(key)
    if not isinstance(value, str) or not value.strip():
        raise SkillParseError(
            f"SKILL.md must have '{key}' in frontmatter: {path}", path
        )
    return value.strip()


def parse_skill_content(content: str, path: str = "") -> Skill:
    """Parse SKILL.md text.

    Args:
        content: Full file content
        path: Source path, used in error messages

    Returns:
        The parsed Skill (body stripped)

    Raises:
        SkillParseError: Missing frontmatter, invalid YAML, or a missing
            name/description
    """
    yaml_content, body = _split_frontmatter(content, path)

    try:
        metadata = yaml.safe_load(yaml_content) or {}
    except yaml.YAMLError as e:
        raise SkillParseError(f"Invalid YAML frontmatter in {path}: {e}", path)

    if not isinstance(metadata, dict):
        raise SkillParseError(f"YAML frontmatter must be a mapping: {path}", path)

    return Skill(
        name=_require_string(metadata, "name", path),
        description=_require_string(metadata, "description", path),
        body=body.strip(),
        path=path,
    )


def parse_skill_file(path: str) -> Skill:
    """Read and parse one SKILL.md file."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise SkillParseError(f"Cannot read {path}: {e}", path)

    return parse_skill_content(content, path)


def scan_skills_directory(skills_dir: str) -> list[Skill]:
    """Load every ``<skills_dir>/<name>/SKILL.md``.

    A missing directory yields no skills. A skill that fails to parse is
    logged and skipped; it never aborts the scan.
    """
    if not os.path.isdir(skills_dir):
        logger.debug(f"Skills directory not found: {skills_dir}")
        return []

    skills = []
    for entry in sorted(os.listdir(skills_dir)):
        skill_path = os.path.join(skills_dir, entry, SKILL_FILENAME)
        if not os.path.isfile(skill_path):
            continue

        try:
            skills.append(parse_skill_file(skill_path))
        except SkillParseError as e:
            logger.warning(f"Failed to load skill from {skill_path}: {e}")

    return skills
