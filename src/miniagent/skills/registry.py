"""
Skill Registry.

Progressive disclosure: names and descriptions are always in the system
prompt, bodies are only handed out through the ``load_skill`` tool.
"""

from __future__ import annotations

import logging
from typing import Optional

from .loader import Skill, scan_skills_directory

logger = logging.getLogger(__name__)


class SkillRegistry:
    """Registry of loaded skills.

    Usage:
        registry = SkillRegistry()
        registry.load_from_directory("./skills")

        system_prompt += registry.get_metadata_prompt()
    """

    def __init__(self):
        self._skills: dict[str, Skill] = {}

    def load_from_directory(self, skills_dir: str) -> int:
        """Load all valid skills under a directory.

        Returns:
            Number of skills loaded
        """
        skills = scan_skills_directory(skills_dir)
        for skill in skills:
            self.register(skill)

        logger.info(f"Loaded {len(skills)} skills from {skills_dir}")
        return len(skills)

    def register(self, skill: Skill) -> None:
        if skill.name in self._skills:
            logger.warning(f"Replacing already registered skill: {skill.name}")
        self._skills[skill.name] = skill

    def get_metadata_list(self) -> list[tuple[str, str]]:
        """(name, description) pairs, in registration order."""
        return [(skill.name, skill.description) for skill in self._skills.values()]

    def get_metadata_prompt(self) -> str:
        """System prompt section listing the skills ("" when there are none)."""
        metadata = self.get_metadata_list()
        if not metadata:
            return ""

        lines = [f"- {name}: {description}" for name, description in metadata]
        return "Available skills (use load_skill tool to activate):\n" + "\n".join(lines)

    def get_skill(self, name: str) -> Optional[Skill]:
        return self._skills.get(name)

    def has(self, name: str) -> bool:
        return name in self._skills

    def list(self) -> list[str]:
        return list(self._skills.keys())

    def __len__(self) -> int:
        return len(self._skills)
