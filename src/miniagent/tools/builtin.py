"""
Builtin Tools.

Local tools offered to the model: shell execution, file read/write/edit
and code search. Every handler returns text; expected failures (missing
file, non-unique edit match) are reported as ``Error: ...`` strings.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
from dataclasses import dataclass
from typing import Any, Optional

import aiofiles

from ..domain.entities import ToolDefinition
from .registry import Tool

logger = logging.getLogger(__name__)

# Directories never descended into by glob/grep
SKIPPED_DIRS = {"node_modules"}

# Maximum grep matches returned to the model
MAX_GREP_MATCHES = 50


def _string_param(description: str) -> dict[str, str]:
    return {"type": "string", "description": description}


# ============================================
# bash
# ============================================


async def run_bash(args: dict[str, Any]) -> str:
    """Execute a bash command in the current working directory."""
    command = args["command"]

    try:
        proc = await asyncio.create_subprocess_exec(
            "bash",
            "-c",
            command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=os.getcwd(),
        )
    except OSError as e:
        return f"Error: {e}"

    stdout_bytes, stderr_bytes = await proc.communicate()
    stdout = stdout_bytes.decode(errors="replace")
    stderr = stderr_bytes.decode(errors="replace")

    if proc.returncode == 0:
        return stdout or "Command executed successfully (no output)"
    return f"Exit code {proc.returncode}\n{stderr or stdout}"


# ============================================
# read / write / edit
# ============================================


async def read_file(args: dict[str, Any]) -> str:
    file_path = args["file_path"]

    try:
        async with aiofiles.open(file_path, "r", encoding="utf-8") as f:
            return await f.read()
    except FileNotFoundError:
        return f"Error: File not found: {file_path}"
    except OSError as e:
        return f"Error: {e}"


async def write_file(args: dict[str, Any]) -> str:
    """Write content to a file, creating parent directories if needed."""
    file_path = args["file_path"]
    content = args["content"]

    try:
        directory = os.path.dirname(file_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        async with aiofiles.open(file_path, "w", encoding="utf-8") as f:
            await f.write(content)
    except OSError as e:
        return f"Error: {e}"

    return f"Successfully wrote to {file_path}"


async def edit_file(args: dict[str, Any]) -> str:
    """Replace exactly one occurrence of old_string with new_string."""
    file_path = args["file_path"]
    old_string = args["old_string"]
    new_string = args["new_string"]

    try:
        async with aiofiles.open(file_path, "r", encoding="utf-8") as f:
            content = await f.read()

        occurrences = content.count(old_string) if old_string else 0
        if occurrences == 0:
            return f"Error: Could not find the specified string in {file_path}"
        if occurrences > 1:
            return (
                f"Error: Found {occurrences} occurrences of the string. Please provide "
                "a more specific string to ensure a unique match."
            )

        async with aiofiles.open(file_path, "w", encoding="utf-8") as f:
            await f.write(content.replace(old_string, new_string, 1))

    except FileNotFoundError:
        return f"Error: File not found: {file_path}"
    except OSError as e:
        return f"Error: {e}"

    return f"Successfully edited {file_path}"


# ============================================
# glob / grep
# ============================================


def _glob_to_regex(pattern: str) -> re.Pattern[str]:
    """Translate a glob into a regex matching a trailing run of path segments.

    ``**`` matches across directories, ``*`` within one path segment.
    """
    escaped = re.escape(pattern)
    escaped = escaped.replace(r"\*\*", "\0")
    escaped = escaped.replace(r"\*", "[^/]*").replace(r"\?", "[^/]")
    escaped = escaped.replace("\0/", "(?:.*/)?").replace("\0", ".*")
    return re.compile(f"(?:^|/){escaped}$")


def _walk_files(root: str):
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(
            d for d in dirnames if d not in SKIPPED_DIRS and not d.startswith(".")
        )
        for filename in sorted(filenames):
            if filename.startswith("."):
                continue
            yield filename, os.path.join(dirpath, filename)


def find_files(pattern: str, root: str) -> list[str]:
    regex = _glob_to_regex(pattern)
    return [
        path
        for name, path in _walk_files(root)
        if regex.search(name) or regex.search(path.replace(os.sep, "/"))
    ]


@dataclass
class GrepMatch:
    file: str
    line: int
    content: str


def search_files(
    pattern: re.Pattern[str], root: str, include: Optional[str] = None
) -> list[GrepMatch]:
    include_regex = _glob_to_regex(include) if include else None
    matches: list[GrepMatch] = []

    for name, path in _walk_files(root):
        if include_regex and not include_regex.search(name):
            continue
        try:
            with open(path, "r", encoding="utf-8") as f:
                for lineno, line in enumerate(f, start=1):
                    if pattern.search(line):
                        matches.append(GrepMatch(path, lineno, line.strip()))
        except (OSError, UnicodeDecodeError):
            # Binary or unreadable file
            continue

    return matches


async def glob_files(args: dict[str, Any]) -> str:
    pattern = args["pattern"]
    root = args.get("path") or os.getcwd()

    try:
        results = await asyncio.to_thread(find_files, pattern, root)
    except OSError as e:
        return f"Error: {e}"

    if not results:
        return f"No files found matching pattern: {pattern}"
    return "\n".join(results)


async def grep_files(args: dict[str, Any]) -> str:
    pattern_text = args["pattern"]
    root = args.get("path") or os.getcwd()
    include = args.get("include")

    try:
        pattern = re.compile(pattern_text, re.IGNORECASE)
    except re.error as e:
        return f"Error: Invalid regex: {e}"

    try:
        results = await asyncio.to_thread(search_files, pattern, root, include)
    except OSError as e:
        return f"Error: {e}"

    if not results:
        return f"No matches found for pattern: {pattern_text}"

    output = "\n".join(
        f"{m.file}:{m.line}: {m.content}" for m in results[:MAX_GREP_MATCHES]
    )
    if len(results) > MAX_GREP_MATCHES:
        return f"{output}\n\n... and {len(results) - MAX_GREP_MATCHES} more matches"
    return output


# ============================================
# Tool definitions
# ============================================


BASH_TOOL = Tool(
    definition=ToolDefinition(
        name="bash",
        description="Execute a bash command and return the output",
        parameters={
            "type": "object",
            "properties": {"command": _string_param("The bash command to execute")},
            "required": ["command"],
        },
    ),
    handler=run_bash,
)

READ_TOOL = Tool(
    definition=ToolDefinition(
        name="read",
        description="Read the contents of a file",
        parameters={
            "type": "object",
            "properties": {"file_path": _string_param("The path to the file to read")},
            "required": ["file_path"],
        },
    ),
    handler=read_file,
)

WRITE_TOOL = Tool(
    definition=ToolDefinition(
        name="write",
        description="Write content to a file (creates directories if needed)",
        parameters={
            "type": "object",
            "properties": {
                "file_path": _string_param("The path to the file to write"),
                "content": _string_param("The content to write to the file"),
            },
            "required": ["file_path", "content"],
        },
    ),
    handler=write_file,
)

EDIT_TOOL = Tool(
    definition=ToolDefinition(
        name="edit",
        description="Edit a file by replacing a specific string with another string",
        parameters={
            "type": "object",
            "properties": {
                "file_path": _string_param("The path to the file to edit"),
                "old_string": _string_param("The exact string to find and replace"),
                "new_string": _string_param("The string to replace it with"),
            },
            "required": ["file_path", "old_string", "new_string"],
        },
    ),
    handler=edit_file,
)

GLOB_TOOL = Tool(
    definition=ToolDefinition(
        name="glob",
        description='Find files matching a glob pattern (e.g., "**/*.py", "*.json")',
        parameters={
            "type": "object",
            "properties": {
                "pattern": _string_param("The glob pattern to match files against"),
                "path": _string_param(
                    "The directory to search in (defaults to current directory)"
                ),
            },
            "required": ["pattern"],
        },
    ),
    handler=glob_files,
)

GREP_TOOL = Tool(
    definition=ToolDefinition(
        name="grep",
        description="Search for a pattern in files",
        parameters={
            "type": "object",
            "properties": {
                "pattern": _string_param("The regex pattern to search for"),
                "path": _string_param(
                    "The directory to search in (defaults to current directory)"
                ),
                "include": _string_param('File pattern to include (e.g., "*.py")'),
            },
            "required": ["pattern"],
        },
    ),
    handler=grep_files,
)


def get_builtin_tools() -> list[Tool]:
    """Get all builtin tools, in the order they are offered to the model."""
    return [BASH_TOOL, READ_TOOL, WRITE_TOOL, EDIT_TOOL, GLOB_TOOL, GREP_TOOL]
