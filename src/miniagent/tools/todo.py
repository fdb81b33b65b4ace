"""
Todo tracking.

The model keeps a visible task list through the ``todo_write`` tool.
Each call replaces the whole list.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Callable, Optional

from ..domain.entities import ToolDefinition
from .registry import Tool

logger = logging.getLogger(__name__)


class TodoStatus(str, Enum):
    """Status of a todo item."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


STATUS_ICONS = {
    TodoStatus.COMPLETED: "✓",
    TodoStatus.IN_PROGRESS: "▶",
    TodoStatus.PENDING: "○",
}


@dataclass
class Todo:
    content: str
    status: TodoStatus = TodoStatus.PENDING


class TodoManager:
    """In-memory todo list.

    Args:
        on_change: Optional callback receiving the rendered list after
            every change (the CLI prints it)
    """

    def __init__(self, on_change: Optional[Callable[[str], None]] = None):
        self._todos: list[Todo] = []
        self._on_change = on_change

    def set_todos(self, todos: list[Todo]) -> None:
        self._todos = list(todos)
        self._changed()

    def get_todos(self) -> list[Todo]:
        return list(self._todos)

    def add_todo(self, content: str) -> None:
        self._todos.append(Todo(content=content))
        self._changed()

    def update_status(self, index: int, status: TodoStatus) -> None:
        if 0 <= index < len(self._todos):
            self._todos[index].status = status
            self._changed()

    def remove_todo(self, index: int) -> None:
        if 0 <= index < len(self._todos):
            del self._todos[index]
            self._changed()

    def clear(self) -> None:
        self._todos = []

    def render(self) -> str:
        """Render the list as plain text (empty string when there are no todos)."""
        if not self._todos:
            return ""

        rule = "─" * 40
        lines = ["TODO List:", rule]
        for index, todo in enumerate(self._todos, start=1):
            lines.append(f"  {STATUS_ICONS[todo.status]} [{index}] {todo.content}")
        lines.append(rule)

        counts = [
            (TodoStatus.COMPLETED, "done"),
            (TodoStatus.IN_PROGRESS, "in progress"),
            (TodoStatus.PENDING, "pending"),
        ]
        parts = []
        for status, label in counts:
            count = sum(1 for t in self._todos if t.status == status)
            if count:
                parts.append(f"{count} {label}")
        lines.append(f"  {' | '.join(parts)}")

        return "\n".join(lines)

    def to_dicts(self) -> list[dict[str, Any]]:
        return [{**asdict(t), "status": t.status.value} for t in self._todos]

    def _changed(self) -> None:
        rendered = self.render()
        logger.debug(f"Todo list updated: {len(self._todos)} items")
        if self._on_change and rendered:
            self._on_change(rendered)


def create_todo_write_tool(todo_manager: TodoManager) -> Tool:
    """Create the todo_write tool bound to a TodoManager."""

    async def handler(args: dict[str, Any]) -> str:
        todos = args.get("todos")
        if not isinstance(todos, list):
            return "Error: todos must be an array"

        valid_statuses = {s.value for s in TodoStatus}
        valid_todos = []
        for item in todos:
            item = item if isinstance(item, dict) else {}
            status = item.get("status")
            valid_todos.append(
                Todo(
                    content=str(item.get("content") or ""),
                    status=TodoStatus(status) if status in valid_statuses else TodoStatus.PENDING,
                )
            )

        todo_manager.set_todos(valid_todos)
        return f"Todo list updated with {len(valid_todos)} items"

    return Tool(
        definition=ToolDefinition(
            name="todo_write",
            description=(
                "Update the todo list. Use this to track tasks and show progress to the user."
            ),
            parameters={
                "type": "object",
                "properties": {
                    "todos": {
                        "type": "array",
                        "description": "The complete todo list",
                        "items": {
                            "type": "object",
                            "properties": {
                                "content": {
                                    "type": "string",
                                    "description": "The task description",
                                },
                                "status": {
                                    "type": "string",
                                    "description": "The task status",
                                },
                            },
                            "required": ["content", "status"],
                        },
                    },
                },
                "required": ["todos"],
            },
        ),
        handler=handler,
    )
