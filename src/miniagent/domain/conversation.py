"""
Conversation state.

An append-only turn log with an immutable system prompt. The system
prompt is never stored in the log; it is prepended when the
conversation is projected for the model gateway.
"""

from __future__ import annotations

from .entities import Message, MessageRole, ToolCall


class Conversation:
    """Ordered log of conversation turns.

    Usage:
        conversation = Conversation("You are a helpful assistant.")
        conversation.add_user("List the python files")
        messages = conversation.get_messages()  # system turn first
    """

    def __init__(self, system_prompt: str = ""):
        self._system_prompt = system_prompt
        self._messages: list[Message] = []

    @property
    def system_prompt(self) -> str:
        return self._system_prompt

    @property
    def messages(self) -> list[Message]:
        """Copy of the turn log (system prompt excluded)."""
        return list(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def add_user(self, content: str) -> None:
        self._messages.append(Message(role=MessageRole.USER, content=content))

    def add_assistant(self, content: str) -> None:
        self._messages.append(Message(role=MessageRole.ASSISTANT, content=content))

    def add_assistant_tool_calls(self, tool_calls: list[ToolCall]) -> None:
        """Append every requested call as a single assistant turn."""
        self._messages.append(
            Message(
                role=MessageRole.ASSISTANT,
                content=None,
                tool_calls=list(tool_calls),
            )
        )

    def add_tool_result(self, tool_call_id: str, content: str) -> None:
        self._messages.append(
            Message(
                role=MessageRole.TOOL,
                content=content,
                tool_call_id=tool_call_id,
            )
        )

    def get_messages(self) -> list[Message]:
        """Project the conversation into the request format.

        Returns:
            The system turn (if the prompt is non-empty) followed by the log
        """
        projected: list[Message] = []
        if self._system_prompt:
            projected.append(
                Message(role=MessageRole.SYSTEM, content=self._system_prompt)
            )
        projected.extend(self._messages)
        return projected

    def clear(self) -> None:
        """Drop every turn; the system prompt is kept."""
        self._messages = []
