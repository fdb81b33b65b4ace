"""Shared fixtures and fakes for the mini-agent tests."""

from __future__ import annotations

import copy
from typing import Optional, Union

import pytest

from miniagent.domain.entities import Message, ModelResponse, ToolCall, ToolDefinition
from miniagent.domain.ports import ILLMProvider
from miniagent.tools.registry import Tool


class ScriptedProvider(ILLMProvider):
    """Model gateway that replays a fixed list of responses.

    Each item is a ModelResponse to return or an Exception to raise.
    With ``repeat_last=True`` the final item is replayed forever.
    Every call's messages and tool names are recorded.
    """

    def __init__(
        self,
        script: list[Union[ModelResponse, Exception]],
        repeat_last: bool = False,
    ):
        self.script = list(script)
        self.repeat_last = repeat_last
        self.calls: list[dict] = []

    @property
    def model_name(self) -> str:
        return "scripted"

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def chat(
        self,
        messages: list[Message],
        tools: Optional[list[ToolDefinition]] = None,
    ) -> ModelResponse:
        self.calls.append(
            {
                "messages": copy.deepcopy(messages),
                "tools": [t.name for t in (tools or [])],
            }
        )

        index = len(self.calls) - 1
        if index >= len(self.script):
            if not self.repeat_last or not self.script:
                raise AssertionError("ScriptedProvider ran out of responses")
            index = len(self.script) - 1

        item = self.script[index]
        if isinstance(item, Exception):
            raise item
        return copy.deepcopy(item)


def text_response(text: Optional[str]) -> ModelResponse:
    return ModelResponse(content=text)


def tool_response(*calls: tuple[str, str, str]) -> ModelResponse:
    """Build a response requesting tools from (id, name, arguments) triples."""
    return ModelResponse(
        tool_calls=[ToolCall(id=call_id, name=name, arguments=args) for call_id, name, args in calls]
    )


class RecordingHandler:
    """Async tool handler that records its arguments and returns a fixed text."""

    def __init__(self, result: str = "ok"):
        self.result = result
        self.calls: list[dict] = []

    async def __call__(self, args: dict) -> str:
        self.calls.append(args)
        return self.result


def make_tool(
    name: str,
    handler=None,
    parameters: Optional[dict] = None,
) -> Tool:
    return Tool(
        definition=ToolDefinition(
            name=name,
            description=f"{name} tool",
            parameters=parameters or {"type": "object", "properties": {}},
        ),
        handler=handler or RecordingHandler(f"{name} result"),
    )


@pytest.fixture
def scripted_provider():
    """Factory for ScriptedProvider instances."""
    return ScriptedProvider


@pytest.fixture
def skill_dir(tmp_path):
    """Create ``<tmp>/skills/<name>/SKILL.md`` files from a mapping."""

    def _create(skills: dict[str, str]):
        root = tmp_path / "skills"
        root.mkdir(exist_ok=True)
        for directory, content in skills.items():
            (root / directory).mkdir()
            (root / directory / "SKILL.md").write_text(content, encoding="utf-8")
        return root

    return _create
