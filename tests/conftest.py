from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import pytest

from agent_relay.schemas.messages import ModelMessage, ModelReply, ToolCall
from agent_relay.utils.llm_clients import ModelService

Script = Union[str, ModelReply, Callable[[Sequence[ModelMessage]], ModelReply]]


class ScriptedModelService(ModelService):
    """Replays canned replies in order; the last one repeats."""

    def __init__(self, *replies: Script) -> None:
        self.replies: List[Script] = list(replies) or [""]
        self.calls: List[Dict[str, Any]] = []

    def generate(self, messages, tools=None, tool_choice=None, stream=False):
        self.calls.append(
            {"messages": list(messages), "tools": tools, "tool_choice": tool_choice}
        )
        index = min(len(self.calls) - 1, len(self.replies) - 1)
        reply = self.replies[index]
        if callable(reply):
            reply = reply(messages)
        if isinstance(reply, str):
            reply = ModelReply(content=reply)
        if stream:
            return iter([reply.content or ""])
        return reply


def tool_reply(name: str, arguments: str, content: str = "", call_id: Optional[str] = None) -> ModelReply:
    return ModelReply(
        content=content,
        tool_calls=(ToolCall(id=call_id or f"call_{name}", name=name, arguments=arguments),),
    )


@pytest.fixture
def scripted_model():
    return ScriptedModelService


@pytest.fixture
def make_tool_reply():
    return tool_reply
