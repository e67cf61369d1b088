from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

USER_ROLE = "user"
ASSISTANT_ROLE = "assistant"
SYSTEM_ROLE = "system"
TOOL_ROLE = "tool"

# Agents reply to whoever handed them the turn as "user" so the next
# recipient reads the reply as an inbound message.
MODEL_INBOUND_ROLE = USER_ROLE
MODEL_OUTBOUND_ROLE = ASSISTANT_ROLE

INITIAL = "initial"
INPROGRESS = "inprogress"
COMPLETE = "complete"

TYPE_NEW = "new"
TYPE_REPLY = "reply"
TYPE_FORWARD = "forward"

END_USER_NAME = "endUser"
MANAGER_NAME = "agentManager"
TOOL_SENDER_PREFIX = "tool:"

TOOL_CHOICE_NONE = "none"
TOOL_CHOICE_AUTO = "auto"


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def forced_tool_choice(name: str) -> Dict[str, Any]:
    """Tool choice that requires the model to call ``name``."""
    return {"type": "function", "function": {"name": name}}


@dataclass(frozen=True)
class ToolCall:
    """A function invocation requested by the model."""

    id: str
    name: str
    arguments: str = "{}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.arguments},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ToolCall":
        function = data.get("function") or {}
        return cls(
            id=data.get("id") or "",
            name=function.get("name") or data.get("name") or "",
            arguments=function.get("arguments") or data.get("arguments") or "{}",
        )


@dataclass(frozen=True)
class ModelMessage:
    """Role-tagged payload exchanged with the model service."""

    role: str
    content: Optional[str] = None
    tool_calls: Tuple[ToolCall, ...] = ()
    tool_call_id: Optional[str] = None
    name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"role": self.role, "content": self.content}
        if self.tool_calls:
            data["tool_calls"] = [call.to_dict() for call in self.tool_calls]
        if self.tool_call_id is not None:
            data["tool_call_id"] = self.tool_call_id
        if self.name is not None:
            data["name"] = self.name
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ModelMessage":
        return cls(
            role=data.get("role") or "",
            content=data.get("content"),
            tool_calls=tuple(ToolCall.from_dict(c) for c in data.get("tool_calls") or ()),
            tool_call_id=data.get("tool_call_id"),
            name=data.get("name"),
        )


@dataclass(frozen=True)
class ModelReply:
    """Non-streaming result of a model service call."""

    content: Optional[str] = None
    tool_calls: Tuple[ToolCall, ...] = ()


@dataclass(frozen=True)
class AgentMessage:
    """Single entry of the conversation log."""

    sender: str
    to: str
    type: str
    model_message: ModelMessage
    created_at: str = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from": self.sender,
            "to": self.to,
            "type": self.type,
            "createdAt": self.created_at,
            "modelMessage": self.model_message.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AgentMessage":
        return cls(
            sender=data["from"],
            to=data["to"],
            type=data.get("type", TYPE_NEW),
            model_message=ModelMessage.from_dict(data["modelMessage"]),
            created_at=data.get("createdAt") or utc_now(),
        )


@dataclass(frozen=True)
class Assignee:
    name: str
    assigned_at: str = field(default_factory=utc_now)


@dataclass(frozen=True)
class Context:
    """Session state threaded through one orchestration run.

    Instances are never modified; every step returns a new Context built
    with ``dataclasses.replace``.
    """

    messages: Tuple[AgentMessage, ...] = ()
    state: str = INITIAL
    round: int = 0
    assignees: Tuple[Assignee, ...] = ()
    metadata: Dict[str, Any] = field(default_factory=dict)
    tool_results: Any = None

    @classmethod
    def seed(cls, content: str, sender: str = END_USER_NAME, **kwargs: Any) -> "Context":
        """Build a context holding the single request message."""
        message = AgentMessage(
            sender=sender,
            to=MANAGER_NAME,
            type=TYPE_NEW,
            model_message=ModelMessage(role=USER_ROLE, content=content),
        )
        return cls(messages=(message,), **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state,
            "round": self.round,
            "assignees": [
                {"name": a.name, "assignedAt": a.assigned_at} for a in self.assignees
            ],
            "messages": [m.to_dict() for m in self.messages],
            "metadata": dict(self.metadata),
            "toolResults": self.tool_results,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Context":
        return cls(
            messages=tuple(AgentMessage.from_dict(m) for m in data.get("messages") or ()),
            state=data.get("state") or INITIAL,
            round=data.get("round") or 0,
            assignees=tuple(
                Assignee(name=a["name"], assigned_at=a.get("assignedAt") or utc_now())
                for a in data.get("assignees") or ()
            ),
            metadata=dict(data.get("metadata") or {}),
            tool_results=data.get("toolResults"),
        )
