"""Append-only conversation log helpers.

Every function takes a Context and returns a new one; the log and the
assignee history are only ever extended.
"""

from __future__ import annotations

from dataclasses import replace
from typing import List, Optional

from agent_relay.schemas.errors import MessageFormatError
from agent_relay.schemas.messages import (
    ASSISTANT_ROLE,
    MANAGER_NAME,
    TYPE_FORWARD,
    TYPE_NEW,
    TYPE_REPLY,
    AgentMessage,
    Assignee,
    Context,
    ModelMessage,
)


def _append(
    context: Context,
    sender: str,
    to: str,
    message: ModelMessage | None,
    message_type: str,
    operation: str,
) -> Context:
    if message is None or not message.role:
        raise MessageFormatError(f"{operation}: invalid message format")
    if not to:
        raise MessageFormatError(f"{operation}: missing recipient")

    entry = AgentMessage(
        sender=sender,
        to=to,
        type=message_type,
        model_message=message,
    )
    return replace(context, messages=context.messages + (entry,))


def send_message(context: Context, sender: str, to: str, message: ModelMessage) -> Context:
    return _append(context, sender, to, message, TYPE_NEW, "send_message")


def reply_message(context: Context, sender: str, to: str, message: ModelMessage) -> Context:
    return _append(context, sender, to, message, TYPE_REPLY, "reply_message")


def forward_message(
    context: Context,
    sender: str,
    to: str | None,
    message: ModelMessage | None,
) -> Context:
    return _append(context, sender, to or "", message, TYPE_FORWARD, "forward_message")


def get_messages(context: Context, to: str) -> List[AgentMessage]:
    """Entries addressed to ``to``, in log order."""
    return [message for message in context.messages if message.to == to]


def get_message(context: Context, to: str) -> Optional[AgentMessage]:
    """Newest entry addressed to ``to``."""
    messages = get_messages(context, to)
    return messages[-1] if messages else None


def get_assignee(context: Context | None) -> Optional[str]:
    if context is None or not context.assignees:
        return None
    return context.assignees[-1].name


def set_assignee(context: Context, name: str) -> Context:
    return replace(context, assignees=context.assignees + (Assignee(name=name),))


def get_round(context: Context) -> int:
    return context.round or 0


def last_reply_text(context: Context) -> Optional[str]:
    """Content of the newest reply an agent recorded for itself.

    Self-records are the raw model output, without the ``[name]:``
    attribution added to the copy sent onwards.
    """
    for message in reversed(context.messages):
        if (
            message.sender == message.to
            and message.sender != MANAGER_NAME
            and message.model_message.role == ASSISTANT_ROLE
        ):
            return message.model_message.content
    return None
