from __future__ import annotations

import weakref
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Callable, Iterable, List, Optional

from agent_relay.memory.transcript import get_assignee, get_message, get_messages, send_message
from agent_relay.schemas.messages import Context, ModelMessage

if TYPE_CHECKING:
    from agent_relay.workflows.manager import AgentManager

Hook = Callable[[Context], Context]
ModelCallback = Callable[[List[ModelMessage]], None]


class BaseAgent(ABC):
    """Base contract for every participant the manager can assign."""

    name: str

    def __init__(
        self,
        name: str,
        before_hooks: Iterable[Hook] | None = None,
        after_hooks: Iterable[Hook] | None = None,
        handoffs: Iterable[str] | None = None,
    ) -> None:
        self.name = name
        self.before_hooks: List[Hook] = list(before_hooks or [])
        self.after_hooks: List[Hook] = list(after_hooks or [])
        self.handoffs: List[str] = list(handoffs or [])
        self.debug = False
        self._manager: Optional[weakref.ReferenceType] = None

    @abstractmethod
    def handle_messages(
        self,
        context: Context,
        sender: str,
        messages: List[ModelMessage],
    ) -> Context:
        """Take a turn over the messages addressed to this agent."""

    @abstractmethod
    def select_assignee(self, context: Context) -> Context:
        """Decide who acts after this agent."""

    @property
    def manager(self) -> Optional["AgentManager"]:
        return self._manager() if self._manager is not None else None

    def set_manager(self, manager: "AgentManager") -> None:
        self._manager = weakref.ref(manager)

    def set_debug(self, debug: bool) -> None:
        self.debug = debug

    def supports(self, context: Context) -> bool:
        return self.name == get_assignee(context)

    def handle(self, context: Context) -> Context:
        if not self.supports(context):
            return context

        for hook in self.before_hooks:
            context = hook(context)

        latest = get_message(context, self.name)
        messages = [m.model_message for m in get_messages(context, self.name)]
        context = self.handle_messages(context, latest.sender if latest else "", messages)

        for hook in self.after_hooks:
            context = hook(context)
        return context

    def save_message(self, context: Context, message: ModelMessage) -> Context:
        """Record ``message`` in this agent's own history."""
        return send_message(context, self.name, self.name, message)
