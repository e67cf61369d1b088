from __future__ import annotations

from dataclasses import replace
from typing import Callable, Iterable, List, Optional

import structlog

from agent_relay.agents.base import BaseAgent, Hook, ModelCallback
from agent_relay.memory.transcript import (
    forward_message,
    get_assignee,
    get_message,
    last_reply_text,
    set_assignee,
)
from agent_relay.schemas.errors import AgentNotFoundError
from agent_relay.schemas.messages import (
    COMPLETE,
    INPROGRESS,
    MANAGER_NAME,
    AgentMessage,
    Context,
)
from agent_relay.utils.llm_clients import ModelService
from agent_relay.utils.settings import ManagerSettings
from agent_relay.utils.text import is_empty
from agent_relay.workflows.selectors import ManagerAssigneeSelector

logger = structlog.get_logger(__name__)

ShouldTerminate = Callable[[Context, Optional[str]], bool]
OnError = Callable[[Context, Exception], None]
OnIncomingMessage = Callable[[Optional[AgentMessage]], None]


class AgentManager:
    """Coordinator owning the round loop, the roster and termination."""

    def __init__(
        self,
        should_terminate: ShouldTerminate,
        selector_prompt: str | None = None,
        model_service: ModelService | None = None,
        before_hooks: Iterable[Hook] | None = None,
        after_hooks: Iterable[Hook] | None = None,
        on_incoming_message: OnIncomingMessage | None = None,
        on_before_model_call: ModelCallback | None = None,
        on_after_model_call: ModelCallback | None = None,
        on_error: OnError | None = None,
        debug: bool | None = None,
        max_rounds: int | None = None,
        settings: ManagerSettings | None = None,
    ) -> None:
        settings = settings or ManagerSettings()
        self.name = MANAGER_NAME
        self.agents: List[BaseAgent] = []
        self.should_terminate = should_terminate
        self.before_hooks: List[Hook] = list(before_hooks or [])
        self.after_hooks: List[Hook] = list(after_hooks or [])
        self.on_incoming_message = on_incoming_message
        self.on_error = on_error
        self.debug = settings.debug if debug is None else debug
        self.max_rounds = settings.max_rounds if max_rounds is None else max_rounds
        self.assignee_selector = ManagerAssigneeSelector(
            self,
            model_service=model_service,
            selector_prompt=selector_prompt,
            on_before_model_call=on_before_model_call,
            on_after_model_call=on_after_model_call,
        )

    def register(self, agent: BaseAgent) -> None:
        agent.set_manager(self)
        agent.set_debug(self.debug)
        self.agents.append(agent)

    def get_agent(self, name: str | None) -> Optional[BaseAgent]:
        return next((agent for agent in self.agents if agent.name == name), None)

    @property
    def handoff_mode(self) -> bool:
        return any(not is_empty(agent.handoffs) for agent in self.agents)

    def handle(self, context: Context) -> Context:
        """Run rounds until the predicate fires, the cap is hit or a step fails.

        Failures are reported through ``on_error``; the context as it stood
        before the failing step is returned.
        """
        context = replace(context, state=INPROGRESS)
        log = logger.bind(manager=self.name)

        while context.round < self.max_rounds:
            try:
                if len(context.messages) >= 2 and self.should_terminate(context, last_reply_text(context)):
                    log.info("session_complete", round=context.round)
                    return replace(context, state=COMPLETE)

                context = replace(context, round=context.round + 1)
                log.info("round_started", round=context.round)

                for hook in self.before_hooks:
                    context = hook(context)

                context = self.handle_incoming_message(context)
                context = self.dispatch(context)

                for hook in self.after_hooks:
                    context = hook(context)
            except Exception as exc:
                log.error("round_failed", round=context.round, error=str(exc), exc_info=self.debug)
                if self.on_error is not None:
                    try:
                        self.on_error(context, exc)
                    except Exception as callback_exc:
                        log.error("error_callback_failed", round=context.round, error=str(callback_exc))
                return context

        log.info("round_cap_reached", round=context.round, max_rounds=self.max_rounds)
        return context

    def handle_incoming_message(self, context: Context) -> Context:
        incoming = get_message(context, self.name)
        if self.on_incoming_message is not None:
            self.on_incoming_message(incoming)

        context = self.select_assignee(context)
        assignee = get_assignee(context)
        log = logger.bind(manager=self.name, round=context.round)
        log.info("assignee_selected", assignee=assignee)
        if incoming is None:
            log.warning("no_incoming_message", assignee=assignee)
            return context
        return forward_message(context, self.name, assignee, incoming.model_message)

    def select_assignee(self, context: Context) -> Context:
        if not self.handoff_mode:
            return self.assignee_selector.handle(context)

        # the first round of a handoff chain always starts with the first agent
        if get_assignee(context) is None:
            return set_assignee(context, self.agents[0].name)

        name = get_assignee(context)
        current = self.get_agent(name)
        if current is None:
            raise AgentNotFoundError(name, f"select_assignee: agent {name!r} not found")
        return current.select_assignee(context)

    def dispatch(self, context: Context) -> Context:
        assignee = get_assignee(context)
        if self.agents and not any(agent.supports(context) for agent in self.agents):
            raise AgentNotFoundError(assignee, f"no registered agent named {assignee!r}")

        for agent in self.agents:
            context = agent.handle(context)
        return context
