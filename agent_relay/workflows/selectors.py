"""Strategies deciding which agent receives control next."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import structlog

from agent_relay.agents.base import ModelCallback
from agent_relay.memory.transcript import get_assignee, get_messages, send_message, set_assignee
from agent_relay.schemas.errors import AgentNotFoundError, HandoffError
from agent_relay.schemas.messages import (
    MODEL_INBOUND_ROLE,
    MODEL_OUTBOUND_ROLE,
    SYSTEM_ROLE,
    TOOL_ROLE,
    TOOL_SENDER_PREFIX,
    Context,
    ModelMessage,
    forced_tool_choice,
)
from agent_relay.tools.handoff import (
    HANDOFF_TOOL_NAME,
    HandoffTool,
    handoff_instructions,
    match_agent_name,
)
from agent_relay.utils.llm_clients import ModelService

if TYPE_CHECKING:
    from agent_relay.agents.agent import Agent
    from agent_relay.workflows.manager import AgentManager

logger = structlog.get_logger(__name__)


class ManagerAssigneeSelector:
    """Round-robin by default; asks the model when a selector prompt is set."""

    def __init__(
        self,
        manager: "AgentManager",
        model_service: ModelService | None = None,
        selector_prompt: str | None = None,
        on_before_model_call: ModelCallback | None = None,
        on_after_model_call: ModelCallback | None = None,
    ) -> None:
        self.manager = manager
        self.model_service = model_service
        self.selector_prompt = selector_prompt
        self.on_before_model_call = on_before_model_call
        self.on_after_model_call = on_after_model_call

    @property
    def model_driven(self) -> bool:
        return self.model_service is not None and bool(self.selector_prompt)

    def handle(self, context: Context) -> Context:
        if self.model_driven:
            return self.select_from_model(context)
        return self.select_round_robin(context)

    def select_round_robin(self, context: Context) -> Context:
        names = [agent.name for agent in self.manager.agents]
        if not names:
            return context

        assignee = get_assignee(context)
        if assignee is None:
            return set_assignee(context, names[0])
        if assignee not in names:
            raise AgentNotFoundError(assignee, f"round-robin: current assignee {assignee!r} is not registered")
        return set_assignee(context, names[(names.index(assignee) + 1) % len(names)])

    def select_from_model(self, context: Context) -> Context:
        manager_name = self.manager.name
        messages = [
            ModelMessage(role=SYSTEM_ROLE, content=self.selector_prompt),
            *(m.model_message for m in get_messages(context, manager_name)),
        ]
        if self.on_before_model_call:
            self.on_before_model_call(messages)
        reply = self.model_service.generate(messages)
        content = reply.content or ""

        context = send_message(
            context,
            manager_name,
            manager_name,
            ModelMessage(role=MODEL_OUTBOUND_ROLE, content=content),
        )
        if self.on_after_model_call:
            self.on_after_model_call([m.model_message for m in get_messages(context, manager_name)])
        return set_assignee(context, content)


class AgentAssigneeSelector:
    """Lets an agent with declared handoffs pick its successor."""

    def __init__(self, agent: "Agent") -> None:
        self.agent = agent

    def handle(self, context: Context) -> Context:
        if get_assignee(context) == self.agent.name and self.agent.handoffs:
            return self.select_from_model(context)
        return context

    def resolve(self, context: Context, proposed: str) -> str:
        decided = proposed
        if self.agent.handle_handoff is not None:
            decided = self.agent.handle_handoff(context, proposed) or proposed

        manager = self.agent.manager
        roster = [a.name for a in manager.agents] if manager is not None else []
        matched = match_agent_name(decided, roster)
        if matched is None:
            raise HandoffError(f"Agent {decided} not found")
        return matched

    def select_from_model(self, context: Context) -> Context:
        agent = self.agent
        instructions = handoff_instructions(agent.handoffs)
        tool = HandoffTool(agent.handoffs, lambda proposed: self.resolve(context, proposed))

        messages = [
            ModelMessage(
                role=SYSTEM_ROLE,
                content=(
                    f"{agent.system_message or ''}\n"
                    f"You can call [{HANDOFF_TOOL_NAME}] tool to handoff conversation to another agent. "
                    f"You only have one tool called [{HANDOFF_TOOL_NAME}]\n"
                    f"{instructions}"
                ),
            ),
            *(m.model_message for m in get_messages(context, agent.name)),
            ModelMessage(role=MODEL_INBOUND_ROLE, content=instructions),
        ]
        reply = agent.call_model(
            messages,
            tools=[tool.definition()],
            tool_choice=forced_tool_choice(HANDOFF_TOOL_NAME),
        )

        if not reply.tool_calls:
            raise HandoffError(f"{agent.name}: no tool calls returned")
        if len(reply.tool_calls) > 1:
            logger.warning("handoff_extra_calls", agent=agent.name, ignored=len(reply.tool_calls) - 1)
        call = reply.tool_calls[0]

        try:
            arguments = json.loads(call.arguments or "{}")
        except json.JSONDecodeError as exc:
            raise HandoffError(f"{agent.name}: unparseable handoff arguments {call.arguments!r}") from exc
        next_agent = tool.execute(arguments)["next_agent"]

        context = send_message(
            context,
            agent.name,
            agent.name,
            ModelMessage(role=MODEL_OUTBOUND_ROLE, content=reply.content or "", tool_calls=(call,)),
        )
        context = send_message(
            context,
            f"{TOOL_SENDER_PREFIX}{call.name}",
            agent.name,
            ModelMessage(
                role=TOOL_ROLE,
                content=f"{reply.content or ''}\n Handing off to {next_agent}",
                tool_call_id=call.id,
                name=call.name,
            ),
        )
        agent.notify_after_model_call(context)
        logger.info("handoff_selected", agent=agent.name, next_agent=next_agent)
        return set_assignee(context, next_agent)

