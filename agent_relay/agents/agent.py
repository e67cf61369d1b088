from __future__ import annotations

from typing import Callable, Iterable, List, Sequence, Tuple

import structlog

from agent_relay.agents.base import BaseAgent, Hook, ModelCallback
from agent_relay.memory.transcript import get_messages, reply_message, send_message
from agent_relay.schemas.messages import (
    MODEL_INBOUND_ROLE,
    MODEL_OUTBOUND_ROLE,
    SYSTEM_ROLE,
    TOOL_CHOICE_AUTO,
    TOOL_ROLE,
    TOOL_SENDER_PREFIX,
    Context,
    ModelMessage,
    ModelReply,
)
from agent_relay.tools.base import Tool, execute_tool_call, tool_definitions
from agent_relay.utils.llm_clients import ModelService, ToolChoice
from agent_relay.workflows.selectors import AgentAssigneeSelector

logger = structlog.get_logger(__name__)

PLAIN_MODE = "plain"
TOOLS_MODE = "tools"

HandoffDecision = Callable[[Context, str], str]


class Agent(BaseAgent):
    """Model-backed participant.

    Agents without tools or handoffs answer with a single model call. Agents
    with either run the tool-enabled turn: the model may request tool calls,
    which are executed in order and reported back in the reply.
    """

    def __init__(
        self,
        name: str,
        model_service: ModelService | None = None,
        system_message: str | None = None,
        tools: Iterable[Tool] | None = None,
        tool_choice: ToolChoice | None = None,
        reflection_after_tool_call: bool = False,
        handoffs: Iterable[str] | None = None,
        handle_handoff: HandoffDecision | None = None,
        before_hooks: Iterable[Hook] | None = None,
        after_hooks: Iterable[Hook] | None = None,
        on_before_model_call: ModelCallback | None = None,
        on_after_model_call: ModelCallback | None = None,
    ) -> None:
        super().__init__(
            name=name,
            before_hooks=before_hooks,
            after_hooks=after_hooks,
            handoffs=handoffs,
        )
        self.model_service = model_service
        self.system_message = system_message
        self.tools: List[Tool] = list(tools or [])
        self.tool_choice = tool_choice
        self.reflection_after_tool_call = reflection_after_tool_call
        self.handle_handoff = handle_handoff
        self.on_before_model_call = on_before_model_call
        self.on_after_model_call = on_after_model_call
        self.mode = TOOLS_MODE if (self.tools or self.handoffs) else PLAIN_MODE
        self.assignee_selector = AgentAssigneeSelector(self)

    def handle_messages(
        self,
        context: Context,
        sender: str,
        messages: List[ModelMessage],
    ) -> Context:
        logger.info("agent_turn", agent=self.name, mode=self.mode, sender=sender, round=context.round)
        if self.mode == TOOLS_MODE:
            return self._handle_with_tools(context, sender, messages)
        return self._handle_without_tools(context, sender, messages)

    def select_assignee(self, context: Context) -> Context:
        return self.assignee_selector.handle(context)

    def system_prompt(self) -> ModelMessage:
        return ModelMessage(role=SYSTEM_ROLE, content=self.system_message or "")

    def call_model(self, messages: Sequence[ModelMessage], **kwargs) -> ModelReply:
        if self.model_service is None:
            raise RuntimeError(f"agent {self.name!r} has no model service")
        if self.on_before_model_call:
            self.on_before_model_call(list(messages))
        reply = self.model_service.generate(messages, **kwargs)
        if not isinstance(reply, ModelReply):
            raise TypeError(f"agent {self.name!r} expected a ModelReply, got {type(reply).__name__}")
        if self.debug:
            logger.debug("model_reply", agent=self.name, content=reply.content, tool_calls=len(reply.tool_calls))
        return reply

    def notify_after_model_call(self, context: Context) -> None:
        if self.on_after_model_call:
            self.on_after_model_call([m.model_message for m in get_messages(context, self.name)])

    def _handle_without_tools(
        self,
        context: Context,
        sender: str,
        messages: List[ModelMessage],
    ) -> Context:
        reply = self.call_model([self.system_prompt(), *messages])
        content = reply.content or ""

        context = self.save_message(
            context,
            ModelMessage(role=MODEL_OUTBOUND_ROLE, content=content),
        )
        context = self._reply(context, sender, content)
        self.notify_after_model_call(context)
        return context

    def _handle_with_tools(
        self,
        context: Context,
        sender: str,
        messages: List[ModelMessage],
    ) -> Context:
        reply = self.call_model(
            [self.system_prompt(), *messages],
            tools=tool_definitions(self.tools) or None,
            tool_choice=self.tool_choice or TOOL_CHOICE_AUTO,
        )
        initial_content = reply.content or ""

        context = self.save_message(
            context,
            ModelMessage(
                role=MODEL_OUTBOUND_ROLE,
                content=initial_content,
                tool_calls=reply.tool_calls,
            ),
        )

        if not reply.tool_calls:
            context = self._reply(context, sender, initial_content)
            self.notify_after_model_call(context)
            return context

        results: List[Tuple[str, str]] = []
        for call in reply.tool_calls:
            result = execute_tool_call(self.tools, call)
            results.append((call.name, result))
            context = send_message(
                context,
                f"{TOOL_SENDER_PREFIX}{call.name}",
                self.name,
                ModelMessage(
                    role=TOOL_ROLE,
                    content=result,
                    tool_call_id=call.id,
                    name=call.name,
                ),
            )

        final_content = f"{initial_content}\n{self.format_tool_results(results)}"
        if self.reflection_after_tool_call:
            reflection = self.call_model([self.system_prompt(), *messages])
            reflection_content = reflection.content or ""
            context = self.save_message(
                context,
                ModelMessage(role=MODEL_OUTBOUND_ROLE, content=reflection_content),
            )
            final_content = f"{final_content}\n{reflection_content}"

        context = self._reply(context, sender, final_content)
        self.notify_after_model_call(context)
        return context

    def _reply(self, context: Context, to: str, content: str) -> Context:
        return reply_message(
            context,
            self.name,
            to,
            ModelMessage(role=MODEL_INBOUND_ROLE, content=f"[{self.name}]: {content}"),
        )

    @staticmethod
    def format_tool_results(results: Iterable[Tuple[str, str]]) -> str:
        return "\n".join(f"[TOOL RESULT] {name}: {content}" for name, content in results)
