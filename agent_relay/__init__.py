"""Round-based coordination of model-backed agents over a shared log."""

from agent_relay.agents.agent import Agent
from agent_relay.agents.base import BaseAgent
from agent_relay.memory.transcript import (
    forward_message,
    get_assignee,
    get_message,
    get_messages,
    get_round,
    last_reply_text,
    reply_message,
    send_message,
    set_assignee,
)
from agent_relay.schemas.errors import AgentNotFoundError, HandoffError, MessageFormatError, RelayError
from agent_relay.schemas.messages import (
    COMPLETE,
    END_USER_NAME,
    INITIAL,
    INPROGRESS,
    MANAGER_NAME,
    TOOL_CHOICE_AUTO,
    TOOL_CHOICE_NONE,
    AgentMessage,
    Assignee,
    Context,
    ModelMessage,
    ModelReply,
    ToolCall,
    forced_tool_choice,
)
from agent_relay.tools.base import FunctionTool, Tool
from agent_relay.utils.llm_clients import EchoModelService, ModelService, OpenAIModelService
from agent_relay.workflows.manager import AgentManager

__all__ = [
    "Agent",
    "AgentManager",
    "AgentMessage",
    "AgentNotFoundError",
    "Assignee",
    "BaseAgent",
    "COMPLETE",
    "Context",
    "END_USER_NAME",
    "EchoModelService",
    "FunctionTool",
    "HandoffError",
    "INITIAL",
    "INPROGRESS",
    "MANAGER_NAME",
    "MessageFormatError",
    "ModelMessage",
    "ModelReply",
    "ModelService",
    "OpenAIModelService",
    "RelayError",
    "TOOL_CHOICE_AUTO",
    "TOOL_CHOICE_NONE",
    "Tool",
    "ToolCall",
    "forced_tool_choice",
    "forward_message",
    "get_assignee",
    "get_message",
    "get_messages",
    "get_round",
    "last_reply_text",
    "reply_message",
    "send_message",
    "set_assignee",
]
