from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, List, Optional

import structlog

from agent_relay.schemas.messages import ToolCall

logger = structlog.get_logger(__name__)


class Tool(ABC):
    """Named capability an agent can invoke mid-turn."""

    name: str

    def __init__(
        self,
        name: str,
        description: str = "",
        parameters: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.name = name
        self.description = description
        self.parameters: Dict[str, Any] = parameters or {"type": "object", "properties": {}}

    @abstractmethod
    def execute(self, arguments: Dict[str, Any]) -> Any:
        """Run the tool with parsed JSON arguments."""

    def definition(self) -> Dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


class FunctionTool(Tool):
    """Adapts a plain callable taking the argument object."""

    def __init__(
        self,
        name: str,
        func: Callable[[Dict[str, Any]], Any],
        description: str = "",
        parameters: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(name=name, description=description, parameters=parameters)
        self.func = func

    def execute(self, arguments: Dict[str, Any]) -> Any:
        return self.func(arguments)


def tool_definitions(tools: Iterable[Tool]) -> List[Dict[str, Any]]:
    return [tool.definition() for tool in tools]


def find_tool(tools: Iterable[Tool], name: str) -> Optional[Tool]:
    return next((tool for tool in tools if tool.name == name), None)


def format_tool_result(result: Any) -> str:
    if isinstance(result, str):
        return result
    return json.dumps(result, ensure_ascii=False, default=str)


def execute_tool_call(tools: Iterable[Tool], call: ToolCall) -> str:
    """Run one requested call and return its textual result.

    Failures are reported as text so the conversation can continue.
    """
    tool = find_tool(tools, call.name)
    if tool is None:
        logger.warning("tool_failed", tool_name=call.name, reason="not_found")
        return f"Tool not found: {call.name}"

    try:
        arguments = json.loads(call.arguments or "{}")
        result = tool.execute(arguments)
    except Exception as exc:
        logger.warning("tool_failed", tool_name=call.name, error=str(exc))
        return f"Error: {str(exc) or 'Tool execution failed'}"

    logger.info("tool_executed", tool_name=call.name, tool_call_id=call.id)
    return format_tool_result(result)
