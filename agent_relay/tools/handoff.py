from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, Optional, Sequence

from agent_relay.schemas.errors import HandoffError
from agent_relay.tools.base import Tool

HANDOFF_TOOL_NAME = "handoff"


def match_agent_name(choice: str, roster: Iterable[str]) -> Optional[str]:
    """First roster name contained in ``choice``, ignoring case."""
    lowered = choice.lower()
    return next((name for name in roster if name.lower() in lowered), None)


def handoff_instructions(candidates: Sequence[str]) -> str:
    listing = "\n".join(candidates)
    return (
        f"Please call [{HANDOFF_TOOL_NAME}] tool to hand off it to one of the BELOW agents:\n"
        f"{listing}\n"
    )


class HandoffTool(Tool):
    """Single capability offered to the model when an agent hands off."""

    def __init__(
        self,
        candidates: Sequence[str],
        resolve: Callable[[str], str],
    ) -> None:
        super().__init__(
            name=HANDOFF_TOOL_NAME,
            description="Hand off conversation to another agent.",
            parameters={
                "type": "object",
                "properties": {
                    "nextAgent": {
                        "type": "string",
                        "description": "Name of agent to hand off to",
                        "enum": list(candidates),
                    },
                },
                "required": ["nextAgent"],
            },
        )
        self.candidates = list(candidates)
        self.resolve = resolve

    def execute(self, arguments: Dict[str, Any]) -> Dict[str, str]:
        proposed = arguments.get("nextAgent")
        if not isinstance(proposed, str) or not proposed.strip():
            raise HandoffError(f"handoff called without a next agent: {arguments!r}")
        return {"next_agent": self.resolve(proposed)}
