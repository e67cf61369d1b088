from __future__ import annotations

from dataclasses import dataclass
from typing import List

from agent_relay.schemas.messages import COMPLETE, Context

STATUS_COMPLETE = "complete"
STATUS_CAPPED = "capped"
STATUS_ABORTED = "aborted"


@dataclass
class SessionOutcome:
    rounds: int
    state: str
    status: str
    message_count: int


def summarize_session(context: Context, max_rounds: int = 10, failed: bool = False) -> SessionOutcome:
    """Tell natural completion, cap exhaustion and early aborts apart.

    A step that fails in the final round leaves the same context as an
    exhausted cap, so callers pass ``failed`` when their error callback fired.
    """
    if context.state == COMPLETE:
        status = STATUS_COMPLETE
    elif failed:
        status = STATUS_ABORTED
    elif context.round >= max_rounds:
        status = STATUS_CAPPED
    else:
        status = STATUS_ABORTED
    return SessionOutcome(
        rounds=context.round,
        state=context.state,
        status=status,
        message_count=len(context.messages),
    )


def completion_rate(outcomes: List[SessionOutcome]) -> float:
    if not outcomes:
        return 0.0
    completed = sum(1 for o in outcomes if o.status == STATUS_COMPLETE)
    return completed / len(outcomes)
