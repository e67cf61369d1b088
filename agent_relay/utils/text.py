from __future__ import annotations

import re
from typing import Any

_THINK_BLOCK = re.compile(r"<think>[\s\S]{0,10000}?</think>")


def is_empty(value: Any) -> bool:
    """True for None, blank strings and empty collections."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set, frozenset)):
        return len(value) == 0
    return False


def remove_think_tags(content: str) -> str:
    return _THINK_BLOCK.sub("", content).strip()
