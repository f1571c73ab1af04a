"""Small helpers shared by the orchestrator and renderers."""

from __future__ import annotations

from typing import List, Sequence, TypeVar

T = TypeVar("T")


def split(items: Sequence[T], size: int) -> List[List[T]]:
    """
    Chunk ``items`` into lists of at most ``size`` elements.

    >>> split(["a", "b", "c"], 2)
    [['a', 'b'], ['c']]
    """
    if size <= 0:
        raise ValueError("size must be positive")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


def truncate(text: str, max_length: int) -> str:
    """Truncate text to ``max_length`` characters, ending with an ellipsis."""
    if len(text) <= max_length:
        return text
    if max_length <= 3:
        return text[:max_length]
    return text[:max_length - 3] + "..."


def remove_newlines(text: str) -> str:
    return " ".join(text.split())
