"""Function-extent resolution by brace balancing.

Braces are counted on raw text: a `{` or `}` inside a string literal or a
comment moves the balance exactly like a structural brace. This is a known
limitation of the text-only approach.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Extent:
    """Inclusive 0-based line span of a block."""
    start: int
    end: int
    balanced: bool

    def body(self, lines: list[str]) -> str:
        return "\n".join(lines[self.start:self.end + 1])


class BraceScope:
    """Running brace balance for a block that opens at `start`."""

    def __init__(self, start: int) -> None:
        self.start = start
        self.balance = 0

    def feed(self, index: int, line: str) -> bool:
        """Account for one line. Return True when the block closes on it."""
        self.balance += line.count("{")
        self.balance -= line.count("}")
        return self.balance == 0 and index > self.start


def resolve_extent(lines: list[str], start: int) -> Extent:
    """Return the extent of the block starting at `lines[start]`.

    If the braces never balance, the extent runs to the last line.
    """
    scope = BraceScope(start)
    for index in range(start, len(lines)):
        if scope.feed(index, lines[index]):
            return Extent(start=start, end=index, balanced=True)
    return Extent(start=start, end=max(start, len(lines) - 1), balanced=False)


def function_body(lines: list[str], start: int) -> str:
    return resolve_extent(lines, start).body(lines)
