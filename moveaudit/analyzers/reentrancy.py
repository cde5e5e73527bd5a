from __future__ import annotations

from ..core.evidence import TextEvidence
from ..core.models import Hit

LOOKBEHIND = 5
LOOKAHEAD = 9


class ReentrancyAnalyzer:
    """Flags cross-module invocations with no guard vocabulary nearby."""

    name = "reentrancy"

    def __init__(self, evidence: TextEvidence) -> None:
        self._evidence = evidence

    def scan(self, lines: list[str]) -> list[Hit]:
        hits: list[Hit] = []
        for i, line in enumerate(lines):
            if not self._evidence.is_cross_module_invocation(line):
                continue
            window = lines[max(0, i - LOOKBEHIND):i + 1 + LOOKAHEAD]
            if not self._evidence.has_guard(window):
                hits.append(Hit(index=i, text=line.strip()))
        return hits
