"""Checks-effects-interactions: state writes that follow an external call."""
from __future__ import annotations

from ..core.evidence import TextEvidence
from ..core.models import Hit

LOOKAHEAD = 9


class StateConsistencyAnalyzer:
    """Reports the first field assignment within LOOKAHEAD lines of a call.

    The hit is anchored on the assignment, not on the call. Each call line
    yields at most one hit.
    """

    name = "state_consistency"

    def __init__(self, evidence: TextEvidence) -> None:
        self._evidence = evidence

    def scan(self, lines: list[str]) -> list[Hit]:
        hits: list[Hit] = []
        for i, line in enumerate(lines):
            if not self._evidence.has_external_call(line):
                continue
            for j in range(i + 1, min(i + 1 + LOOKAHEAD, len(lines))):
                if self._evidence.is_field_assignment(lines[j]):
                    hits.append(Hit(index=j, text=lines[j].strip()))
                    break
        return hits
