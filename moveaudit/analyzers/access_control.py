"""Access-control heuristics.

Two independent checks cover overlapping ground on purpose: the per-match
predicate behind the "Potential Missing Access Control" line rule, and the
administrative-function pass. A single `admin_withdraw` can be reported by
both, once as HIGH and once as CRITICAL.
"""
from __future__ import annotations

from ..core.evidence import TextEvidence
from ..core.models import Hit
from ..core.scope import function_body


def missing_access_control(line: str, index: int, lines: list[str], evidence: TextEvidence) -> bool:
    """True when a public function moves value without any visible guard."""
    name = evidence.function_name(line)
    if name is None:
        return False
    if evidence.is_presumed_safe_name(name):
        return False

    body = function_body(lines, index)
    guarded = evidence.has_access_control(body, "\n".join(lines))
    return (
        evidence.has_sensitive_operation(body)
        and not guarded
        and evidence.is_privileged_name(name)
    )


class AdminFunctionAnalyzer:
    """Flags admin_/owner_/set_/update_/change_ functions with no protection."""

    name = "admin_functions"

    def __init__(self, evidence: TextEvidence) -> None:
        self._evidence = evidence

    def scan(self, lines: list[str]) -> list[Hit]:
        hits: list[Hit] = []
        for i, line in enumerate(lines):
            if not self._evidence.is_admin_declaration(line):
                continue
            body = function_body(lines, i)
            if not self._evidence.has_admin_protection(body):
                hits.append(Hit(index=i, text=line.strip()))
        return hits
