from __future__ import annotations

from ..analyzers.access_control import missing_access_control
from ..analyzers.input_validation import missing_input_validation
from .evidence import TextEvidence
from .models import CheckKind

_VALID_CHECKS = {c.value for c in CheckKind}


def validate_check(value: object, path: str) -> list[str]:
    """Return a list of error strings if `value` is not a known check kind."""
    if not isinstance(value, str):
        return [f"{path}: expected string, got {type(value).__name__}"]
    if value not in _VALID_CHECKS:
        return [f"{path}: unknown check '{value}' (valid: {sorted(_VALID_CHECKS)})"]
    return []


def run_check(kind: CheckKind, line: str, index: int, lines: list[str], evidence: TextEvidence) -> bool:
    """Decide whether a pattern match on `lines[index]` is a genuine positive.

    CheckKind.NONE accepts every match.
    """
    if kind is CheckKind.NONE:
        return True
    if kind is CheckKind.SCOPE_EVIDENCE:
        return missing_access_control(line, index, lines, evidence)
    if kind is CheckKind.LOOKAHEAD_ASSERT:
        return missing_input_validation(line, index, lines, evidence)

    raise ValueError(f"Unknown check: {kind}")
