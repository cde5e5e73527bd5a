from __future__ import annotations

from ..core.evidence import TextEvidence

# Lines inspected after the declaration
LOOKAHEAD = 9


def missing_input_validation(line: str, index: int, lines: list[str], evidence: TextEvidence) -> bool:
    """True when no assert!/require!/abort_if follows the declaration closely."""
    window = lines[index + 1:index + 1 + LOOKAHEAD]
    return not evidence.has_validation(window)
