from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum


class Severity(str, Enum):
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    INFO = "INFO"

    @property
    def rank(self) -> int:
        """Priority order: CRITICAL=0 ... INFO=4."""
        return _SEVERITY_ORDER.index(self)


_SEVERITY_ORDER = list(Severity)


class Confidence(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class RuleKind(str, Enum):
    """Line rules run in the scanner; the *_pass kinds are whole-buffer passes."""
    LINE = "line"
    CEI_PASS = "cei_pass"
    ADMIN_PASS = "admin_pass"
    REENTRANCY_PASS = "reentrancy_pass"


class CheckKind(str, Enum):
    NONE = "none"
    SCOPE_EVIDENCE = "scope_evidence"
    LOOKAHEAD_ASSERT = "lookahead_assert"


@dataclass(frozen=True)
class Rule:
    id: str
    kind: RuleKind
    pattern: re.Pattern | None
    severity: Severity
    category: str
    title: str
    description: str
    recommendation: str
    check: CheckKind = CheckKind.NONE
    confidence: Confidence = Confidence.MEDIUM


@dataclass(frozen=True)
class Hit:
    """A raw match: 0-based line index plus the text quoted in the description."""
    index: int
    text: str


@dataclass(frozen=True)
class Finding:
    rule_id: str
    severity: Severity
    category: str
    title: str
    description: str
    line_number: int
    code_snippet: str
    recommendation: str
    file_name: str
    confidence: Confidence = Confidence.MEDIUM

    def to_dict(self) -> dict:
        return {
            "rule_id": self.rule_id,
            "severity": self.severity.value,
            "category": self.category,
            "title": self.title,
            "description": self.description,
            "line_number": self.line_number,
            "code_snippet": self.code_snippet,
            "recommendation": self.recommendation,
            "file_name": self.file_name,
            "confidence": self.confidence.value,
        }


@dataclass
class AuditSummary:
    total_findings: int
    severity_counts: dict[Severity, int]
    files_audited: int
    critical_issues: int

    def to_dict(self) -> dict:
        return {
            "total_findings": self.total_findings,
            "severity_counts": {s.value: n for s, n in self.severity_counts.items()},
            "files_audited": self.files_audited,
            "critical_issues": self.critical_issues,
        }


@dataclass
class AuditResult:
    """Severity-sorted findings, their summary, and any warnings produced."""
    findings: list[Finding]
    summary: AuditSummary
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "summary": self.summary.to_dict(),
            "findings": [f.to_dict() for f in self.findings],
        }
