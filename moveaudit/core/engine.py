from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from ..analyzers.access_control import AdminFunctionAnalyzer
from ..analyzers.reentrancy import ReentrancyAnalyzer
from ..analyzers.state_consistency import StateConsistencyAnalyzer
from ..config import AuditConfig
from ..runtimes.sui.adapter import SuiProject
from .checks import run_check
from .corpus import RuleCorpus
from .evidence import TextEvidence
from .models import AuditResult, AuditSummary, Finding, Hit, Rule, RuleKind, Severity

logger = logging.getLogger(__name__)

# Lines shown on each side of a flagged line
SNIPPET_CONTEXT = 2
SNIPPET_MARKER = "→"

# Whole-buffer passes, in execution order
_PASSES = [
    (RuleKind.CEI_PASS, StateConsistencyAnalyzer),
    (RuleKind.ADMIN_PASS, AdminFunctionAnalyzer),
    (RuleKind.REENTRANCY_PASS, ReentrancyAnalyzer),
]


class AuditEngine:
    """Runs the rule corpus and contextual passes over Move sources."""

    def __init__(
        self,
        corpus: RuleCorpus,
        config: AuditConfig | None = None,
        evidence: TextEvidence | None = None,
    ) -> None:
        self.corpus = corpus
        self.config = config or AuditConfig()
        self.evidence = evidence or TextEvidence()

        enabled = self.config.category_enabled
        self._line_rules = [r for r in corpus.line_rules() if enabled(r.category)]
        # Category filtering applies to line rules only; every pass always runs
        self._passes = []
        for kind, analyzer_cls in _PASSES:
            rule = corpus.pass_rule(kind)
            if rule is not None:
                self._passes.append((rule, analyzer_cls(self.evidence)))

    def audit_lines(self, lines: list[str], file_name: str) -> list[Finding]:
        """Audit an in-memory line buffer. Findings are in discovery order."""
        findings: list[Finding] = []

        for i, line in enumerate(lines):
            for rule in self._line_rules:
                m = rule.pattern.search(line)
                if not m:
                    continue
                if not run_check(rule.check, line, i, lines, self.evidence):
                    continue
                matched = (m.group(1) if rule.pattern.groups else None) or m.group(0)
                findings.append(_make_finding(rule, Hit(index=i, text=matched), lines, file_name))

        for rule, analyzer in self._passes:
            for hit in analyzer.scan(lines):
                findings.append(_make_finding(rule, hit, lines, file_name))

        return findings

    def audit_file(self, path: Path) -> list[Finding]:
        findings, _ = self._audit_file(Path(path))
        return findings

    def audit_directory(self, path: Path) -> AuditResult:
        project = SuiProject(Path(path), self.config.exclude_patterns)
        files, warnings = project.discover()

        if self.config.jobs > 1 and len(files) > 1:
            with ThreadPoolExecutor(max_workers=self.config.jobs) as executor:
                outcomes = list(executor.map(self._audit_file, files))
        else:
            outcomes = [self._audit_file(f) for f in files]

        all_findings: list[Finding] = []
        for findings, warning in outcomes:
            all_findings.extend(findings)
            if warning:
                warnings.append(warning)

        result = self.build_result(all_findings, len(files))
        result.warnings = warnings
        return result

    def audit_single(self, path: Path) -> AuditResult:
        """Audit one file and summarise it as a one-file result."""
        findings, warning = self._audit_file(Path(path))
        result = self.build_result(findings, 1)
        if warning:
            result.warnings.append(warning)
        return result

    def build_result(self, findings: list[Finding], files_audited: int) -> AuditResult:
        """Filter by the severity threshold, stable-sort, and count."""
        threshold = self.config.severity_threshold.rank
        kept = [f for f in findings if f.severity.rank <= threshold]

        counts = {s: 0 for s in Severity}
        for f in kept:
            counts[f.severity] += 1

        summary = AuditSummary(
            total_findings=len(kept),
            severity_counts=counts,
            files_audited=files_audited,
            critical_issues=counts[Severity.CRITICAL] + counts[Severity.HIGH],
        )
        return AuditResult(
            findings=sorted(kept, key=lambda f: f.severity.rank),
            summary=summary,
        )

    def _audit_file(self, path: Path) -> tuple[list[Finding], str | None]:
        """Return (findings, warning). An unreadable file yields no findings."""
        logger.info("auditing %s", path)
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            msg = f"could not read {path}: {e}"
            logger.warning(msg)
            return [], msg
        return self.audit_lines(content.split("\n"), str(path)), None


def code_snippet(lines: list[str], index: int) -> str:
    """Render lines around `index` with the flagged line marked."""
    start = max(0, index - SNIPPET_CONTEXT)
    end = min(len(lines), index + SNIPPET_CONTEXT + 1)
    rendered = []
    for i in range(start, end):
        marker = SNIPPET_MARKER if i == index else " "
        rendered.append(f"{marker} {i + 1:>4}: {lines[i]}")
    return "\n".join(rendered)


def _make_finding(rule: Rule, hit: Hit, lines: list[str], file_name: str) -> Finding:
    return Finding(
        rule_id=rule.id,
        severity=rule.severity,
        category=rule.category,
        title=rule.title,
        description=f"{rule.description}: {hit.text}",
        line_number=hit.index + 1,
        code_snippet=code_snippet(lines, hit.index),
        recommendation=rule.recommendation,
        file_name=file_name,
        confidence=rule.confidence,
    )
