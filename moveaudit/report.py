"""Markdown and JSON renderings of an AuditResult."""
from __future__ import annotations

import json

from . import __version__
from .core.models import AuditResult, Severity

SCHEMA_VERSION = "0.1"

_EMOJI = {
    Severity.CRITICAL: "🔴",
    Severity.HIGH: "🟠",
    Severity.MEDIUM: "🟡",
    Severity.LOW: "🔵",
    Severity.INFO: "⚪",
}

_PRIORITY = {
    Severity.CRITICAL: "Immediate",
    Severity.HIGH: "High",
    Severity.MEDIUM: "Medium",
    Severity.LOW: "Low",
    Severity.INFO: "Info",
}


def render_json(result: AuditResult, generated_at: str | None = None) -> str:
    meta: dict = {"schema_version": SCHEMA_VERSION, "tool_version": __version__}
    if generated_at:
        meta["generated_at"] = generated_at
    if result.warnings:
        meta["warnings"] = list(result.warnings)
    output = {"meta": meta, **result.to_dict()}
    return json.dumps(output, indent=2, ensure_ascii=False)


def render_markdown(result: AuditResult, generated_at: str) -> str:
    summary = result.summary
    lines = [
        "# 🛡️ Move Smart Contract Security Audit Report",
        "",
        f"**Generated:** {generated_at}",
        f"**Files Audited:** {summary.files_audited}",
        f"**Total Findings:** {summary.total_findings}",
        "",
        "## 📊 Executive Summary",
        "",
        severity_table(summary.severity_counts),
        "",
    ]

    if summary.critical_issues > 0:
        lines += ["⚠️ **CRITICAL ISSUES FOUND** - Immediate attention required!", ""]

    lines += ["## 🔍 Detailed Findings", ""]

    for n, finding in enumerate(result.findings, start=1):
        lines += [
            f"### {n}. {_EMOJI[finding.severity]} {finding.title}",
            "",
            f"**Severity:** {finding.severity.value}",
            f"**Category:** {finding.category}",
            f"**File:** {finding.file_name}",
            f"**Line:** {finding.line_number}",
            f"**Confidence:** {finding.confidence.value}",
            "",
            f"**Description:** {finding.description}",
            "",
            "**Code:**",
            "```move",
            finding.code_snippet,
            "```",
            "",
            f"**Recommendation:** {finding.recommendation}",
            "",
            "---",
            "",
        ]

    lines += [
        "## 🛠️ Remediation Priority",
        "",
        "1. **Critical & High**: Fix immediately before deployment",
        "2. **Medium**: Address in next development cycle",
        "3. **Low & Info**: Consider for code quality improvements",
        "",
        "---",
        "*Generated by moveaudit*",
    ]
    return "\n".join(lines)


def severity_table(counts: dict[Severity, int]) -> str:
    """Markdown table with a row per severity that has at least one finding."""
    rows = [
        "| Severity | Count | Priority |",
        "|----------|-------|----------|",
    ]
    for severity in Severity:
        count = counts.get(severity, 0)
        if count > 0:
            rows.append(f"| {_EMOJI[severity]} {severity.value} | {count} | {_PRIORITY[severity]} |")
    return "\n".join(rows)
