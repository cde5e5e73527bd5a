"""Entry point: python -m moveaudit [--json] [--fail-on LEVEL] <path>"""
from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

from .config import AuditConfig, ConfigLoadError, load_config
from .core.corpus import CorpusLoadError, RuleCorpus
from .core.engine import AuditEngine
from .core.models import Severity
from .report import render_json, render_markdown
from .runtimes.sui.adapter import MANIFEST, SuiProject
from .runtimes.sui.build import SuiBuildRunner

logger = logging.getLogger("moveaudit")

_SEVERITY_CHOICES = [s.value.lower() for s in Severity]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="moveaudit",
        description="Heuristic security audit for Sui Move smart contracts",
    )
    parser.add_argument("path", type=Path, help="Move source file or package directory to audit")
    parser.add_argument("--json", action="store_true", dest="json_output", help="Output the result as JSON")
    parser.add_argument("-o", "--output", type=Path, help="Write the report to this file")
    parser.add_argument("--config", type=Path, help="Path to an audit config YAML")
    parser.add_argument(
        "-s", "--severity",
        type=str.lower, choices=_SEVERITY_CHOICES,
        help="Minimum severity to report (default: info)",
    )
    parser.add_argument("-c", "--categories", help="Comma-separated list of rule categories to run")
    parser.add_argument(
        "--rules", type=Path, action="append", default=[],
        help="Extra rule YAML appended to the bundled corpus (repeatable)",
    )
    parser.add_argument("--jobs", type=int, help="Number of files audited concurrently")
    parser.add_argument("--no-build", action="store_true", help="Skip `sui move build`")
    parser.add_argument("--build-timeout", type=float, help="Seconds before `sui move build` is abandoned")
    parser.add_argument(
        "--fail-on",
        type=str.lower, choices=_SEVERITY_CHOICES,
        default="high",
        help="Minimum severity that causes a non-zero exit code (default: high)",
    )
    parser.add_argument("--quiet", action="store_true", help="Only print the report and errors")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.ERROR if args.quiet else logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s", stream=sys.stderr)

    try:
        config = _resolve_config(args)
        corpus = RuleCorpus.load(config.rule_paths)
    except (ConfigLoadError, CorpusLoadError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    target: Path = args.path
    if not target.exists():
        print(f"error: {target} does not exist", file=sys.stderr)
        return 2

    engine = AuditEngine(corpus, config)

    build_warnings: list[str] = []
    if target.is_dir():
        if config.build_enabled:
            build_warnings = _run_build(target, config)
        result = engine.audit_directory(target)
    else:
        if config.build_enabled:
            root = SuiProject.find_root(target)
            if root is not None:
                build_warnings = _run_build(root, config)
            else:
                msg = f"No {MANIFEST} found above {target}; skipping build"
                logger.warning(msg)
                build_warnings = [msg]
        result = engine.audit_single(target)
    result.warnings = build_warnings + result.warnings

    generated_at = datetime.now(timezone.utc).isoformat()
    if args.json_output:
        report = render_json(result, generated_at)
    else:
        report = render_markdown(result, generated_at)

    if args.output:
        args.output.write_text(report + "\n", encoding="utf-8")
        if not args.quiet:
            print(f"Report saved to: {args.output}", file=sys.stderr)
    else:
        print(report)

    if not args.quiet and not args.json_output:
        summary = result.summary
        print("\nAudit Summary:", file=sys.stderr)
        print(f"Files: {summary.files_audited}", file=sys.stderr)
        print(f"Findings: {summary.total_findings}", file=sys.stderr)
        print(f"Critical/High: {summary.critical_issues}", file=sys.stderr)

    # Exit code based on --fail-on threshold
    threshold = Severity(args.fail_on.upper()).rank
    return 1 if any(f.severity.rank <= threshold for f in result.findings) else 0


def _resolve_config(args: argparse.Namespace) -> AuditConfig:
    """Config file values, overridden by explicit command-line flags."""
    config = load_config(args.config) if args.config else AuditConfig()
    if args.severity:
        config.severity_threshold = Severity(args.severity.upper())
    if args.categories:
        config.enabled_categories = [c.strip() for c in args.categories.split(",") if c.strip()]
    if args.rules:
        config.rule_paths = config.rule_paths + list(args.rules)
    if args.jobs is not None:
        if args.jobs < 1:
            raise ConfigLoadError("--jobs must be at least 1")
        config.jobs = args.jobs
    if args.no_build:
        config.build_enabled = False
    if args.build_timeout is not None:
        config.build_timeout = args.build_timeout
    return config


def _run_build(project_root: Path, config: AuditConfig) -> list[str]:
    """Run the toolchain build for its diagnostics only; return its warnings."""
    if not SuiProject(project_root).has_manifest():
        msg = f"No {MANIFEST} in {project_root}; skipping build"
        logger.warning(msg)
        return [msg]
    outcome = SuiBuildRunner(timeout=config.build_timeout).run(project_root)
    for w in outcome.warnings:
        logger.warning(w)
    if outcome.ok:
        logger.info("contract compilation successful")
        if outcome.output:
            logger.info("build output:\n%s", outcome.output)
    elif outcome.output:
        logger.warning("build diagnostics:\n%s", outcome.output)
    return list(outcome.warnings)


if __name__ == "__main__":
    sys.exit(main())
