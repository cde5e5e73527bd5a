from __future__ import annotations

import re
from pathlib import Path

import yaml

from .checks import validate_check
from .models import CheckKind, Confidence, Rule, RuleKind, Severity

DEFAULT_RULES_PATH = Path(__file__).resolve().parent.parent / "rules" / "move_default.yaml"

_REQUIRED_RULE_KEYS = {"id", "kind", "severity", "category", "title", "description", "recommendation"}
_TEXT_KEYS = {"kind", "severity", "category", "title", "description", "recommendation"}
_SEVERITIES = {s.value for s in Severity}
_CONFIDENCES = {c.value for c in Confidence}
_KINDS = {k.value for k in RuleKind}


class CorpusLoadError(Exception):
    """Raised when a rule file is missing or malformed."""


class RuleCorpus:
    """Immutable, ordered rule set loaded from one or more YAML rule files.

    The bundled file comes first; extra files may only append line rules.
    """

    def __init__(self, rules: tuple[Rule, ...]) -> None:
        self._rules = rules

    @classmethod
    def load(cls, extra_paths: list[Path] | None = None) -> RuleCorpus:
        rules: list[Rule] = list(_load_rule_file(DEFAULT_RULES_PATH, allow_passes=True))
        for path in extra_paths or []:
            rules.extend(_load_rule_file(path, allow_passes=False))

        seen: set[str] = set()
        dupes: list[str] = []
        for rule in rules:
            if rule.id in seen:
                dupes.append(rule.id)
            seen.add(rule.id)
        if dupes:
            raise CorpusLoadError(f"duplicate rule ids: {', '.join(dupes)}")
        return cls(tuple(rules))

    @property
    def rules(self) -> tuple[Rule, ...]:
        return self._rules

    def line_rules(self) -> list[Rule]:
        return [r for r in self._rules if r.kind is RuleKind.LINE]

    def pass_rule(self, kind: RuleKind) -> Rule | None:
        for rule in self._rules:
            if rule.kind is kind:
                return rule
        return None

    def categories(self) -> list[str]:
        return sorted({r.category for r in self._rules})

    def __len__(self) -> int:
        return len(self._rules)


def _load_rule_file(path: Path, allow_passes: bool) -> list[Rule]:
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise CorpusLoadError(f"{path}: rule file not found") from None
    except (OSError, UnicodeDecodeError) as e:
        raise CorpusLoadError(f"{path}: could not read rule file: {e}") from None
    except yaml.YAMLError as e:
        raise CorpusLoadError(f"{path}: invalid YAML: {e}") from None

    if not isinstance(data, dict):
        raise CorpusLoadError(f"{path}: expected a YAML mapping at top level")

    raw_rules = data.get("rules", [])
    if not isinstance(raw_rules, list):
        raise CorpusLoadError(f"{path}: 'rules' must be a list")

    errors = _validate_rules(raw_rules, allow_passes)
    if errors:
        joined = "\n  ".join(errors)
        raise CorpusLoadError(f"{path}: rule validation failed:\n  {joined}")

    return [_build_rule(r) for r in raw_rules]


def _build_rule(raw: dict) -> Rule:
    kind = RuleKind(raw["kind"])
    pattern = None
    if kind is RuleKind.LINE:
        flags = re.IGNORECASE if raw.get("ignore_case") else 0
        pattern = re.compile(raw["pattern"], flags)
    return Rule(
        id=str(raw["id"]),
        kind=kind,
        pattern=pattern,
        severity=Severity(raw["severity"].upper()),
        category=raw["category"],
        title=raw["title"],
        description=raw["description"],
        recommendation=raw["recommendation"],
        check=CheckKind(raw.get("check", CheckKind.NONE.value)),
        confidence=Confidence(raw.get("confidence", Confidence.MEDIUM.value).upper()),
    )


def _validate_rules(rules: list, allow_passes: bool) -> list[str]:
    """Validate that every rule has required keys and well-formed values."""
    errors: list[str] = []
    for i, rule in enumerate(rules):
        if not isinstance(rule, dict):
            errors.append(f"rules[{i}]: expected dict, got {type(rule).__name__}")
            continue
        where = f"rules[{i}] (id={rule.get('id', '?')})"
        missing = _REQUIRED_RULE_KEYS - rule.keys()
        if missing:
            errors.append(f"{where}: missing keys: {sorted(missing)}")

        for key in sorted(_TEXT_KEYS & rule.keys()):
            if not isinstance(rule[key], str):
                errors.append(f"{where}: '{key}' must be a string, got {type(rule[key]).__name__}")

        kind = rule.get("kind")
        if isinstance(kind, str):
            if kind not in _KINDS:
                errors.append(f"{where}: unknown kind '{kind}' (valid: {sorted(_KINDS)})")
            elif kind != RuleKind.LINE.value and not allow_passes:
                errors.append(f"{where}: only 'line' rules may be added by extra rule files")

        severity = rule.get("severity")
        if isinstance(severity, str) and severity.upper() not in _SEVERITIES:
            errors.append(f"{where}: unknown severity '{severity}'")
        if "confidence" in rule:
            confidence = rule["confidence"]
            if not isinstance(confidence, str):
                errors.append(f"{where}: 'confidence' must be a string, got {type(confidence).__name__}")
            elif confidence.upper() not in _CONFIDENCES:
                errors.append(f"{where}: unknown confidence '{confidence}'")

        if "check" in rule:
            errors.extend(validate_check(rule["check"], f"{where}.check"))

        if kind == RuleKind.LINE.value:
            pattern = rule.get("pattern")
            if not isinstance(pattern, str):
                errors.append(f"{where}: line rules require a string 'pattern'")
            else:
                try:
                    re.compile(pattern)
                except re.error as e:
                    errors.append(f"{where}: pattern does not compile: {e}")
    return errors
