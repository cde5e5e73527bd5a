from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .core.models import Severity

_KNOWN_KEYS = {"categories", "severity_threshold", "exclude", "rules", "jobs", "build"}
_BUILD_KEYS = {"enabled", "timeout"}


class ConfigLoadError(Exception):
    """Raised when an audit configuration file is malformed."""


@dataclass
class AuditConfig:
    enabled_categories: list[str] = field(default_factory=lambda: ["all"])
    severity_threshold: Severity = Severity.INFO
    exclude_patterns: list[str] = field(default_factory=list)
    rule_paths: list[Path] = field(default_factory=list)
    jobs: int = 1
    build_enabled: bool = True
    build_timeout: float = 300.0

    def category_enabled(self, category: str) -> bool:
        if "all" in self.enabled_categories:
            return True
        return category in self.enabled_categories


def load_config(path: Path) -> AuditConfig:
    """Read an audit configuration YAML file.

    Relative rule paths are resolved against the config file's directory.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigLoadError(f"{path}: config file not found") from None
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigLoadError(f"{path}: could not read config file: {e}") from None
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"{path}: invalid YAML: {e}") from None

    if data is None:
        return AuditConfig()
    if not isinstance(data, dict):
        raise ConfigLoadError(f"{path}: expected a YAML mapping at top level")

    errors = _validate_config(data)
    if errors:
        joined = "\n  ".join(errors)
        raise ConfigLoadError(f"{path}: config validation failed:\n  {joined}")

    config = AuditConfig()
    if "categories" in data:
        config.enabled_categories = [str(c) for c in data["categories"]]
    if "severity_threshold" in data:
        config.severity_threshold = Severity(str(data["severity_threshold"]).upper())
    if "exclude" in data:
        config.exclude_patterns = [str(p) for p in data["exclude"]]
    if "rules" in data:
        base = Path(path).resolve().parent
        config.rule_paths = [base / str(p) for p in data["rules"]]
    if "jobs" in data:
        config.jobs = data["jobs"]

    build = data.get("build") or {}
    if "enabled" in build:
        config.build_enabled = build["enabled"]
    if "timeout" in build:
        config.build_timeout = float(build["timeout"])
    return config


def _validate_config(data: dict) -> list[str]:
    errors: list[str] = []
    unknown = set(data) - _KNOWN_KEYS
    if unknown:
        errors.append(f"unknown keys: {sorted(unknown)}")

    for key in ("categories", "exclude", "rules"):
        if key in data and not isinstance(data[key], list):
            errors.append(f"{key}: expected list, got {type(data[key]).__name__}")

    if "severity_threshold" in data:
        value = str(data["severity_threshold"]).upper()
        if value not in {s.value for s in Severity}:
            errors.append(f"severity_threshold: unknown severity '{data['severity_threshold']}'")

    if "jobs" in data:
        jobs = data["jobs"]
        if isinstance(jobs, bool) or not isinstance(jobs, int) or jobs < 1:
            errors.append(f"jobs: expected a positive integer, got {jobs!r}")

    build = data.get("build")
    if build is not None:
        if not isinstance(build, dict):
            errors.append(f"build: expected dict, got {type(build).__name__}")
        else:
            unknown_build = set(build) - _BUILD_KEYS
            if unknown_build:
                errors.append(f"build: unknown keys: {sorted(unknown_build)}")
            if "enabled" in build and not isinstance(build["enabled"], bool):
                errors.append("build.enabled: expected bool")
            timeout = build.get("timeout")
            if timeout is not None and (
                isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0
            ):
                errors.append(f"build.timeout: expected a positive number, got {timeout!r}")
    return errors
