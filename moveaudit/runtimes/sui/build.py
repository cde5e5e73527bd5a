"""Optional `sui move build` step.

The build result is informational only: it never changes findings or the
exit code.
"""
from __future__ import annotations

import subprocess
from dataclasses import dataclass, field
from pathlib import Path

from .adapter import MANIFEST

BUILD_COMMAND = ["sui", "move", "build"]
_OUTPUT_LIMIT = 4000
TRUNCATED_SUFFIX = "\n... (truncated)"


@dataclass
class BuildOutcome:
    ok: bool
    output: str = ""
    warnings: list[str] = field(default_factory=list)


class SuiBuildRunner:
    """Runs the Sui toolchain build in a project directory."""

    name = "sui_build"

    def __init__(self, timeout: float = 300.0) -> None:
        self.timeout = timeout

    def run(self, project_root: Path) -> BuildOutcome:
        if not (project_root / MANIFEST).is_file():
            return BuildOutcome(ok=False, warnings=[f"No {MANIFEST} in {project_root}; skipping build"])

        try:
            result = subprocess.run(
                BUILD_COMMAND,
                cwd=project_root,
                capture_output=True, text=True, timeout=self.timeout,
            )
        except FileNotFoundError:
            return BuildOutcome(ok=False, warnings=["sui binary not found; skipping build"])
        except subprocess.TimeoutExpired:
            return BuildOutcome(ok=False, warnings=[f"sui move build timed out after {self.timeout:g}s"])
        except OSError as e:
            return BuildOutcome(ok=False, warnings=[f"sui move build failed to start: {e}"])

        if result.returncode != 0:
            details = _clip((result.stderr or result.stdout).strip())
            return BuildOutcome(
                ok=False,
                output=details,
                warnings=[f"Compilation warnings/errors detected (exit {result.returncode})"],
            )
        return BuildOutcome(ok=True, output=_clip(result.stdout.strip()))


def _clip(text: str) -> str:
    if len(text) <= _OUTPUT_LIMIT:
        return text
    return text[:_OUTPUT_LIMIT] + TRUNCATED_SUFFIX
