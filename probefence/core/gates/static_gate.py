"""Static Gate: source-level probe contract checks

Checks, in order:
- execute bit
- shebang exactly ``#!/usr/bin/env bash``
- ``set -euo pipefail``
- ``bash -n`` syntax check
- ``probe_name`` assigned and equal to the file stem
- ``primary_capability_id`` assigned
- ``emit-record`` invoked with every required flag

The script is never executed. Every violation is reported, not just the first.
"""

import logging
import re
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from probefence.core.paths import is_executable
from probefence.core.probes.metadata import collect_probe_scripts, parse_assignment
from probefence.core.probes.resolver import canonical_probes_root, resolve_probe

logger = logging.getLogger(__name__)

GATE_NAME = "probe-gate"
REQUIRED_SHEBANG = "#!/usr/bin/env bash"
STRICT_MODE_PATTERN = re.compile(r"^\s*set -euo pipefail", re.MULTILINE)
EMITTER_NAME = "emit-record"

# Flags every emit-record call must carry; tuples list accepted aliases
REQUIRED_EMITTER_FLAGS = (
    ("--run-mode",),
    ("--probe-name", "--probe-id"),
    ("--probe-version",),
    ("--primary-capability-id",),
    ("--command",),
    ("--category",),
    ("--verb",),
    ("--target",),
    ("--status",),
)


@dataclass
class StaticGateResult:
    """Outcome of the static contract for one script"""

    script: Path
    display_path: str
    errors: List[str] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.errors

    def lines(self) -> List[str]:
        if self.passed:
            return [f"{GATE_NAME}: [PASS] {self.display_path}"]
        return [f"{GATE_NAME}: {self.display_path}: {error}" for error in self.errors]


def _literal(contents: str, var: str) -> Optional[str]:
    value = parse_assignment(contents, var)
    return value if value and "$" not in value else None


def _syntax_error(script: Path) -> Optional[str]:
    try:
        result = subprocess.run(["bash", "-n", str(script)], capture_output=True, text=True)
    except OSError as e:
        return f"bash -n failed: {e}"
    if result.returncode == 0:
        return None
    return result.stderr.strip() or "bash -n failed"


def _missing_emitter_flags(contents: str) -> List[str]:
    missing = []
    for aliases in REQUIRED_EMITTER_FLAGS:
        if not any(re.search(rf"(?<![\w-]){re.escape(flag)}(?![\w-])", contents) for flag in aliases):
            missing.append(aliases[0])
    return missing


def check_static_contract(script: Path, repo_root: Path) -> StaticGateResult:
    script = Path(script)
    try:
        display_path = str(script.relative_to(repo_root.resolve()))
    except ValueError:
        display_path = str(script)
    result = StaticGateResult(script=script, display_path=display_path)

    try:
        contents = script.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        result.errors.append(f"unreadable: {e}")
        return result

    if not is_executable(script):
        result.errors.append("not executable (chmod +x)")

    first_line = contents.splitlines()[0] if contents else ""
    if first_line != REQUIRED_SHEBANG:
        result.errors.append(f"missing '{REQUIRED_SHEBANG}' shebang")

    if not STRICT_MODE_PATTERN.search(contents):
        result.errors.append("missing 'set -euo pipefail'")

    syntax_error = _syntax_error(script)
    if syntax_error:
        result.errors.append(f"syntax error: {syntax_error}")

    probe_name = _literal(contents, "probe_name")
    if not probe_name:
        result.errors.append("missing probe_name assignment")
    elif probe_name != script.stem:
        result.errors.append(f"probe_name '{probe_name}' does not match filename '{script.stem}'")

    if not _literal(contents, "primary_capability_id"):
        result.errors.append("missing primary_capability_id assignment")

    if EMITTER_NAME not in contents:
        result.errors.append(f"does not invoke {EMITTER_NAME}")
    else:
        for flag in _missing_emitter_flags(contents):
            result.errors.append(f"{EMITTER_NAME} call missing {flag}")

    logger.debug(f"Static gate {display_path}: {len(result.errors)} violation(s)")
    return result


def collect_gate_targets(repo_root: Path, identifier: Optional[str] = None) -> List[Path]:
    """
    One resolved probe, or every ``*.sh`` under ``probes/`` (recursively).

    Raises:
        ProbeNotFoundError, ProbeEscapeError: The named probe cannot be used
        ProbeDirUnreadableError: probes/ is missing
    """
    if identifier:
        return [resolve_probe(repo_root, identifier).path]
    probes_root = canonical_probes_root(repo_root)
    targets = []
    for script in collect_probe_scripts([probes_root]):
        canonical = script.resolve()
        if canonical.is_relative_to(probes_root):
            targets.append(canonical)
        else:
            logger.warning(f"Skipping {script}: resolves outside probes/")
    return targets


def run_static_gate(repo_root: Path, targets: List[Path]) -> List[StaticGateResult]:
    return [check_static_contract(script, repo_root) for script in targets]
