"""Host stack metadata: produced by ``detect-stack``, consumed by the emitter."""

import json
import logging
import os
import platform
import subprocess
from pathlib import Path
from typing import Mapping, Optional

from probefence.core.boundary.models import StackInfo
from probefence.core.errors import ExecutionError, JsonParseError
from probefence.core.modes.planner import RunMode
from probefence.core.paths import helper_environment, resolve_helper

logger = logging.getLogger(__name__)

DETECT_STACK_HELPER = "detect-stack"


def _uname() -> Optional[str]:
    try:
        result = subprocess.run(["uname", "-srm"], capture_output=True, text=True)
    except OSError:
        return None
    value = result.stdout.strip()
    if result.returncode != 0 or not value:
        return None
    return value


def detect_stack(run_mode: str, environ: Optional[Mapping[str, str]] = None) -> StackInfo:
    """
    Stack snapshot for the current host.

    Raises:
        UnknownModeError: run_mode is not registered
    """
    RunMode.parse(run_mode)
    env = os.environ if environ is None else environ
    os_info = _uname() or f"{platform.system().lower()} {platform.machine()}"
    return StackInfo(os=os_info, sandbox_mode=env.get("SANDBOX_MODE") or None)


def run_detect_stack(repo_root: Path, run_mode: str, environ: Optional[Mapping[str, str]] = None) -> StackInfo:
    """
    Run the repository's ``detect-stack`` helper and parse its JSON.

    Raises:
        HelperNotFoundError: Helper missing or not executable
        ExecutionError: Helper failed
        JsonParseError: Helper printed something other than a stack object
    """
    helper = resolve_helper(repo_root, DETECT_STACK_HELPER, environ)
    logger.debug(f"Collecting stack metadata via {helper} ({run_mode})")
    try:
        result = subprocess.run(
            [str(helper), run_mode],
            capture_output=True,
            text=True,
            env=helper_environment(environ),
        )
    except OSError as e:
        raise ExecutionError(f"Failed to execute {helper}: {e}") from e

    if result.returncode != 0:
        raise ExecutionError(f"{helper} failed: {result.stderr.strip()}")

    try:
        data = json.loads(result.stdout)
        return StackInfo.from_dict(data)
    except (json.JSONDecodeError, KeyError, TypeError) as e:
        raise JsonParseError(
            f"detect-stack emitted JSON that does not match the current stack schema: {e}"
        ) from e
