"""
Repository root and helper location.

The harness is always run from a checkout: the root is the first directory that
carries both the ``bin/.gitkeep`` sentinel and a ``Makefile``. Helpers probes
shell out to (``emit-record``, ``detect-stack``) live in ``bin/`` as synced
shims, with ``target/release`` and ``target/debug`` as local build outputs.
"""

import logging
import os
import shutil
import sys
from pathlib import Path
from typing import List, Mapping, Optional

from probefence.core.errors import HelperNotFoundError, RepoRootNotFoundError

logger = logging.getLogger(__name__)

ROOT_SENTINEL = Path("bin") / ".gitkeep"
MAKEFILE = "Makefile"
SYNCED_BIN_DIR = "bin"

ROOT_OVERRIDE_ENV = "ROOT_OVERRIDE"
PREFER_TARGET_ENV = "PROBEFENCE_PREFER_TARGET"
PYTHON_ENV = "PROBEFENCE_PYTHON"


def is_repo_root(candidate: Path) -> bool:
    return (candidate / ROOT_SENTINEL).is_file() and (candidate / MAKEFILE).is_file()


def canonicalize(path: Path) -> Path:
    """Resolve symlinks where possible, falling back to the input path."""
    try:
        return Path(path).resolve(strict=True)
    except (OSError, RuntimeError):
        return Path(path)


def _root_from_hint(hint: Optional[str]) -> Optional[Path]:
    if not hint:
        return None
    path = Path(hint)
    if not path.exists() or not is_repo_root(path):
        return None
    return canonicalize(path)


def _search_upwards(start: Path) -> Optional[Path]:
    try:
        current = start.resolve(strict=True)
    except (OSError, RuntimeError):
        return None
    for candidate in (current, *current.parents):
        if is_repo_root(candidate):
            return candidate
    return None


def find_repo_root(environ: Optional[Mapping[str, str]] = None) -> Path:
    """
    Locate the harness repository root.

    Order: ``ROOT_OVERRIDE``, then upwards from the running script's directory,
    then upwards from the installed package location.

    Raises:
        RepoRootNotFoundError: If no candidate carries both sentinels
    """
    env = os.environ if environ is None else environ

    root = _root_from_hint(env.get(ROOT_OVERRIDE_ENV))
    if root is not None:
        logger.debug(f"Repository root from {ROOT_OVERRIDE_ENV}: {root}")
        return root

    if sys.argv and sys.argv[0]:
        root = _search_upwards(Path(sys.argv[0]).parent)
        if root is not None:
            logger.debug(f"Repository root from executable location: {root}")
            return root

    root = _search_upwards(Path(__file__).parent)
    if root is not None:
        logger.debug(f"Repository root from package location: {root}")
        return root

    raise RepoRootNotFoundError(
        f"Unable to locate the probe harness repository root. "
        f"Set {ROOT_OVERRIDE_ENV} to the cloned repository."
    )


def is_executable(path: Path) -> bool:
    """True if path is a regular file with at least one execute bit set."""
    try:
        return path.is_file() and (path.stat().st_mode & 0o111) != 0
    except OSError:
        return False


def env_flag(value: Optional[str]) -> bool:
    return bool(value and value.strip() and value != "0")


def resolve_helper(
    repo_root: Path,
    name: str,
    environ: Optional[Mapping[str, str]] = None,
) -> Path:
    """
    Find an executable helper inside the repository.

    Synced ``bin/<name>`` is preferred over ``target/release`` and
    ``target/debug``; setting ``PROBEFENCE_PREFER_TARGET`` inverts that so
    freshly built helpers win.

    Raises:
        HelperNotFoundError: If no candidate exists with an execute bit
    """
    env = os.environ if environ is None else environ
    synced = repo_root / SYNCED_BIN_DIR / name
    release = repo_root / "target" / "release" / name
    debug = repo_root / "target" / "debug" / name

    if env_flag(env.get(PREFER_TARGET_ENV)):
        candidates = [release, debug, synced]
    else:
        candidates = [synced, release, debug]

    for candidate in candidates:
        if is_executable(candidate):
            logger.debug(f"Resolved helper {name} -> {candidate}")
            return candidate

    raise HelperNotFoundError(
        f"Unable to locate helper '{name}' under {repo_root}. "
        f"Expected an executable at bin/{name}."
    )


def find_on_path(name: str, environ: Optional[Mapping[str, str]] = None) -> Optional[Path]:
    env = os.environ if environ is None else environ
    found = shutil.which(name, path=env.get("PATH"))
    return Path(found) if found else None


def helper_environment(environ: Optional[Mapping[str, str]] = None) -> dict:
    """Copy of the environment with the shim interpreter pinned to this one."""
    env = dict(os.environ if environ is None else environ)
    env.setdefault(PYTHON_ENV, sys.executable)
    return env


def split_list(value: str) -> List[str]:
    """Split a comma and/or whitespace separated list, dropping empties."""
    return [item for item in value.replace(",", " ").split() if item]
