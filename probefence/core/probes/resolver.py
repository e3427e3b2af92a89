"""
Probe Resolver

Maps a probe identifier (id, file name, relative or absolute path) to a probe
script that lives under ``probes/``. Every candidate is canonicalized and must
stay inside the canonical probes directory, so neither absolute paths nor
symlinks can point the harness at a script elsewhere on the host.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from probefence.core.errors import (
    EmptyIdentifierError,
    ProbeDirUnreadableError,
    ProbeEscapeError,
    ProbeNotFoundError,
)

logger = logging.getLogger(__name__)

PROBES_DIR = "probes"
PROBE_SUFFIX = ".sh"


@dataclass(frozen=True)
class Probe:
    """A resolved probe script: id is the file stem, path is canonical"""

    id: str
    path: Path


def canonical_probes_root(repo_root: Path) -> Path:
    probes_root = repo_root / PROBES_DIR
    try:
        resolved = probes_root.resolve(strict=True)
    except (OSError, RuntimeError) as e:
        raise ProbeDirUnreadableError(f"Unable to canonicalize probes dir at {probes_root}: {e}") from e
    if not resolved.is_dir():
        raise ProbeDirUnreadableError(f"Probes path {probes_root} is not a directory")
    return resolved


def _candidates(repo_root: Path, identifier: str) -> List[Path]:
    path = Path(identifier)
    if path.is_absolute():
        return [path]

    candidates = [repo_root / path]
    if not path.suffix:
        candidates.append(repo_root / f"{identifier}{PROBE_SUFFIX}")
    candidates.append(repo_root / PROBES_DIR / path)
    if not path.suffix:
        candidates.append(repo_root / PROBES_DIR / f"{identifier}{PROBE_SUFFIX}")
    return candidates


def resolve_probe(repo_root: Path, identifier: str) -> Probe:
    """
    Resolve identifier to a probe inside ``probes/``.

    ``name``, ``name.sh``, ``./name``, ``probes/name.sh`` and the absolute
    path of the script all resolve to the same probe.

    Raises:
        EmptyIdentifierError: Identifier is blank
        ProbeEscapeError: A matching file exists but canonicalizes outside probes/
        ProbeNotFoundError: No candidate exists
        ProbeDirUnreadableError: probes/ is missing
    """
    probes_root = canonical_probes_root(repo_root)
    trimmed = identifier.strip()
    if not trimmed:
        raise EmptyIdentifierError("Empty probe identifier requested")
    if trimmed.startswith("./"):
        trimmed = trimmed[2:]

    escaped: Optional[Path] = None
    for candidate in _candidates(repo_root, trimmed):
        if not candidate.is_file():
            continue
        try:
            canonical = candidate.resolve(strict=True)
        except (OSError, RuntimeError):
            continue
        if canonical.is_relative_to(probes_root):
            logger.debug(f"Resolved probe {identifier!r} -> {canonical}")
            return Probe(id=canonical.stem, path=canonical)
        logger.debug(f"Rejected probe candidate {candidate} (resolves to {canonical})")
        escaped = escaped or canonical

    if escaped is not None:
        raise ProbeEscapeError(identifier, escaped)
    raise ProbeNotFoundError(f"Probe not found: {identifier}")


def list_probes(repo_root: Path) -> List[Probe]:
    """
    All ``*.sh`` probes directly under ``probes/``, sorted by id.

    Scripts whose canonical path leaves probes/ are skipped.

    Raises:
        ProbeNotFoundError: No probes were found
        ProbeDirUnreadableError: probes/ is missing or unreadable
    """
    probes_root = canonical_probes_root(repo_root)
    found: Dict[str, Probe] = {}
    try:
        entries = list(probes_root.iterdir())
    except OSError as e:
        raise ProbeDirUnreadableError(f"Unable to list {probes_root}: {e}") from e

    for entry in entries:
        if entry.suffix != PROBE_SUFFIX or not entry.is_file():
            continue
        try:
            canonical = entry.resolve(strict=True)
        except (OSError, RuntimeError):
            continue
        if not canonical.is_relative_to(probes_root):
            logger.warning(f"Skipping {entry}: resolves outside probes/ to {canonical}")
            continue
        found[canonical.stem] = Probe(id=canonical.stem, path=canonical)

    if not found:
        raise ProbeNotFoundError(f"No probes found under {probes_root}")
    return [found[probe_id] for probe_id in sorted(found)]
