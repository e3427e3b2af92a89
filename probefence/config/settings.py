"""Harness Settings: repository-level configuration for the probe harness

Values are resolved with the precedence CLI flag > environment > settings file
(``probefence.json`` at the repository root) > built-in defaults.
"""

import json
import logging
import os
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Dict, List, Mapping, Optional

logger = logging.getLogger(__name__)

SETTINGS_FILENAME = "probefence.json"

DEFAULT_CATALOG_PATH = "schema/capabilities.json"
DEFAULT_BOUNDARY_PATH = "schema/boundary_object.json"
CANONICAL_BOUNDARY_SCHEMA_PATH = "schema/boundary_object_schema.json"
DEFAULT_AGENT_BINARY = "codex"

CATALOG_PATH_ENV = "CATALOG_PATH"
BOUNDARY_PATH_ENV = "BOUNDARY_PATH"
WORKSPACE_ROOT_ENV = "WORKSPACE_ROOT"
AGENT_BINARY_ENV = "PROBEFENCE_AGENT"


@dataclass
class HarnessSettings:
    """Harness Settings: defaults that may be overridden per invocation"""

    catalog_path: str = DEFAULT_CATALOG_PATH
    boundary_path: str = DEFAULT_BOUNDARY_PATH
    agent_binary: str = DEFAULT_AGENT_BINARY
    default_modes: List[str] = field(default_factory=list)  # empty: host defaults

    def to_dict(self) -> Dict:
        """Convert to dictionary"""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict) -> "HarnessSettings":
        """Create from dictionary"""
        return cls(
            catalog_path=data.get("catalog_path", DEFAULT_CATALOG_PATH),
            boundary_path=data.get("boundary_path", DEFAULT_BOUNDARY_PATH),
            agent_binary=data.get("agent_binary", DEFAULT_AGENT_BINARY),
            default_modes=list(data.get("default_modes", [])),
        )

    def with_env(self, environ: Optional[Mapping[str, str]] = None) -> "HarnessSettings":
        """Return a copy with environment overrides applied"""
        env = os.environ if environ is None else environ
        return HarnessSettings(
            catalog_path=env.get(CATALOG_PATH_ENV) or self.catalog_path,
            boundary_path=env.get(BOUNDARY_PATH_ENV) or self.boundary_path,
            agent_binary=env.get(AGENT_BINARY_ENV) or self.agent_binary,
            default_modes=list(self.default_modes),
        )


def load_settings(repo_root: Path) -> HarnessSettings:
    """Load settings from ``probefence.json``, or defaults when absent"""
    settings_path = repo_root / SETTINGS_FILENAME
    if not settings_path.exists():
        return HarnessSettings()

    try:
        with open(settings_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"Failed to load settings from {settings_path}: {e}")
        return HarnessSettings()

    if not isinstance(data, dict):
        logger.warning(f"Ignoring {settings_path}: expected a JSON object")
        return HarnessSettings()
    return HarnessSettings.from_dict(data)


def repo_relative(repo_root: Path, value: str) -> Path:
    path = Path(value)
    return path if path.is_absolute() else repo_root / path


@dataclass
class HarnessPaths:
    """Resolved on-disk locations for one harness invocation"""

    repo_root: Path
    catalog_path: Path
    boundary_path: Path
    settings: HarnessSettings

    @classmethod
    def resolve(
        cls,
        repo_root: Path,
        catalog: Optional[str] = None,
        boundary: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "HarnessPaths":
        """
        Resolve catalog and boundary schema paths.

        Args:
            repo_root: Repository root (relative paths are joined to it)
            catalog: ``--catalog`` value, if given
            boundary: ``--boundary`` value, if given
            environ: Environment mapping (defaults to ``os.environ``)
        """
        settings = load_settings(repo_root).with_env(environ)
        catalog_value = catalog or settings.catalog_path
        boundary_value = boundary or settings.boundary_path
        return cls(
            repo_root=repo_root,
            catalog_path=repo_relative(repo_root, catalog_value),
            boundary_path=repo_relative(repo_root, boundary_value),
            settings=settings,
        )

    @property
    def canonical_boundary_path(self) -> Path:
        """Checked-in boundary schema that every loaded boundary schema must equal"""
        return self.repo_root / CANONICAL_BOUNDARY_SCHEMA_PATH

    def probe_environment(self) -> Dict[str, str]:
        """Catalog/boundary variables exported to probes and helpers"""
        return {
            CATALOG_PATH_ENV: str(self.catalog_path),
            BOUNDARY_PATH_ENV: str(self.boundary_path),
        }
