"""
Record Emitter

Turns the ``emit-record`` flag set into one validated boundary object:

1. status and capability ids are checked against the four literals and the catalog
2. stack metadata comes from the ``detect-stack`` helper
3. ``run.workspace_root`` follows WORKSPACE_ROOT > git top-level > PWD > cwd
4. the record embeds the catalog key and capability snapshots
5. the finished record must pass the boundary schema before it is printed
"""

import json
import logging
import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from probefence.config.settings import HarnessPaths, WORKSPACE_ROOT_ENV
from probefence.core.boundary.schema import BoundarySchema
from probefence.core.catalog.index import CapabilityIndex
from probefence.core.emitter.payload import (
    JsonObjectBuilder,
    PayloadArgs,
    normalize_secondary_ids,
    validate_capability_id,
    validate_status,
)
from probefence.core.emitter.stack import run_detect_stack
from probefence.core.errors import CatalogLoadError, ContractError
from probefence.core.paths import canonicalize

logger = logging.getLogger(__name__)


@dataclass
class EmitRequest:
    """Flag values of one ``emit-record`` invocation"""

    run_mode: str
    probe_name: str
    probe_version: str
    primary_capability_id: str
    command: str
    category: str
    verb: str
    target: str
    status: str
    errno: Optional[str] = None
    message: Optional[str] = None
    raw_exit_code: Optional[int] = None
    error_detail: Optional[str] = None
    secondary_capability_ids: List[str] = field(default_factory=list)
    payload: PayloadArgs = field(default_factory=PayloadArgs)
    operation_args: JsonObjectBuilder = field(default_factory=lambda: JsonObjectBuilder("operation args"))

    def __post_init__(self):
        # empty strings from probes mean "not provided"
        self.errno = self.errno or None
        self.message = self.message or None
        self.error_detail = self.error_detail or None


def _git_toplevel() -> Optional[str]:
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
        )
    except OSError:
        return None
    value = result.stdout.strip()
    return value if result.returncode == 0 and value else None


def resolve_workspace_root(environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """WORKSPACE_ROOT, then ``git rev-parse --show-toplevel``, then PWD, then cwd."""
    env = os.environ if environ is None else environ

    explicit = env.get(WORKSPACE_ROOT_ENV)
    if explicit:
        return str(canonicalize(Path(explicit)))

    toplevel = _git_toplevel()
    if toplevel:
        return str(canonicalize(Path(toplevel)))

    pwd = env.get("PWD")
    if pwd:
        return str(canonicalize(Path(pwd)))

    try:
        cwd = Path.cwd()
    except OSError:
        return None
    return str(canonicalize(cwd)) or None


class RecordEmitter:
    """Builds records against one catalog and one boundary schema"""

    def __init__(self, paths: HarnessPaths, environ: Optional[Mapping[str, str]] = None):
        self.paths = paths
        self.environ = os.environ if environ is None else environ
        self._index: Optional[CapabilityIndex] = None
        self._schema: Optional[BoundarySchema] = None

    @property
    def index(self) -> CapabilityIndex:
        if self._index is None:
            self._index = CapabilityIndex.load(self.paths.catalog_path)
            if len(self._index) == 0:
                raise CatalogLoadError(self.paths.catalog_path, "no capability ids found")
        return self._index

    @property
    def schema(self) -> BoundarySchema:
        if self._schema is None:
            self._schema = BoundarySchema.load(
                self.paths.boundary_path,
                canonical_schema_path=self.paths.canonical_boundary_path,
            )
        return self._schema

    def build(self, request: EmitRequest) -> Dict[str, Any]:
        """
        Assemble and validate one record.

        Raises:
            StatusError: Unknown observed result
            UnknownCapabilityError: Primary or secondary id not in the catalog
            PayloadConflictError: Payload file combined with inline flags
            SchemaValidationError: Finished record does not match the schema
        """
        validate_status(request.status)
        index = self.index
        validate_capability_id(index, request.primary_capability_id, "primary capability id")
        secondary_ids = normalize_secondary_ids(index, request.secondary_capability_ids)

        payload = request.payload.build()
        operation_args = request.operation_args.build()

        schema = self.schema
        stack = run_detect_stack(self.paths.repo_root, request.run_mode, self.environ)
        workspace_root = resolve_workspace_root(self.environ)

        record: Dict[str, Any] = {"schema_version": schema.schema_version()}
        if schema.schema_key is not None:
            record["schema_key"] = schema.schema_key
        record.update({
            "capabilities_schema_version": index.key,
            "stack": stack.to_dict(),
            "probe": {
                "id": request.probe_name,
                "version": request.probe_version,
                "primary_capability_id": request.primary_capability_id,
                "secondary_capability_ids": secondary_ids,
            },
            "run": {
                "mode": request.run_mode,
                "workspace_root": workspace_root,
                "command": request.command,
            },
            "operation": {
                "category": request.category,
                "verb": request.verb,
                "target": request.target,
                "args": operation_args,
            },
            "result": {
                "observed_result": request.status,
                "raw_exit_code": request.raw_exit_code,
                "errno": request.errno,
                "message": request.message,
                "error_detail": request.error_detail,
            },
            "payload": payload,
            "capability_context": {
                "primary": index.snapshot(request.primary_capability_id).to_dict(),
                "secondary": [index.snapshot(capability_id).to_dict() for capability_id in secondary_ids],
            },
        })

        schema.validate(record)
        logger.debug(f"Built record for {request.probe_name} ({request.run_mode})")
        return record

    def emit(self, request: EmitRequest) -> str:
        """Compact single-line JSON for a validated record"""
        return json.dumps(self.build(request), ensure_ascii=False, separators=(",", ":"))


def parse_raw_exit_code(value: Optional[str]) -> Optional[int]:
    if value is None or not value.strip():
        return None
    try:
        return int(value.strip())
    except ValueError:
        raise ContractError(f"Failed to parse raw-exit-code as integer: {value}") from None
