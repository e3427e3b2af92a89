"""
Boundary Object Models

Typed representation of one boundary-object record: stack metadata, probe
identity, run context, attempted operation, observed result, payload, and the
denormalized capability context. ``to_dict`` reproduces the wire layout
emitted by ``emit-record`` so records survive a parse/serialize round trip.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from probefence.core.catalog.models import CapabilitySnapshot

OBSERVED_RESULTS = ("success", "denied", "partial", "error")


@dataclass
class StackInfo:
    os: str
    sandbox_mode: Optional[str] = None
    agent_version: Optional[str] = None
    agent_profile: Optional[str] = None
    agent_model: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StackInfo":
        return cls(
            os=data["os"],
            sandbox_mode=data.get("sandbox_mode"),
            agent_version=data.get("agent_version"),
            agent_profile=data.get("agent_profile"),
            agent_model=data.get("agent_model"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"sandbox_mode": self.sandbox_mode, "os": self.os}
        for name in ("agent_version", "agent_profile", "agent_model"):
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        return data


@dataclass
class ProbeInfo:
    id: str
    version: str
    primary_capability_id: str
    secondary_capability_ids: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProbeInfo":
        return cls(
            id=data["id"],
            version=data["version"],
            primary_capability_id=data["primary_capability_id"],
            secondary_capability_ids=list(data.get("secondary_capability_ids") or []),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "version": self.version,
            "primary_capability_id": self.primary_capability_id,
            "secondary_capability_ids": list(self.secondary_capability_ids),
        }


@dataclass
class RunInfo:
    mode: str
    command: str
    workspace_root: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RunInfo":
        return cls(
            mode=data["mode"],
            command=data["command"],
            workspace_root=data.get("workspace_root"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"mode": self.mode, "workspace_root": self.workspace_root, "command": self.command}


@dataclass
class OperationInfo:
    category: str
    verb: str
    target: str
    args: Dict[str, Any] = field(default_factory=dict)  # always an object, never null

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OperationInfo":
        return cls(
            category=data["category"],
            verb=data["verb"],
            target=data["target"],
            args=dict(data.get("args") or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"category": self.category, "verb": self.verb, "target": self.target, "args": dict(self.args)}


@dataclass
class ResultInfo:
    observed_result: str
    raw_exit_code: Optional[int] = None
    errno: Optional[str] = None
    message: Optional[str] = None
    error_detail: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ResultInfo":
        return cls(
            observed_result=data["observed_result"],
            raw_exit_code=data.get("raw_exit_code"),
            errno=data.get("errno"),
            message=data.get("message"),
            error_detail=data.get("error_detail"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "observed_result": self.observed_result,
            "raw_exit_code": self.raw_exit_code,
            "errno": self.errno,
            "message": self.message,
            "error_detail": self.error_detail,
        }


@dataclass
class Payload:
    stdout_snippet: Optional[str] = None
    stderr_snippet: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)  # always an object, never null

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Payload":
        return cls(
            stdout_snippet=data.get("stdout_snippet"),
            stderr_snippet=data.get("stderr_snippet"),
            raw=dict(data.get("raw") or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stdout_snippet": self.stdout_snippet,
            "stderr_snippet": self.stderr_snippet,
            "raw": dict(self.raw),
        }


@dataclass
class CapabilityContext:
    primary: CapabilitySnapshot
    secondary: List[CapabilitySnapshot] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CapabilityContext":
        return cls(
            primary=CapabilitySnapshot.from_dict(data["primary"]),
            secondary=[CapabilitySnapshot.from_dict(entry) for entry in data.get("secondary") or []],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "primary": self.primary.to_dict(),
            "secondary": [snapshot.to_dict() for snapshot in self.secondary],
        }


@dataclass
class BoundaryObject:
    """
    One probe execution record.

    ``capabilities_schema_version`` names the catalog the record's capability
    ids belong to. It is optional here so older records still parse; the
    current schema requires it.
    """

    schema_version: str
    stack: StackInfo
    probe: ProbeInfo
    run: RunInfo
    operation: OperationInfo
    result: ResultInfo
    payload: Payload
    capability_context: CapabilityContext
    capabilities_schema_version: Optional[str] = None
    schema_key: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BoundaryObject":
        """
        Build a record from parsed JSON.

        Raises:
            KeyError, TypeError, ValueError: When a required field is missing
                or has the wrong shape
        """
        if not isinstance(data, dict):
            raise TypeError("boundary object must be a JSON object")
        return cls(
            schema_version=data["schema_version"],
            schema_key=data.get("schema_key"),
            capabilities_schema_version=data.get("capabilities_schema_version"),
            stack=StackInfo.from_dict(data["stack"]),
            probe=ProbeInfo.from_dict(data["probe"]),
            run=RunInfo.from_dict(data["run"]),
            operation=OperationInfo.from_dict(data["operation"]),
            result=ResultInfo.from_dict(data["result"]),
            payload=Payload.from_dict(data["payload"]),
            capability_context=CapabilityContext.from_dict(data["capability_context"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"schema_version": self.schema_version}
        if self.schema_key is not None:
            data["schema_key"] = self.schema_key
        if self.capabilities_schema_version is not None:
            data["capabilities_schema_version"] = self.capabilities_schema_version
        data.update({
            "stack": self.stack.to_dict(),
            "probe": self.probe.to_dict(),
            "run": self.run.to_dict(),
            "operation": self.operation.to_dict(),
            "result": self.result.to_dict(),
            "payload": self.payload.to_dict(),
            "capability_context": self.capability_context.to_dict(),
        })
        return data

    def to_json(self) -> str:
        """Compact single-line encoding used on the NDJSON stream"""
        return json.dumps(self.to_dict(), ensure_ascii=False, separators=(",", ":"))
