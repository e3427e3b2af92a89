"""
Capability Catalog Models

Typed view of ``schema/capabilities.json``. Categories and layers are closed
enumerations that still accept values introduced by newer catalogs; unknown
values become ``OTHER`` members that keep their original string so they
serialize back unchanged.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class _OpenEnum(str, Enum):
    """str Enum whose unknown values map to an OTHER pseudo-member"""

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str) and value:
            member = str.__new__(cls, value)
            member._name_ = "OTHER"
            member._value_ = value
            return member
        return None

    @property
    def is_other(self) -> bool:
        return self._name_ == "OTHER"

    def __str__(self) -> str:
        return self.value


class CapabilityCategory(_OpenEnum):
    FILESYSTEM = "filesystem"
    PROCESS = "process"
    NETWORK = "network"
    SYSCTL = "sysctl"
    IPC = "ipc"
    SANDBOX_PROFILE = "sandbox_profile"
    AGENT_SANDBOX_POLICY = "agent_sandbox_policy"


class CapabilityLayer(_OpenEnum):
    OS_SANDBOX = "os_sandbox"
    AGENT_RUNTIME = "agent_runtime"


# ============================================
# Snapshot
# ============================================

@dataclass(frozen=True)
class CapabilitySnapshot:
    """Denormalized {id, category, layer} copied into every record"""

    id: str
    category: CapabilityCategory
    layer: CapabilityLayer

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "category": self.category.value, "layer": self.layer.value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CapabilitySnapshot":
        return cls(
            id=data["id"],
            category=CapabilityCategory(data["category"]),
            layer=CapabilityLayer(data["layer"]),
        )


# ============================================
# Catalog entries
# ============================================

@dataclass
class Operations:
    allow: List[str] = field(default_factory=list)
    deny: List[str] = field(default_factory=list)


@dataclass
class CapabilitySource:
    doc: str
    section: Optional[str] = None
    url_hint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"doc": self.doc}
        if self.section is not None:
            data["section"] = self.section
        if self.url_hint is not None:
            data["url_hint"] = self.url_hint
        return data


@dataclass
class Capability:
    """One catalog capability. Treated as immutable once loaded."""

    id: str
    category: CapabilityCategory
    layer: CapabilityLayer
    description: str
    operations: Operations = field(default_factory=Operations)
    meta_ops: List[str] = field(default_factory=list)
    agent_controls: List[str] = field(default_factory=list)
    notes: Optional[str] = None
    sources: List[CapabilitySource] = field(default_factory=list)

    def snapshot(self) -> CapabilitySnapshot:
        return CapabilitySnapshot(id=self.id, category=self.category, layer=self.layer)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Capability":
        operations = data.get("operations") or {}
        return cls(
            id=data.get("id", ""),
            category=CapabilityCategory(data["category"]),
            layer=CapabilityLayer(data["layer"]),
            description=data.get("description", ""),
            operations=Operations(
                allow=list(operations.get("allow", [])),
                deny=list(operations.get("deny", [])),
            ),
            meta_ops=list(data.get("meta_ops", [])),
            agent_controls=list(data.get("agent_controls", [])),
            notes=data.get("notes"),
            sources=[
                CapabilitySource(
                    doc=source["doc"],
                    section=source.get("section"),
                    url_hint=source.get("url_hint"),
                )
                for source in data.get("sources", [])
            ],
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "category": self.category.value,
            "layer": self.layer.value,
            "description": self.description,
            "operations": {"allow": list(self.operations.allow), "deny": list(self.operations.deny)},
        }
        if self.meta_ops:
            data["meta_ops"] = list(self.meta_ops)
        if self.agent_controls:
            data["agent_controls"] = list(self.agent_controls)
        if self.notes is not None:
            data["notes"] = self.notes
        if self.sources:
            data["sources"] = [source.to_dict() for source in self.sources]
        return data


@dataclass
class PolicyLayer:
    id: str
    description: str


@dataclass
class Scope:
    description: str
    categories: Dict[str, str]
    policy_layers: List[PolicyLayer] = field(default_factory=list)
    notes: Optional[str] = None
    limitations: Optional[str] = None


@dataclass
class DocRef:
    title: str
    url: Optional[str] = None
    url_hint: Optional[str] = None


@dataclass
class CatalogMetadata:
    key: str
    title: str
    labels: List[str] = field(default_factory=list)


@dataclass
class CapabilityCatalog:
    """
    Full catalog document.

    ``schema_version`` identifies the catalog document format; ``catalog.key``
    is the CatalogKey stored in records as ``capabilities_schema_version``.
    """

    schema_version: str
    catalog: CatalogMetadata
    scope: Scope
    docs: Dict[str, DocRef]
    capabilities: List[Capability]

    @property
    def key(self) -> str:
        return self.catalog.key

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CapabilityCatalog":
        """
        Build a catalog from parsed JSON.

        Raises:
            KeyError, TypeError, ValueError: On structurally invalid input
        """
        meta = data["catalog"]
        scope = data["scope"]
        return cls(
            schema_version=data["schema_version"],
            catalog=CatalogMetadata(
                key=meta["key"],
                title=meta.get("title", ""),
                labels=list(meta.get("labels", [])),
            ),
            scope=Scope(
                description=scope.get("description", ""),
                categories=dict(scope.get("categories", {})),
                policy_layers=[
                    PolicyLayer(id=layer.get("id", ""), description=layer.get("description", ""))
                    for layer in scope.get("policy_layers", [])
                ],
                notes=scope.get("notes"),
                limitations=scope.get("limitations"),
            ),
            docs={
                name: DocRef(title=doc.get("title", ""), url=doc.get("url"), url_hint=doc.get("url_hint"))
                for name, doc in data.get("docs", {}).items()
            },
            capabilities=[Capability.from_dict(entry) for entry in data.get("capabilities", [])],
        )

    def to_dict(self) -> Dict[str, Any]:
        scope: Dict[str, Any] = {
            "description": self.scope.description,
            "policy_layers": [
                {"id": layer.id, "description": layer.description}
                for layer in self.scope.policy_layers
            ],
            "categories": dict(self.scope.categories),
        }
        if self.scope.notes is not None:
            scope["notes"] = self.scope.notes
        if self.scope.limitations is not None:
            scope["limitations"] = self.scope.limitations

        docs: Dict[str, Any] = {}
        for name, doc in self.docs.items():
            entry: Dict[str, Any] = {"title": doc.title}
            if doc.url is not None:
                entry["url"] = doc.url
            if doc.url_hint is not None:
                entry["url_hint"] = doc.url_hint
            docs[name] = entry

        return {
            "schema_version": self.schema_version,
            "catalog": {
                "key": self.catalog.key,
                "title": self.catalog.title,
                "labels": list(self.catalog.labels),
            },
            "scope": scope,
            "docs": docs,
            "capabilities": [capability.to_dict() for capability in self.capabilities],
        }
