"""Holds loaded catalogs keyed by CatalogKey.

Records name the catalog they were emitted against through
``capabilities_schema_version``; the repository resolves their capability ids
against that catalog even when several catalog versions are loaded.
"""

from typing import Any, Dict, List, Mapping, Optional, Tuple

from probefence.core.catalog.index import CapabilityIndex
from probefence.core.catalog.models import Capability


class CatalogRepository:
    def __init__(self):
        self._catalogs: Dict[str, CapabilityIndex] = {}

    def register(self, index: CapabilityIndex) -> None:
        self._catalogs[index.key] = index

    def get(self, key: str) -> Optional[CapabilityIndex]:
        return self._catalogs.get(key)

    def lookup_context(self, record: Mapping[str, Any]) -> Optional[Tuple[Capability, List[Capability]]]:
        """
        Resolve a record's primary and secondary capabilities.

        Returns None when the record names no catalog, the catalog is not
        registered, or any referenced id is unknown to it.
        """
        key = record.get("capabilities_schema_version")
        index = self.get(key) if isinstance(key, str) else None
        if index is None:
            return None

        probe = record.get("probe") or {}
        primary = index.get(probe.get("primary_capability_id", ""))
        if primary is None:
            return None

        secondary = []
        for capability_id in probe.get("secondary_capability_ids") or []:
            capability = index.get(capability_id)
            if capability is None:
                return None
            secondary.append(capability)
        return primary, secondary
