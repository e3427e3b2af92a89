"""Boundary objects: record models, schema validation and stream readers"""

from probefence.core.boundary.models import (
    OBSERVED_RESULTS,
    BoundaryObject,
    CapabilityContext,
    OperationInfo,
    Payload,
    ProbeInfo,
    ResultInfo,
    RunInfo,
    StackInfo,
)
from probefence.core.boundary.schema import BOUNDARY_PATTERN_VERSION, BoundarySchema
from probefence.core.boundary.reader import iter_ndjson, parse_json_stream, read_boundary_objects

__all__ = [
    "OBSERVED_RESULTS",
    "BoundaryObject",
    "CapabilityContext",
    "OperationInfo",
    "Payload",
    "ProbeInfo",
    "ResultInfo",
    "RunInfo",
    "StackInfo",
    "BOUNDARY_PATTERN_VERSION",
    "BoundarySchema",
    "iter_ndjson",
    "parse_json_stream",
    "read_boundary_objects",
]
