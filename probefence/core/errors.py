"""Probe Harness Exception Definitions

Exception hierarchy shared by every harness component. Each top-level class
maps to one error kind:

- ConfigError: repository root, schema or catalog files cannot be found/read
- ContractError: a caller broke the harness contract (unknown mode, unknown
  capability, probe outside probes/, conflicting payload flags, ...)
- ExecutionError: helpers or probe processes could not be run to completion
- ValidationError: JSON or schema validation of a record failed

TMPDIR creation failures are not raised; they are recorded on the TMPDIR plan
so the probe can report them in its own record.
"""

from pathlib import Path
from typing import List, Optional


class ProbeFenceError(Exception):
    """Base exception for harness operations"""
    pass


# ============================================
# Config
# ============================================

class ConfigError(ProbeFenceError):
    """Repository layout or configuration files are missing or unreadable"""
    pass


class RepoRootNotFoundError(ConfigError):
    """No directory carrying the root sentinels was found"""
    pass


class CatalogLoadError(ConfigError):
    """Capability catalog could not be loaded"""

    def __init__(self, path: Path, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"failed to load capability catalog {self.path}: {reason}")


class SchemaLoadError(ConfigError):
    """JSON schema (or schema descriptor) could not be loaded"""
    pass


class ProbeDirUnreadableError(ConfigError):
    """probes/ directory is missing or cannot be listed"""
    pass


# ============================================
# Contract
# ============================================

class ContractError(ProbeFenceError):
    """Caller violated the harness contract"""
    pass


class UnknownModeError(ContractError):
    """Requested run mode is not registered"""

    def __init__(self, mode: str):
        self.mode = mode
        super().__init__(f"Unknown mode: {mode}")


class UnknownCapabilityError(ContractError):
    """Capability id is not present in the loaded catalog"""

    def __init__(self, capability_id: str, message: Optional[str] = None):
        self.capability_id = capability_id
        super().__init__(message or f"unknown capability '{capability_id}'")


class EmptyIdentifierError(ContractError):
    pass


class DuplicateCapabilityError(ContractError):
    pass


class SchemaVersionMismatchError(ContractError):
    """Catalog or boundary schema declares an unexpected schema version"""
    pass


class ProbeNotFoundError(ContractError):
    pass


class ProbeEscapeError(ContractError):
    """Probe candidate canonicalizes to a path outside probes/"""

    def __init__(self, identifier: str, resolved: Path):
        self.identifier = identifier
        self.resolved = resolved
        super().__init__(
            f"Probe '{identifier}' resolves to {resolved}, which is outside probes/"
        )


class PayloadConflictError(ContractError):
    pass


# ============================================
# Execution
# ============================================

class ExecutionError(ProbeFenceError):
    """Helper or probe process could not be run to completion"""
    pass


class HelperNotFoundError(ExecutionError):
    pass


class ConnectorUnavailableError(ExecutionError):
    """Mode needs an external agent binary that is not on PATH"""

    def __init__(self, mode: str, binary: str):
        self.mode = mode
        self.binary = binary
        super().__init__(f"mode '{mode}' requires '{binary}' on PATH")


class ProbeSpawnError(ExecutionError):
    pass


class ProbeSignaledError(ExecutionError):
    """Probe process was terminated by a signal"""

    def __init__(self, signal_number: int):
        self.signal_number = signal_number
        super().__init__(f"Probe terminated by signal {signal_number}")


class ProbeExitError(ExecutionError):
    """Probe exited with a non-zero code"""

    def __init__(self, returncode: int, stderr: str = ""):
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"probe exited with code {returncode}")


class ProbeTimeoutError(ExecutionError):
    """Probe exceeded a caller-supplied timeout (contract gate only)"""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"probe timed out after {timeout:g}s")


# ============================================
# Validation
# ============================================

class ValidationError(ProbeFenceError):
    """Record or input failed validation"""
    pass


class JsonParseError(ValidationError):
    pass


class StatusError(ValidationError):
    """observed_result is not one of the four accepted literals"""

    def __init__(self, status: str):
        self.status = status
        super().__init__(
            f"Unknown status: {status} (expected success|denied|partial|error)"
        )


class SchemaValidationError(ValidationError):
    """Value failed JSON-Schema validation"""

    def __init__(self, errors: List[str], subject: str = "boundary object"):
        self.errors = list(errors)
        details = "; ".join(self.errors) if self.errors else "unknown error"
        super().__init__(f"{subject} failed schema validation: {details}")
