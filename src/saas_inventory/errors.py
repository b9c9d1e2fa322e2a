"""Exception taxonomy for the scan pipeline.

Every error carries a stable ``code`` so the HTTP layer (and any other
caller) can map it without string matching:

    ConnectorFailure            CONNECTOR_FAILURE    recorded, never fatal
    ScanInProgress              IN_PROGRESS          rejected, no state change
    ScanCooldown                COOLDOWN             rejected, no state change
    SystemBusy                  BUSY                 rejected, no state change
    SubjectNotFound             SUBJECT_NOT_FOUND
    InvalidScanRequest          INVALID_REQUEST
    ConfigurationError          CONFIGURATION_ERROR  fatal, before any connector runs
    InternalInvariantViolation  INVARIANT_VIOLATION  fatal, indicates a bug
"""

from __future__ import annotations


class InventoryError(Exception):
    """Base class for all scan pipeline errors."""

    code = "INTERNAL_ERROR"


class ConnectorFailure(InventoryError):
    """A single source could not be scanned (network, auth, timeout)."""

    code = "CONNECTOR_FAILURE"

    def __init__(self, source_id: str, reason: str) -> None:
        super().__init__(f"{source_id}: {reason}")
        self.source_id = source_id
        self.reason = reason


class ConcurrencyRejected(InventoryError):
    """A scan request was refused by admission control."""

    code = "REJECTED"


class ScanInProgress(ConcurrencyRejected):
    code = "IN_PROGRESS"

    def __init__(self, subject_id: str) -> None:
        super().__init__(f"Scan already in progress for {subject_id}")
        self.subject_id = subject_id


class ScanCooldown(ConcurrencyRejected):
    code = "COOLDOWN"

    def __init__(self, subject_id: str, retry_after: float) -> None:
        super().__init__(
            f"Scan requested too soon for {subject_id}; retry in {retry_after:.1f}s"
        )
        self.subject_id = subject_id
        self.retry_after = retry_after


class SystemBusy(ConcurrencyRejected):
    code = "BUSY"

    def __init__(self, active: int, requested: int, limit: int) -> None:
        super().__init__(
            f"System busy: {active} operations active, {requested} requested, limit {limit}"
        )
        self.active = active
        self.requested = requested
        self.limit = limit


class SubjectNotFound(InventoryError):
    code = "SUBJECT_NOT_FOUND"

    def __init__(self, subject_id: str) -> None:
        super().__init__(f"Unknown subject: {subject_id}")
        self.subject_id = subject_id


class InvalidScanRequest(InventoryError, ValueError):
    code = "INVALID_REQUEST"


class ConfigurationError(InventoryError):
    code = "CONFIGURATION_ERROR"


class InternalInvariantViolation(InventoryError):
    code = "INVARIANT_VIOLATION"
