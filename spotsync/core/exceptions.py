"""
Centralized Exception Hierarchy for spotsync.

All custom exceptions inherit from SpotSyncError so callers can catch
every engine-specific failure with one clause.

Helpful Error Messages
----------------------
Each exception carries:
- error_code: Unique identifier for documentation lookup (e.g., "SS-STOR-001")
- why_it_happened: Explanation of the root cause
- how_to_fix: Actionable steps to resolve the issue

The engine's public operations (migrate, compare, synchronize) never let
store failures escape; they fold them into a report. These exceptions are
raised by stores, row-level helpers and configuration loading.

Exception Hierarchy
-------------------
    SpotSyncError (base)
    ├── StoreError
    │   ├── StoreReadError
    │   ├── StoreWriteError
    │   ├── ReadOnlyStoreError
    │   └── RecordNotFoundError
    ├── ValidationError
    │   └── ResultIndexError
    └── ConfigurationError
"""

import re
from typing import Any, List, Optional


def sanitize_message(message: str) -> str:
    """Sanitize an error message to avoid leaking credentials.

    Masks auth query parameters, bearer tokens, basic-auth userinfo and
    long key-like strings.

    Args:
        message: Original error message

    Returns:
        Sanitized message with sensitive info replaced
    """
    if not message:
        return message

    patterns = [
        # Realtime-database REST auth tokens in query strings
        (r"([?&](?:auth|access_token|key)=)[^&\s\"']+", r"\1<hidden>"),
        (r"Bearer\s+[a-zA-Z0-9_.-]+", r"Bearer <token>"),
        (r"://[^:/\s]+:[^@/\s]+@", r"://<user>:<pass>@"),
        (r"(SPOTSYNC_REMOTE_TOKEN)[=:]\s*[^\s]+", r"\1=<hidden>"),
        (r"[a-fA-F0-9]{40,}", r"<hash>"),
    ]

    result = message
    for pattern, replacement in patterns:
        result = re.sub(pattern, replacement, result)
    return result


class SpotSyncError(Exception):
    """
    Base exception for all spotsync errors.

    Example
    -------
        try:
            await store.update("marquis-test-test1", {"reference": "Ref"})
        except SpotSyncError as e:
            logger.error(f"Update failed: {e}")
            print(f"Fix: {e.how_to_fix}")
    """

    error_code: str = "SS-ERR-000"
    why_it_happened: str = "An unexpected error occurred"
    how_to_fix: List[str] = ["Check the error message for details"]

    def __init__(
        self,
        message: str,
        *,
        error_code: Optional[str] = None,
        why_it_happened: Optional[str] = None,
        how_to_fix: Optional[List[str]] = None,
    ) -> None:
        """Initialize SpotSyncError with helpful information.

        Args:
            message: Human-readable error message
            error_code: Unique identifier (e.g., "SS-STOR-001")
            why_it_happened: Explanation of root cause
            how_to_fix: List of actionable fix suggestions
        """
        super().__init__(sanitize_message(message))

        if error_code is not None:
            self.error_code = error_code
        if why_it_happened is not None:
            self.why_it_happened = why_it_happened
        if how_to_fix is not None:
            self.how_to_fix = how_to_fix

    @property
    def user_message(self) -> str:
        """Get the user-friendly error message."""
        return str(self)


# ============================================================================
# Store Exceptions
# ============================================================================


class StoreError(SpotSyncError):
    """
    Raised when a store operation fails.

    This can occur when:
    - The remote database is unreachable or rejects the request
    - The local dataset file is missing or malformed
    - A write targets a store that does not accept writes
    """

    error_code = "SS-STOR-000"
    why_it_happened = (
        "A store operation failed. The backend may be unreachable, "
        "misconfigured, or the data file may be unreadable"
    )
    how_to_fix = [
        "Check the store URL or dataset path in spotsync.yaml",
        "Verify network connectivity to the remote database",
        "Run 'spotsync compare' to inspect both stores",
    ]

    def __init__(
        self,
        message: str,
        backend: Optional[str] = None,
        *,
        error_code: Optional[str] = None,
        why_it_happened: Optional[str] = None,
        how_to_fix: Optional[List[str]] = None,
    ) -> None:
        super().__init__(
            message,
            error_code=error_code,
            why_it_happened=why_it_happened,
            how_to_fix=how_to_fix,
        )
        self.backend = backend


class StoreReadError(StoreError):
    """Raised when a full snapshot or single record cannot be read."""

    error_code = "SS-STOR-001"
    why_it_happened = "The store could not be read"
    how_to_fix = [
        "Check that the dataset file exists and contains valid JSON",
        "Check that the remote base URL and auth token are correct",
    ]


class StoreWriteError(StoreError):
    """Raised when an add or update call is rejected by the backend."""

    error_code = "SS-STOR-002"
    why_it_happened = "The store rejected a write"
    how_to_fix = [
        "Check that the auth token has write access",
        "Retry the run; already transferred records are skipped",
    ]


class ReadOnlyStoreError(StoreError):
    """
    Raised when writing to a store opened read-only.

    The embedded local dataset is read-only unless configured otherwise.
    """

    error_code = "SS-STOR-003"
    why_it_happened = "The target store is configured as read-only"
    how_to_fix = [
        "Set storage.local.read_only: false in spotsync.yaml",
        "Use 'spotsync sync --reverse' to prepare records without writing",
    ]


class RecordNotFoundError(StoreError):
    """Raised when a record id does not exist in the store."""

    error_code = "SS-STOR-004"
    why_it_happened = "No record with the requested id exists in the store"
    how_to_fix = ["Check the record id with 'spotsync compare'"]

    def __init__(self, record_id: str, backend: Optional[str] = None) -> None:
        super().__init__(f"Test not found: {record_id}", backend)
        self.record_id = record_id


# ============================================================================
# Validation Exceptions
# ============================================================================


class ValidationError(SpotSyncError):
    """
    Raised when input data fails a contract check.

    Record-level data defects are reported as strings by the validator,
    not raised; this exception covers contract violations in helpers.
    """

    error_code = "SS-VAL-000"
    why_it_happened = "The input data did not satisfy the expected contract"
    how_to_fix = ["Run 'spotsync validate' on the store to list defects"]


class ResultIndexError(ValidationError):
    """Raised when a result row index is outside the record's results."""

    error_code = "SS-VAL-001"
    why_it_happened = "The result index does not refer to an existing row"
    how_to_fix = ["Use a zero-based index smaller than the number of results"]

    def __init__(self, index: int, size: int) -> None:
        super().__init__("Result index out of bounds")
        self.index = index
        self.size = size


# ============================================================================
# Configuration Exceptions
# ============================================================================


class ConfigurationError(SpotSyncError):
    """
    Raised when configuration values are invalid.

    Attributes
    ----------
    field_name : str
        The configuration field that failed validation
    value : Any
        The invalid value
    """

    error_code = "SS-CFG-001"
    why_it_happened = "A configuration value is missing or out of range"
    how_to_fix = [
        "Check spotsync.yaml for typos",
        "Check SPOTSYNC_* environment variables",
    ]

    def __init__(
        self,
        message: str,
        field_name: Optional[str] = None,
        value: Any = None,
    ) -> None:
        super().__init__(message)
        self.field_name = field_name
        self.value = value


def get_error_info(exc: BaseException) -> dict[str, Any]:
    """Get helpful error information for any exception.

    Args:
        exc: Exception to get info for

    Returns:
        Dict with error_code, why_it_happened, how_to_fix
    """
    if isinstance(exc, SpotSyncError):
        return {
            "error_code": exc.error_code,
            "why_it_happened": exc.why_it_happened,
            "how_to_fix": exc.how_to_fix,
        }

    return {
        "error_code": "SS-ERR-999",
        "why_it_happened": "An unexpected error occurred",
        "how_to_fix": [
            "Check the error message for details",
            "Re-run with --verbose for a full log",
        ],
    }
