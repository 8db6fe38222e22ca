"""
Data models for sync operations.

Provides MigrationOptions for configuring a run, SyncReport for the
outcome of every top-level operation, and DiffReport for comparisons.
"""

from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from spotsync.core.config import SyncConfig


@dataclass
class MigrationOptions:
    """Options for one transfer run."""

    overwrite: bool = False
    validate_data: bool = True
    batch_size: int = 10
    skip_existing: bool = True
    batch_delay_sec: float = 1.0
    call_timeout_sec: Optional[float] = 30.0
    concurrent: bool = False
    dry_run: bool = False
    created_by: str = "migration_service"

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {self.batch_size}")
        if self.batch_delay_sec < 0:
            raise ValueError(
                f"batch_delay_sec must be >= 0, got {self.batch_delay_sec}"
            )
        if self.call_timeout_sec is not None and self.call_timeout_sec <= 0:
            raise ValueError(
                f"call_timeout_sec must be > 0, got {self.call_timeout_sec}"
            )

    @classmethod
    def from_config(cls, config: "SyncConfig", **overrides: Any) -> "MigrationOptions":
        """Build options from the sync section of the configuration."""
        values: Dict[str, Any] = {
            "overwrite": config.overwrite,
            "validate_data": config.validate_data,
            "batch_size": config.batch_size,
            "skip_existing": config.skip_existing,
            "batch_delay_sec": config.batch_delay_sec,
            "call_timeout_sec": config.call_timeout_sec,
            "concurrent": config.concurrent,
            "created_by": config.created_by,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


@dataclass
class SyncReport:
    """
    Report from a transfer, synchronization or preparation run.

    ``success`` is derived, never passed in: it is true iff at least one
    record was transferred and none failed. A run where nothing needed
    doing is therefore reported as non-success, with a message saying so.
    """

    transferred: int = 0
    failed: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)
    duration_ms: int = 0
    message: str = ""
    message_localized: str = ""
    cancelled: bool = False
    source_backend: str = ""
    target_backend: str = ""
    started_at: str = ""
    completed_at: str = ""
    success: bool = field(init=False)

    def __post_init__(self) -> None:
        self.success = self.transferred > 0 and self.failed == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "transferred": self.transferred,
            "failed": self.failed,
            "skipped": self.skipped,
            "errors": list(self.errors),
            "duration_ms": self.duration_ms,
            "message": self.message,
            "message_localized": self.message_localized,
            "cancelled": self.cancelled,
            "source_backend": self.source_backend,
            "target_backend": self.target_backend,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
        }


@dataclass
class FieldDifference:
    """One tracked field that differs between two records sharing an id."""

    id: str
    field: str
    value_a: Any
    value_b: Any

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class DiffReport:
    """
    Read-only comparison of two store snapshots.

    ``only_in_a``, ``only_in_b`` and ``common_ids`` are pairwise disjoint
    and together cover every id seen in either store.
    """

    count_a: int = 0
    count_b: int = 0
    only_in_a: List[str] = field(default_factory=list)
    only_in_b: List[str] = field(default_factory=list)
    common_ids: List[str] = field(default_factory=list)
    field_differences: List[FieldDifference] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def is_in_sync(self) -> bool:
        return not (self.only_in_a or self.only_in_b or self.field_differences)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count_a": self.count_a,
            "count_b": self.count_b,
            "only_in_a": list(self.only_in_a),
            "only_in_b": list(self.only_in_b),
            "common_ids": list(self.common_ids),
            "field_differences": [d.to_dict() for d in self.field_differences],
            "is_in_sync": self.is_in_sync,
            "errors": list(self.errors),
        }
