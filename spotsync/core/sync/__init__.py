"""
Cross-store synchronization engine.

    from spotsync.core.sync import MigrationOptions, migrate_records

    report = await migrate_records(local, remote, MigrationOptions(batch_size=5))
"""

from spotsync.core.sync.audit import AuditResult, AuditSummary, audit_records
from spotsync.core.sync.cleaner import clean_record, clean_row, generate_test_id
from spotsync.core.sync.differ import compare_snapshots, compare_stores
from spotsync.core.sync.manager import Synchronizer
from spotsync.core.sync.migrator import (
    MigrationProgress,
    TransferEngine,
    TransferOutcome,
    migrate_records,
)
from spotsync.core.sync.models import (
    DiffReport,
    FieldDifference,
    MigrationOptions,
    SyncReport,
)
from spotsync.core.sync.statistics import TestStatistics, compute_statistics
from spotsync.core.sync.validator import validate_record, validate_records

__all__ = [
    "AuditResult",
    "AuditSummary",
    "DiffReport",
    "FieldDifference",
    "MigrationOptions",
    "MigrationProgress",
    "SyncReport",
    "Synchronizer",
    "TestStatistics",
    "TransferEngine",
    "TransferOutcome",
    "audit_records",
    "clean_record",
    "clean_row",
    "compare_snapshots",
    "compare_stores",
    "compute_statistics",
    "generate_test_id",
    "migrate_records",
    "validate_record",
    "validate_records",
]
