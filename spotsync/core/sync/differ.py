"""Store comparison.

Identifies discrepancies between two record stores: ids present on only
one side and tracked fields that differ for ids present on both. The
comparison is read-only. Called mid-migration it reflects a point in
time, which is fine for a diagnostic.
"""

import asyncio
from typing import Any, Dict, List, Sequence, Tuple

from spotsync.core.logging import get_logger
from spotsync.core.models.records import TestRecord
from spotsync.core.sync.models import DiffReport, FieldDifference
from spotsync.storage.base import RecordStore

logger = get_logger(__name__)

# (attribute, wire name) pairs compared by strict inequality
TRACKED_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("method_name", "method_name"),
    ("method_name_localized", "method_name_ar"),
    ("description", "description"),
    ("description_localized", "description_ar"),
)


def _index_by_id(records: Sequence[TestRecord], side: str) -> Dict[str, TestRecord]:
    """Map id -> record, keeping first appearance order."""
    index: Dict[str, TestRecord] = {}
    missing = 0
    for record in records:
        if not record.id:
            missing += 1
            continue
        index.setdefault(str(record.id), record)
    if missing:
        logger.warning(f"Ignoring {missing} records without an id", side=side)
    return index


def compare_snapshots(
    records_a: Sequence[TestRecord], records_b: Sequence[TestRecord]
) -> DiffReport:
    """
    Compare two in-memory snapshots.

    Args:
        records_a: Snapshot of store A
        records_b: Snapshot of store B

    Returns:
        DiffReport whose only_in_a, only_in_b and common_ids partition
        the union of both id sets
    """
    map_a = _index_by_id(records_a, "a")
    map_b = _index_by_id(records_b, "b")

    only_in_a = [record_id for record_id in map_a if record_id not in map_b]
    only_in_b = [record_id for record_id in map_b if record_id not in map_a]
    common_ids = [record_id for record_id in map_a if record_id in map_b]

    differences: List[FieldDifference] = []
    for record_id in common_ids:
        record_a, record_b = map_a[record_id], map_b[record_id]
        for attribute, wire_name in TRACKED_FIELDS:
            value_a: Any = getattr(record_a, attribute)
            value_b: Any = getattr(record_b, attribute)
            if value_a != value_b:
                differences.append(
                    FieldDifference(
                        id=record_id, field=wire_name, value_a=value_a, value_b=value_b
                    )
                )

    return DiffReport(
        count_a=len(records_a),
        count_b=len(records_b),
        only_in_a=only_in_a,
        only_in_b=only_in_b,
        common_ids=common_ids,
        field_differences=differences,
    )


async def _safe_snapshot(store: RecordStore, errors: List[str]) -> List[TestRecord]:
    try:
        return list(await store.list_all())
    except Exception as e:
        message = f"Could not read {store.backend_name} store: {e}"
        logger.warning(f"{message}; comparing against an empty snapshot")
        errors.append(message)
        return []


async def compare_stores(store_a: RecordStore, store_b: RecordStore) -> DiffReport:
    """
    Compare two stores.

    Read failures on either side degrade to an empty snapshot for that
    side; the failure is logged and listed in DiffReport.errors.
    """
    errors: List[str] = []
    records_a, records_b = await asyncio.gather(
        _safe_snapshot(store_a, errors), _safe_snapshot(store_b, errors)
    )

    report = compare_snapshots(records_a, records_b)
    report.errors = errors
    logger.info(
        "Comparison completed",
        a=store_a.backend_name,
        b=store_b.backend_name,
        only_in_a=len(report.only_in_a),
        only_in_b=len(report.only_in_b),
        differences=len(report.field_differences),
    )
    return report
