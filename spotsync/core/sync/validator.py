"""Pre-flight validation of record batches.

validate_records() never raises: it returns one human-readable defect
string per violation, and an empty list means the batch is clean. It is
the gate the transfer engine runs before any write.
"""

from typing import Iterable, List, Mapping, Tuple

from spotsync.core.logging import get_logger
from spotsync.core.models.records import (
    RawRecord,
    TestRecord,
    canonical_row,
    is_present,
    raw_get,
    raw_rows,
)

logger = get_logger(__name__)

# Checked row fields, in reporting order
ROW_FIELDS: Tuple[str, ...] = (
    "color_result",
    "possible_substance",
    "color_result_ar",
    "possible_substance_ar",
)


def _id_of(record: RawRecord) -> str:
    record_id = raw_get(record, "id")
    return str(record_id) if record_id else "Unknown"


def validate_record(record: RawRecord) -> List[str]:
    """Return the defects of a single record."""
    if not isinstance(record, (TestRecord, Mapping)):
        return [f"Test entry is not a record: {type(record).__name__}"]
    if isinstance(record, TestRecord):
        record = record.to_document()

    errors: List[str] = []
    record_id = _id_of(record)

    if not is_present(raw_get(record, "id")):
        name = raw_get(record, "method_name") or "Unknown"
        errors.append(f"Test missing or invalid ID: {name}")

    if not is_present(raw_get(record, "method_name")):
        errors.append(f"Test missing or invalid method_name: {record_id}")

    if not is_present(raw_get(record, "method_name_ar")):
        errors.append(f"Test missing or invalid Arabic name: {record_id}")

    rows = raw_rows(record)
    if not rows:
        errors.append(f"Test missing color results: {record_id}")
        return errors

    for index, row in enumerate(rows, start=1):
        values = canonical_row(row)
        for key in ROW_FIELDS:
            if not is_present(values.get(key)):
                errors.append(
                    f"Test {record_id}, Result {index}: Missing or invalid {key}"
                )
    return errors


def validate_records(records: Iterable[RawRecord]) -> List[str]:
    """
    Validate a batch of records.

    Args:
        records: Raw mappings or TestRecord instances.

    Returns:
        Defect descriptions, empty when the batch is clean.
    """
    errors: List[str] = []
    total = 0
    for record in records:
        total += 1
        errors.extend(validate_record(record))

    logger.info(
        f"Validation completed: {len(errors)} errors found in {total} tests"
    )
    return errors
