"""
Record cleaning and normalization.

Every raw shape (see RawShape) flows through clean_record(), which
fills safe defaults, maps legacy row keys onto the canonical names and
drops rows that still carry sentinel values. Dropped rows are reported
through the log only; the run report tracks whole records.
"""

import re
from typing import Any, List, Optional

from spotsync.core.logging import get_logger
from spotsync.core.models.records import (
    ConfidenceLevel,
    RawRecord,
    TestRecord,
    TestResultRow,
    canonical_row,
    detect_shape,
    is_present,
    raw_get,
    raw_rows,
)

logger = get_logger(__name__)

DEFAULT_METHOD_NAME = "Unnamed Test"
DEFAULT_METHOD_NAME_AR = "اختبار بدون اسم"
DEFAULT_TEST_TYPE = "general"
DEFAULT_TEST_NUMBER = "0"
DEFAULT_PREPARATION = "Standard preparation"
DEFAULT_PREPARATION_AR = "تحضير قياسي"
DEFAULT_REFERENCE = "Migration Import"

DEFAULT_COLOR = "Unknown Color"
DEFAULT_COLOR_AR = "لون غير معروف"
DEFAULT_SUBSTANCE = "Unknown Substance"
DEFAULT_SUBSTANCE_AR = "مادة غير معروفة"


def clean_row(raw: Any) -> TestResultRow:
    """
    Map one raw result row onto a TestResultRow.

    Canonical keys win over legacy ones (``color``, ``color_ar``,
    ``substance``, ``substance_ar``, ``confidence``). Missing values get
    placeholders; sentinel values are kept so the caller can filter.
    """
    row = canonical_row(raw)
    return TestResultRow(
        color_result=str(row.get("color_result") or DEFAULT_COLOR),
        color_result_localized=str(row.get("color_result_ar") or DEFAULT_COLOR_AR),
        possible_substance=str(row.get("possible_substance") or DEFAULT_SUBSTANCE),
        possible_substance_localized=str(
            row.get("possible_substance_ar") or DEFAULT_SUBSTANCE_AR
        ),
        confidence_level=ConfidenceLevel.coerce(row.get("confidence_level")),
        hex_color=row.get("hex_color"),
    )


def clean_rows(rows: List[Any], label: str = "") -> List[TestResultRow]:
    """Clean every row and drop those failing the row validity rule."""
    cleaned = [clean_row(row) for row in rows]
    kept = [row for row in cleaned if row.is_valid()]
    dropped = len(cleaned) - len(kept)
    if dropped:
        logger.warning(
            f"Dropped {dropped} invalid result rows", test=label or "unknown"
        )
    return kept


def clean_record(
    raw: RawRecord,
    *,
    created_by: str = "migration_service",
    position: Optional[int] = None,
) -> TestRecord:
    """
    Normalize a raw record into the canonical TestRecord.

    Args:
        raw: Mapping in any known shape, or a TestRecord.
        created_by: Provenance tag stamped on the cleaned record.
        position: 1-based position in the run; used as test number when
            the record has none.

    Returns:
        A new TestRecord. The source id is preserved; rows with sentinel
        color or substance values are removed.
    """
    shape = detect_shape(raw)
    if isinstance(raw, TestRecord):
        raw = raw.to_document()
    record_id = raw_get(raw, "id")
    method_name = raw_get(raw, "method_name") or DEFAULT_METHOD_NAME

    test_number = raw_get(raw, "test_number")
    if not test_number:
        test_number = str(position) if position is not None else DEFAULT_TEST_NUMBER

    logger.debug("Cleaning record", test=method_name, shape=shape.value)

    return TestRecord(
        id=str(record_id) if is_present(record_id) else None,
        method_name=method_name,
        method_name_localized=(
            raw_get(raw, "method_name_ar") or DEFAULT_METHOD_NAME_AR
        ),
        test_type=(
            raw_get(raw, "test_type") or raw_get(raw, "category") or DEFAULT_TEST_TYPE
        ),
        test_number=str(test_number),
        preparation_steps=raw_get(raw, "prepare") or DEFAULT_PREPARATION,
        preparation_steps_localized=(
            raw_get(raw, "prepare_ar") or DEFAULT_PREPARATION_AR
        ),
        description=raw_get(raw, "description") or None,
        description_localized=raw_get(raw, "description_ar") or None,
        reference=raw_get(raw, "reference") or DEFAULT_REFERENCE,
        results=clean_rows(raw_rows(raw), label=method_name),
        created_by=created_by,
    )


def generate_test_id(method_name: str, test_number: str) -> str:
    """
    Derive the slug id the local dataset uses for a test.

    Example:
        >>> generate_test_id("Marquis Test", "Test 1")
        'marquis-test-test1'
    """
    name = re.sub(r"[^a-z0-9\s]", "", (method_name or "").lower()).strip()
    name = re.sub(r"\s+", "-", name)
    number = re.sub(r"[^a-z0-9]", "", str(test_number or "").lower())
    return f"{name}-{number}"
