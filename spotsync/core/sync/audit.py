"""
Dataset audit.

A fuller check than the pre-flight validator, meant for reviewing a whole
dataset: hard errors (missing identity fields, rows without color or
substance, malformed display colors) are separated from warnings
(missing translations, descriptions or preparation text). It never
raises and writes nothing.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping

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

HEX_COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")


@dataclass
class AuditSummary:
    """Counts gathered while auditing."""

    total_tests: int = 0
    total_results: int = 0
    tests_with_preparation: int = 0
    tests_with_description: int = 0


@dataclass
class AuditResult:
    """Outcome of an audit. is_valid is true iff there are no errors."""

    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    summary: AuditSummary = field(default_factory=AuditSummary)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "summary": {
                "total_tests": self.summary.total_tests,
                "total_results": self.summary.total_results,
                "tests_with_preparation": self.summary.tests_with_preparation,
                "tests_with_description": self.summary.tests_with_description,
            },
        }


def _audit_rows(prefix: str, rows: List[Any], result: AuditResult) -> None:
    for index, raw_row in enumerate(rows, start=1):
        row_prefix = f"{prefix} Result {index}"
        row = canonical_row(raw_row)
        if not is_present(row.get("color_result")):
            result.errors.append(f"{row_prefix}: Missing color_result")
        if not is_present(row.get("possible_substance")):
            result.errors.append(f"{row_prefix}: Missing possible_substance")
        if not row.get("color_result_ar"):
            result.warnings.append(f"{row_prefix}: Missing color_result_ar")
        if not row.get("possible_substance_ar"):
            result.warnings.append(f"{row_prefix}: Missing possible_substance_ar")
        hex_color = row.get("hex_color")
        if hex_color and not HEX_COLOR_PATTERN.match(str(hex_color)):
            result.errors.append(
                f"{row_prefix}: Invalid hex_color format ({hex_color})"
            )


def _audit_record(
    position: int, record: Mapping[str, Any], result: AuditResult
) -> None:
    prefix = f"Test {position} ({raw_get(record, 'id') or 'no-id'})"

    if not raw_get(record, "id"):
        result.errors.append(f"{prefix}: Missing id")
    if not is_present(raw_get(record, "method_name")):
        result.errors.append(f"{prefix}: Missing method_name")
    if not is_present(raw_get(record, "method_name_ar")):
        result.errors.append(f"{prefix}: Missing method_name_ar")

    has_description = bool(raw_get(record, "description"))
    if not has_description:
        result.warnings.append(f"{prefix}: Missing description")
    if not raw_get(record, "description_ar"):
        result.warnings.append(f"{prefix}: Missing description_ar")
    if has_description:
        result.summary.tests_with_description += 1

    if raw_get(record, "prepare"):
        result.summary.tests_with_preparation += 1
    else:
        result.warnings.append(f"{prefix}: Missing prepare instructions")
    if not raw_get(record, "prepare_ar"):
        result.warnings.append(f"{prefix}: Missing prepare_ar instructions")

    rows = raw_rows(record)
    if not rows:
        result.warnings.append(f"{prefix}: No results found")
    result.summary.total_results += len(rows)
    _audit_rows(prefix, rows, result)


def audit_records(records: Iterable[RawRecord]) -> AuditResult:
    """
    Audit a set of raw or model records.

    Returns:
        AuditResult with errors, warnings and summary counts
    """
    result = AuditResult()
    for position, record in enumerate(records, start=1):
        result.summary.total_tests += 1
        if isinstance(record, TestRecord):
            record = record.to_document()
        if not isinstance(record, Mapping):
            result.errors.append(f"Test {position}: Entry is not a record")
            continue
        _audit_record(position, record, result)

    logger.info(
        "Audit completed",
        tests=result.summary.total_tests,
        errors=len(result.errors),
        warnings=len(result.warnings),
    )
    return result
