"""Dataset statistics.

compute_statistics() summarizes a snapshot: how many tests and result
rows it holds, how many distinct substances and colors appear (compared
case-insensitively) and how tests split by type. It never raises.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, Mapping

from spotsync.core.logging import get_logger
from spotsync.core.models.records import (
    RawRecord,
    TestRecord,
    canonical_row,
    raw_get,
    raw_rows,
)

logger = get_logger(__name__)


@dataclass
class TestStatistics:
    """Summary counts for a set of tests."""

    __test__ = False  # not a pytest test class

    total_tests: int = 0
    total_results: int = 0
    unique_substances: int = 0
    unique_colors: int = 0
    tests_by_type: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def compute_statistics(records: Iterable[RawRecord]) -> TestStatistics:
    """
    Compute statistics over raw or model records.

    Legacy shapes are honored: ``color_results`` rows, ``color`` and
    ``substance`` keys, and ``category`` in place of ``test_type``.
    """
    stats = TestStatistics()
    substances: set[str] = set()
    colors: set[str] = set()

    for record in records:
        if isinstance(record, TestRecord):
            record = record.to_document()
        if not isinstance(record, Mapping):
            continue

        stats.total_tests += 1
        test_type = str(
            raw_get(record, "test_type") or raw_get(record, "category") or "unknown"
        )
        stats.tests_by_type[test_type] = stats.tests_by_type.get(test_type, 0) + 1

        rows = raw_rows(record)
        stats.total_results += len(rows)
        for row in rows:
            values = canonical_row(row)
            substance = values.get("possible_substance")
            color = values.get("color_result")
            if substance:
                substances.add(str(substance).casefold())
            if color:
                colors.add(str(color).casefold())

    stats.unique_substances = len(substances)
    stats.unique_colors = len(colors)
    logger.debug("Statistics calculated", **stats.to_dict())
    return stats
