"""Record model shared by the engine and every store."""

from spotsync.core.models.records import (
    SENTINEL_VALUES,
    ConfidenceLevel,
    RawRecord,
    RawShape,
    TestRecord,
    TestResultRow,
    detect_shape,
    is_present,
    is_sentinel,
)

__all__ = [
    "SENTINEL_VALUES",
    "ConfidenceLevel",
    "RawRecord",
    "RawShape",
    "TestRecord",
    "TestResultRow",
    "detect_shape",
    "is_present",
    "is_sentinel",
]
