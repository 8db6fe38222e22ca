"""
Shared pytest fixtures and configuration for spotsync tests.

This file is automatically discovered by pytest and provides fixtures
that can be used across all test files.

Fixture Organization
--------------------
- **make_test_doc**: Builder for canonical test documents
- **sample_docs**: Five valid documents, ids marquis-test-1 .. 5
- **memory_store_factory**: InMemoryRecordStore builder
- **dataset_file**: Embedded dataset written to a temp directory
- **recorded_sleep**: Pacing stub that records requested delays
- **no_env_overrides**: Clears SPOTSYNC_* environment variables
"""

import json
from pathlib import Path
from typing import Any, Callable, Dict, Generator, List, Optional

import pytest

from spotsync.core.logging import configure_logging
from spotsync.storage.memory import InMemoryRecordStore

# ============================================================================
# Record Fixtures
# ============================================================================


def build_test_doc(
    number: int,
    *,
    method_name: Optional[str] = None,
    rows: Optional[List[Dict[str, Any]]] = None,
    **extra: Any,
) -> Dict[str, Any]:
    """Build a valid canonical test document."""
    doc: Dict[str, Any] = {
        "id": f"marquis-test-{number}",
        "method_name": method_name if method_name is not None else f"Test {number}",
        "method_name_ar": f"اختبار {number}",
        "test_type": "general",
        "test_number": str(number),
        "prepare": "Add one drop of reagent",
        "prepare_ar": "أضف قطرة واحدة من الكاشف",
        "description": "Color test",
        "description_ar": "اختبار لوني",
        "reference": "Ref",
        "results": rows
        if rows is not None
        else [
            {
                "color_result": "Purple",
                "color_result_ar": "بنفسجي",
                "possible_substance": "MDMA",
                "possible_substance_ar": "إم دي إم إيه",
                "confidence_level": "high",
                "hex_color": "#800080",
            }
        ],
    }
    doc.update(extra)
    return doc


@pytest.fixture
def make_test_doc() -> Callable[..., Dict[str, Any]]:
    """Return the test document builder."""
    return build_test_doc


@pytest.fixture
def sample_docs() -> List[Dict[str, Any]]:
    """Five valid documents."""
    return [build_test_doc(i) for i in range(1, 6)]


# ============================================================================
# Store Fixtures
# ============================================================================


@pytest.fixture
def memory_store_factory() -> Callable[..., InMemoryRecordStore]:
    """Create in-memory stores pre-filled with documents."""

    def _factory(records: Optional[List[Any]] = None) -> InMemoryRecordStore:
        return InMemoryRecordStore(records)

    return _factory


@pytest.fixture
def dataset_file(tmp_path: Path, sample_docs: List[Dict[str, Any]]) -> Path:
    """Write the sample documents as an embedded dataset file."""
    path = tmp_path / "Db.json"
    path.write_text(
        json.dumps({"chemical_tests": sample_docs}, ensure_ascii=False),
        encoding="utf-8",
    )
    return path


# ============================================================================
# Engine Fixtures
# ============================================================================


class RecordedSleep:
    """Awaitable stand-in for asyncio.sleep that records every delay."""

    def __init__(self) -> None:
        self.calls: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.calls.append(delay)


@pytest.fixture
def recorded_sleep() -> RecordedSleep:
    """Pacing stub; inspect ``.calls`` for requested delays."""
    return RecordedSleep()


@pytest.fixture
def no_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove every SPOTSYNC_* variable for the duration of a test."""
    for name in (
        "SPOTSYNC_REMOTE_URL",
        "SPOTSYNC_REMOTE_TOKEN",
        "SPOTSYNC_LOCAL_PATH",
        "SPOTSYNC_BATCH_SIZE",
        "SPOTSYNC_BATCH_DELAY",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def restore_logging_config() -> Generator[None, None, None]:
    """Put the default logging level back after each test."""
    yield
    configure_logging(level="INFO")
