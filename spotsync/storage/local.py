"""
Embedded local dataset store.

Reads the bundled dataset file, a JSON document holding
``{"chemical_tests": [...]}`` or a bare list. Entries come in any known
raw shape: canonical records, legacy ``color_results`` records, or flat
rows with one result each. Flat rows are grouped into one record per
``method_name``; records without an id get a slug id from
generate_test_id().

The dataset ships with the application and is read-only by default.
When opened writable, add() and update() persist the whole dataset back
to the file in canonical form.
"""

import asyncio
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as ModelValidationError

from spotsync.core.exceptions import (
    ReadOnlyStoreError,
    RecordNotFoundError,
    StoreReadError,
    StoreWriteError,
)
from spotsync.core.logging import get_logger
from spotsync.core.models.records import (
    RawShape,
    TestRecord,
    canonical_document,
    canonical_row,
    detect_shape,
)
from spotsync.core.sync.cleaner import generate_test_id
from spotsync.storage.base import RecordInput, RecordStore, record_id_of, to_document

logger = get_logger(__name__)

DATASET_KEY = "chemical_tests"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _group_flat_rows(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Group flat result rows into one document per method_name."""
    groups: Dict[str, Dict[str, Any]] = {}
    for row in rows:
        name = row.get("method_name") or ""
        if name not in groups:
            groups[name] = {
                "method_name": name,
                "method_name_ar": row.get("method_name_ar"),
                "test_type": row.get("test_type"),
                "test_number": row.get("test_number"),
                "prepare": row.get("prepare"),
                "prepare_ar": row.get("prepare_ar"),
                "description": row.get("description"),
                "description_ar": row.get("description_ar"),
                "reference": row.get("reference"),
                "results": [],
            }
        groups[name]["results"].append(canonical_row(row))
    return [
        {k: v for k, v in group.items() if v is not None}
        for group in groups.values()
    ]


def parse_dataset(data: Any) -> List[TestRecord]:
    """
    Turn the decoded dataset file into records.

    Args:
        data: Decoded JSON, a mapping with ``chemical_tests`` or a list.

    Returns:
        Records in file order; flat rows grouped by method name.
    """
    entries = data.get(DATASET_KEY, []) if isinstance(data, dict) else data
    if not isinstance(entries, list):
        raise StoreReadError(f"Dataset has no '{DATASET_KEY}' list", "local")

    documents: List[Dict[str, Any]] = []
    flat_rows: List[Dict[str, Any]] = []
    for entry in entries:
        if not isinstance(entry, dict):
            logger.warning("Skipping non-object dataset entry")
            continue
        if detect_shape(entry) is RawShape.FLAT_ROW:
            flat_rows.append(entry)
        else:
            documents.append(canonical_document(entry))
    documents.extend(_group_flat_rows(flat_rows))

    records: List[TestRecord] = []
    seen: set[str] = set()
    for document in documents:
        if not document.get("id"):
            document["id"] = generate_test_id(
                str(document.get("method_name") or ""),
                str(document.get("test_number") or ""),
            )
        try:
            record = TestRecord.model_validate(document)
        except ModelValidationError as e:
            logger.warning(
                "Skipping malformed dataset entry",
                id=document["id"],
                errors=e.error_count(),
            )
            continue
        if record.id in seen:
            logger.warning("Duplicate id in dataset", id=record.id)
        seen.add(str(record.id))
        records.append(record)
    return records


class LocalDatasetStore(RecordStore):
    """Record store backed by the embedded JSON dataset."""

    def __init__(self, path: Path, read_only: bool = True) -> None:
        self.path = Path(path)
        self.read_only = read_only
        self._records: Optional[Dict[str, TestRecord]] = None
        self._lock = asyncio.Lock()

    @property
    def backend_name(self) -> str:
        return "local"

    def _read_file(self) -> List[TestRecord]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise StoreReadError(
                f"Cannot read dataset {self.path}: {e}", "local"
            ) from e
        except json.JSONDecodeError as e:
            raise StoreReadError(
                f"Dataset {self.path} is not valid JSON: {e}", "local"
            ) from e
        return parse_dataset(data)

    def _write_file(self, records: List[TestRecord]) -> None:
        payload = {DATASET_KEY: [record.to_document() for record in records]}
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, indent=2)
            tmp_path.replace(self.path)
        except OSError as e:
            raise StoreWriteError(
                f"Cannot write dataset {self.path}: {e}", "local"
            ) from e

    async def _load(self) -> Dict[str, TestRecord]:
        if self._records is None:
            records = await asyncio.to_thread(self._read_file)
            self._records = {str(record.id): record for record in records}
            logger.debug("Dataset loaded", path=self.path, records=len(self._records))
        return self._records

    def _check_writable(self) -> None:
        if self.read_only:
            raise ReadOnlyStoreError(
                f"Local dataset {self.path.name} is read-only", "local"
            )

    @staticmethod
    def _validated(document: Dict[str, Any]) -> TestRecord:
        try:
            return TestRecord.model_validate(document)
        except ModelValidationError as e:
            raise StoreWriteError(
                f"Rejected malformed test {document.get('id')}: "
                f"{e.error_count()} invalid fields",
                "local",
            ) from e

    async def _commit(self, records: Dict[str, TestRecord]) -> None:
        """Write records to the file, then make them the cached snapshot."""
        await asyncio.to_thread(self._write_file, list(records.values()))
        self._records = records

    async def list_all(self) -> List[TestRecord]:
        records = await self._load()
        return [record.model_copy(deep=True) for record in records.values()]

    async def add(self, record: RecordInput) -> str:
        self._check_writable()
        async with self._lock:
            records = dict(await self._load())
            document = to_document(record)
            record_id = record_id_of(record) or generate_test_id(
                str(document.get("method_name", "")),
                str(document.get("test_number", "")),
            )
            base_id, suffix = record_id, 2
            while record_id in records:
                record_id = f"{base_id}-{suffix}"
                suffix += 1
            now = _now()
            document.setdefault("created_at", now)
            document["updated_at"] = now
            document["id"] = record_id
            records[record_id] = self._validated(document)
            await self._commit(records)
        return record_id

    async def update(self, record_id: str, partial: RecordInput) -> None:
        self._check_writable()
        async with self._lock:
            records = dict(await self._load())
            existing = records.get(record_id)
            if existing is None:
                raise RecordNotFoundError(record_id, "local")
            merged = existing.to_document()
            merged.update(to_document(partial))
            merged["id"] = record_id
            merged["updated_at"] = _now()
            records[record_id] = self._validated(merged)
            await self._commit(records)

    async def get(self, record_id: str) -> Optional[TestRecord]:
        record = (await self._load()).get(record_id)
        return record.model_copy(deep=True) if record is not None else None

    async def count(self) -> int:
        return len(await self._load())
