"""In-memory record store.

Dict-backed store used for tests, dry runs and as a scratch target.
Insertion order is preserved.
"""

import uuid
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from spotsync.core.exceptions import RecordNotFoundError
from spotsync.core.models.records import TestRecord
from spotsync.storage.base import RecordInput, RecordStore, record_id_of, to_document


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class InMemoryRecordStore(RecordStore):
    """Record store held in a dict keyed by id."""

    def __init__(self, records: Optional[Iterable[RecordInput]] = None) -> None:
        self._records: Dict[str, TestRecord] = {}
        for record in records or []:
            self._insert(record, stamp=False)

    @property
    def backend_name(self) -> str:
        return "memory"

    def _new_id(self) -> str:
        return f"-{uuid.uuid4().hex[:19]}"

    def _insert(self, record: RecordInput, stamp: bool = True) -> str:
        document = to_document(record)
        record_id = record_id_of(record)
        if not record_id or record_id in self._records:
            record_id = self._new_id()
        if stamp:
            now = _now()
            document.setdefault("created_at", now)
            document["updated_at"] = now
        document["id"] = record_id
        self._records[record_id] = TestRecord.model_validate(document)
        return record_id

    async def list_all(self) -> List[TestRecord]:
        return [record.model_copy(deep=True) for record in self._records.values()]

    async def add(self, record: RecordInput) -> str:
        return self._insert(record)

    async def update(self, record_id: str, partial: RecordInput) -> None:
        existing = self._records.get(record_id)
        if existing is None:
            raise RecordNotFoundError(record_id, self.backend_name)
        merged = existing.to_document()
        merged.update(to_document(partial))
        merged["id"] = record_id
        merged["updated_at"] = _now()
        self._records[record_id] = TestRecord.model_validate(merged)

    async def get(self, record_id: str) -> Optional[TestRecord]:
        record = self._records.get(record_id)
        return record.model_copy(deep=True) if record is not None else None

    async def count(self) -> int:
        return len(self._records)
