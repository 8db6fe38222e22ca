"""
Base Interface for Record Stores.

This module defines the RecordStore interface every backend implements.
The synchronization engine only talks to stores through it, so the
embedded dataset, the hosted database and the in-memory test double are
interchangeable.

Architecture Context
--------------------
              ┌───────────────────────┐
              │ TransferEngine /      │
              │ Synchronizer /        │
              │ compare_stores        │
              └──────────┬────────────┘
                         │
              ┌──────────┴──────────┐
              │     RecordStore     │
              │   (abstract base)   │
              └──────────┬──────────┘
                         │
         ┌───────────────┼───────────────┐
         ↓               ↓               ↓
    ┌─────────┐    ┌───────────┐   ┌──────────┐
    │ Memory  │    │  Local    │   │  Remote  │
    │         │    │  dataset  │   │  (REST)  │
    └─────────┘    └───────────┘   └──────────┘

Interface Contract
------------------
All methods are coroutines; every call may be slow and may fail on its
own. There are no multi-record transactions: atomicity is per call.

- list_all(): Full snapshot, ordering unspecified
- add(): Insert, returns the assigned id. Keeps the record's own id
  when the store has no record under it; never overwrites.
- update(): Merge-style update of an existing record
- get(): Single record or None
- count(): Number of records
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Union

from spotsync.core.models.records import TestRecord

# Full record or a partial document for merge updates
RecordInput = Union[TestRecord, Mapping[str, Any]]


def to_document(record: RecordInput, include_id: bool = False) -> Dict[str, Any]:
    """Convert a record or partial mapping to a wire document."""
    if isinstance(record, TestRecord):
        return record.to_document(include_id=include_id)
    document = dict(record)
    if not include_id:
        document.pop("id", None)
    return document


def record_id_of(record: RecordInput) -> Optional[str]:
    """Return the record's own id, if it carries one."""
    if isinstance(record, TestRecord):
        return record.id
    value = record.get("id")
    return str(value) if value else None


class RecordStore(ABC):
    """Abstract base class for chemical test record stores."""

    @property
    def backend_name(self) -> str:
        """Short backend name used in reports and logs."""
        class_name = self.__class__.__name__
        return class_name.replace("RecordStore", "").replace("Store", "").lower()

    @abstractmethod
    async def list_all(self) -> List[TestRecord]:
        """
        Read a full snapshot of the store.

        Raises:
            StoreReadError: If the snapshot cannot be read
        """

    @abstractmethod
    async def add(self, record: RecordInput) -> str:
        """
        Insert a record.

        Args:
            record: Record to insert

        Returns:
            The id under which the record was stored

        Raises:
            StoreWriteError: If the backend rejects the write
            ReadOnlyStoreError: If the store does not accept writes
        """

    @abstractmethod
    async def update(self, record_id: str, partial: RecordInput) -> None:
        """
        Merge fields into an existing record.

        Raises:
            RecordNotFoundError: If no record has this id
            StoreWriteError: If the backend rejects the write
        """

    @abstractmethod
    async def get(self, record_id: str) -> Optional[TestRecord]:
        """Fetch one record by id, or None if absent."""

    async def count(self) -> int:
        """Number of records in the store."""
        return len(await self.list_all())
