"""Record stores: the collaborators the synchronization engine reads and writes."""

from spotsync.storage.base import RecordInput, RecordStore
from spotsync.storage.factory import get_store, list_backends
from spotsync.storage.local import LocalDatasetStore, parse_dataset
from spotsync.storage.memory import InMemoryRecordStore
from spotsync.storage.remote import RemoteRecordStore
from spotsync.storage.rows import add_result, delete_result, update_result

__all__ = [
    "InMemoryRecordStore",
    "LocalDatasetStore",
    "RecordInput",
    "RecordStore",
    "RemoteRecordStore",
    "add_result",
    "delete_result",
    "get_store",
    "list_backends",
    "parse_dataset",
    "update_result",
]
