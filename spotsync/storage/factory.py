"""
Store Factory.

Centralizes backend selection and instantiation for the CLI and any
embedder holding a Config.

    get_store(config, "local")
        ├── "memory" → InMemoryRecordStore
        ├── "local"  → LocalDatasetStore  (embedded JSON dataset)
        └── "remote" → RemoteRecordStore  (realtime database REST)
"""

from typing import Callable, Dict

from spotsync.core.config import Config
from spotsync.core.exceptions import ConfigurationError
from spotsync.core.logging import get_logger
from spotsync.storage.base import RecordStore
from spotsync.storage.local import LocalDatasetStore
from spotsync.storage.memory import InMemoryRecordStore
from spotsync.storage.remote import RemoteRecordStore

logger = get_logger(__name__)


def _create_memory(config: Config) -> RecordStore:
    return InMemoryRecordStore()


def _create_local(config: Config) -> RecordStore:
    return LocalDatasetStore(
        config.local_path, read_only=config.storage.local.read_only
    )


def _create_remote(config: Config) -> RecordStore:
    remote = config.storage.remote
    if not remote.base_url:
        raise ConfigurationError(
            "Remote store needs storage.remote.base_url "
            "(or SPOTSYNC_REMOTE_URL)",
            field_name="base_url",
        )
    return RemoteRecordStore(
        remote.base_url,
        collection=remote.collection,
        auth_token=remote.auth_token,
        timeout_sec=remote.timeout_sec,
    )


BACKENDS: Dict[str, Callable[[Config], RecordStore]] = {
    "memory": _create_memory,
    "local": _create_local,
    "remote": _create_remote,
}


def list_backends() -> list[str]:
    """Names accepted by get_store()."""
    return list(BACKENDS)


def get_store(config: Config, backend: str) -> RecordStore:
    """
    Create a record store from configuration.

    Args:
        config: spotsync configuration
        backend: Backend name (memory, local, remote)

    Returns:
        RecordStore instance

    Raises:
        ConfigurationError: If the backend is unknown or misconfigured
    """
    backend_type = backend.lower()
    creator = BACKENDS.get(backend_type)
    if creator is None:
        raise ConfigurationError(
            f"Unknown store backend: {backend}. "
            f"Available backends: {', '.join(list_backends())}",
            field_name="backend",
            value=backend,
        )
    logger.debug(f"Using {backend_type} store backend")
    return creator(config)
