"""
Storage configuration.

Provides configuration for the record stores: the embedded local
dataset and the hosted realtime document database.
"""

from dataclasses import dataclass, field
from typing import Optional

from spotsync.core.exceptions import ConfigurationError


@dataclass
class LocalStoreConfig:
    """Embedded dataset (JSON file) configuration."""

    path: str = "data/Db.json"
    read_only: bool = True


@dataclass
class RemoteStoreConfig:
    """Hosted realtime database configuration."""

    base_url: str = ""
    collection: str = "chemical_tests"
    auth_token: Optional[str] = None
    timeout_sec: float = 30.0

    def __post_init__(self) -> None:
        if not self.collection or "/" in self.collection.strip("/"):
            raise ConfigurationError(
                f"storage.remote.collection must be a single path segment, "
                f"got {self.collection!r}",
                field_name="collection",
                value=self.collection,
            )
        if self.timeout_sec <= 0:
            raise ConfigurationError(
                f"storage.remote.timeout_sec must be > 0, got {self.timeout_sec}",
                field_name="timeout_sec",
                value=self.timeout_sec,
            )


@dataclass
class StorageConfig:
    """Store backend configuration."""

    local: LocalStoreConfig = field(default_factory=LocalStoreConfig)
    remote: RemoteStoreConfig = field(default_factory=RemoteStoreConfig)
