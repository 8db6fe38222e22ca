"""
Main configuration class for spotsync.

The Config dataclass aggregates the sub-configs and handles YAML parsing.

Architecture Context
--------------------
Configuration sits at the Core layer. The Config object is created once
by the caller and passed explicitly to the store factory and the engine;
nothing reads settings from module-level state.

    spotsync.yaml
          ↓
    load_config() → Config object
          ↓
    Passed to: get_store(), MigrationOptions.from_config()

Configuration Hierarchy
-----------------------
    Config
    ├── SyncConfig         # Batching, pacing, validation gate
    └── StorageConfig
        ├── LocalStoreConfig   # Embedded dataset path
        └── RemoteStoreConfig  # Realtime database URL and token

Environment Variables
---------------------
Secrets use ${VAR_NAME} syntax in YAML:

    storage:
      remote:
        base_url: ${SPOTSYNC_REMOTE_URL:https://example.firebaseio.com}
        auth_token: ${SPOTSYNC_REMOTE_TOKEN}
"""

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

from spotsync.core.config.storage import (
    LocalStoreConfig,
    RemoteStoreConfig,
    StorageConfig,
)
from spotsync.core.config.sync import SyncConfig


@dataclass
class Config:
    """Main spotsync configuration."""

    sync: SyncConfig = field(default_factory=SyncConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)

    # Runtime paths (set after loading)
    _base_path: Path = field(default_factory=Path.cwd, repr=False)

    def __post_init__(self) -> None:
        assert isinstance(self.sync, SyncConfig), "sync must be SyncConfig"
        assert isinstance(self.storage, StorageConfig), "storage must be StorageConfig"

    @property
    def local_path(self) -> Path:
        """Get absolute path to the embedded dataset file."""
        path = Path(self.storage.local.path)
        if path.is_absolute():
            return path
        return self._base_path / path

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary (auth token excluded)."""
        result: dict[str, Any] = {}
        for key, value in asdict(self).items():
            if key.startswith("_"):
                continue
            result[key] = value
        result["storage"]["remote"].pop("auth_token", None)
        return result

    @staticmethod
    def _filter_fields(cls_type: Any, data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Filter dict to only keys that match dataclass fields, handling None."""
        if not data:
            return {}
        valid_keys = {f.name for f in fields(cls_type)}
        return {k: v for k, v in data.items() if k in valid_keys}

    @classmethod
    def from_dict(
        cls, data: Dict[str, Any], base_path: Optional[Path] = None
    ) -> "Config":
        """Create Config from dictionary."""
        from spotsync.core.config_loaders import expand_env_vars

        data = expand_env_vars(data or {})

        config = cls(
            sync=SyncConfig(**cls._filter_fields(SyncConfig, data.get("sync"))),
            storage=cls._parse_storage_config(data),
        )
        if base_path:
            config._base_path = base_path
        return config

    @classmethod
    def _parse_storage_config(cls, data: Dict[str, Any]) -> StorageConfig:
        storage_data = data.get("storage") or {}
        return StorageConfig(
            local=LocalStoreConfig(
                **cls._filter_fields(LocalStoreConfig, storage_data.get("local"))
            ),
            remote=RemoteStoreConfig(
                **cls._filter_fields(RemoteStoreConfig, storage_data.get("remote"))
            ),
        )
