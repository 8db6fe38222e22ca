"""
Configuration Management for spotsync.

A hierarchy of dataclasses mapped to a YAML file, with environment
variable expansion for secrets.

    from spotsync.core.config import Config, load_config

    config = load_config()
    batch_size = config.sync.batch_size
"""

from spotsync.core.config.config import Config
from spotsync.core.config.storage import (
    LocalStoreConfig,
    RemoteStoreConfig,
    StorageConfig,
)
from spotsync.core.config.sync import SyncConfig
from spotsync.core.config_loaders import ConfigCache, expand_env_vars, load_config

__all__ = [
    "Config",
    "ConfigCache",
    "LocalStoreConfig",
    "RemoteStoreConfig",
    "StorageConfig",
    "SyncConfig",
    "expand_env_vars",
    "load_config",
]
