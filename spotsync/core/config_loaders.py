"""
Configuration Loading and Management Functions.

Handles loading, saving, caching and applying environment overrides to
spotsync configuration.
"""

import os
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Tuple

import yaml

from spotsync.core.logging import get_logger

if TYPE_CHECKING:
    from spotsync.core.config import Config

logger = get_logger(__name__)

CONFIG_FILENAMES = ("spotsync.yaml", "config.yaml")


def expand_env_vars(value: Any) -> Any:
    """Recursively expand environment variables in config values.

    Handles strings with ${VAR_NAME} or ${VAR_NAME:default} syntax, nested
    dictionaries and nested lists.

    Args:
        value: Configuration value (string, dict, list, or primitive)

    Returns:
        Value with all environment variables expanded
    """
    if isinstance(value, str):
        pattern = r"\$\{([^}:]+)(?::([^}]*))?\}"

        def replace_env_var(match: re.Match) -> str:
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) is not None else ""
            return os.environ.get(var_name, default_value)

        return re.sub(pattern, replace_env_var, value)
    elif isinstance(value, dict):
        return {k: expand_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [expand_env_vars(item) for item in value]
    return value


def _env_int(name: str, min_value: int, max_value: int) -> Optional[int]:
    """Read an integer env var, clamped to bounds; invalid values are ignored."""
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return None
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Invalid integer value for {name}={raw}: ignoring")
        return None
    return max(min_value, min(max_value, value))


def _env_float(name: str, min_value: float, max_value: float) -> Optional[float]:
    """Read a float env var, clamped to bounds; invalid values are ignored."""
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return None
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Invalid float value for {name}={raw}: ignoring")
        return None
    if value != value:  # NaN
        return None
    return max(min_value, min(max_value, value))


def _apply_env_overrides(config: "Config") -> "Config":
    """
    Apply environment variable overrides to configuration.

    Environment variables take precedence over config file values.
    """
    _apply_storage_overrides(config)
    _apply_sync_overrides(config)
    return config


def _apply_storage_overrides(config: "Config") -> None:
    """Apply store location and credential overrides."""
    remote_url = os.environ.get("SPOTSYNC_REMOTE_URL")
    if remote_url:
        config.storage.remote.base_url = remote_url

    remote_token = os.environ.get("SPOTSYNC_REMOTE_TOKEN")
    if remote_token:
        config.storage.remote.auth_token = remote_token

    local_path = os.environ.get("SPOTSYNC_LOCAL_PATH")
    if local_path:
        config.storage.local.path = local_path


def _apply_sync_overrides(config: "Config") -> None:
    """Apply batching overrides, clamped to sane bounds."""
    batch_size = _env_int("SPOTSYNC_BATCH_SIZE", min_value=1, max_value=1000)
    if batch_size is not None:
        config.sync.batch_size = batch_size

    batch_delay = _env_float("SPOTSYNC_BATCH_DELAY", min_value=0.0, max_value=60.0)
    if batch_delay is not None:
        config.sync.batch_delay_sec = batch_delay


def _find_config_file(base_path: Path) -> Optional[Path]:
    for filename in CONFIG_FILENAMES:
        candidate = base_path / filename
        if candidate.exists():
            return candidate
    return None


def load_config(
    config_path: Optional[Path] = None, base_path: Optional[Path] = None
) -> "Config":
    """
    Load configuration from YAML file with environment variable overrides.

    Configuration precedence: 1. Env vars, 2. YAML file, 3. Defaults

    Args:
        config_path: Path to config file. Defaults to spotsync.yaml or
            config.yaml in base_path.
        base_path: Base path for the project. Defaults to current directory.

    Returns:
        Config object with all settings.

    Raises:
        ConfigurationError: If a config value fails validation.
    """
    from spotsync.core.config import Config

    base_path = base_path or Path.cwd()

    if config_path is None:
        config_path = _find_config_file(base_path)
    if config_path is None or not config_path.exists():
        return _create_default_config(base_path)

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(
            f"Could not load config from {config_path}: {e}. "
            "Using default configuration."
        )
        return _create_default_config(base_path)

    if not isinstance(data, dict):
        logger.warning(f"Config file {config_path} is not a mapping; using defaults")
        return _create_default_config(base_path)

    config = Config.from_dict(data, base_path)
    return _apply_env_overrides(config)


def _create_default_config(base_path: Path) -> "Config":
    """Create default configuration with environment overrides."""
    from spotsync.core.config import Config

    config = Config()
    config._base_path = base_path
    return _apply_env_overrides(config)


def save_config(config: "Config", config_path: Optional[Path] = None) -> None:
    """Save configuration to YAML file (the auth token is never written)."""
    if config_path is None:
        config_path = config._base_path / CONFIG_FILENAMES[0]

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)


class ConfigCache:
    """
    Explicit cache around a configuration loader.

    The cache is an object owned by the caller, never module state. A
    loader is injected so tests and embedders can supply their own.

    Example
    -------
        cache = ConfigCache()
        config = cache.get(base_path=Path("."))
        cache.invalidate()
    """

    def __init__(
        self,
        loader: Callable[[Optional[Path], Optional[Path]], "Config"] = load_config,
    ) -> None:
        self._loader = loader
        self._entries: Dict[Tuple[Optional[Path], Optional[Path]], "Config"] = {}

    def get(
        self,
        config_path: Optional[Path] = None,
        base_path: Optional[Path] = None,
    ) -> "Config":
        """Return the cached config for these paths, loading on first use."""
        key = (config_path, base_path)
        if key not in self._entries:
            self._entries[key] = self._loader(config_path, base_path)
        return self._entries[key]

    def invalidate(self) -> None:
        """Drop every cached entry."""
        self._entries.clear()
