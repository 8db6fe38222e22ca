"""
Synchronization configuration.

Defaults mirror MigrationOptions so a zero-config run behaves like a
direct call to the transfer engine.
"""

from dataclasses import dataclass
from typing import Optional

from spotsync.core.exceptions import ConfigurationError


@dataclass
class SyncConfig:
    """Transfer engine and synchronizer settings."""

    overwrite: bool = False
    validate_data: bool = True
    batch_size: int = 10
    skip_existing: bool = True
    batch_delay_sec: float = 1.0  # pause between batches, not after the last
    call_timeout_sec: Optional[float] = 30.0  # per store call; None disables
    concurrent: bool = False
    created_by: str = "migration_service"

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ConfigurationError(
                f"sync.batch_size must be >= 1, got {self.batch_size}",
                field_name="batch_size",
                value=self.batch_size,
            )
        if self.batch_delay_sec < 0:
            raise ConfigurationError(
                f"sync.batch_delay_sec must be >= 0, got {self.batch_delay_sec}",
                field_name="batch_delay_sec",
                value=self.batch_delay_sec,
            )
        if self.call_timeout_sec is not None and self.call_timeout_sec <= 0:
            raise ConfigurationError(
                f"sync.call_timeout_sec must be > 0, got {self.call_timeout_sec}",
                field_name="call_timeout_sec",
                value=self.call_timeout_sec,
            )
