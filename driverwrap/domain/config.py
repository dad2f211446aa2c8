from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class DriverConfig:
    """Configuration for the browser session."""
    browser: str = "chromium"
    headless: bool = True
    base_url: str = ""  # empty: destinations are used as given
    user_agent: Optional[str] = None  # None: the browser default


@dataclass(frozen=True)
class SyncConfig:
    """Configuration for implicit waiting."""
    default_timeout: float = 10  # seconds, 0 disables implicit waiting
    poll_interval_ms: int = 100
    ignore_synchronization: bool = False

    def __post_init__(self):
        if self.default_timeout < 0:
            raise ValueError(f"default_timeout must not be negative, got: {self.default_timeout}")
        if self.poll_interval_ms <= 0:
            raise ValueError(f"poll_interval_ms must be positive, got: {self.poll_interval_ms}")


@dataclass(frozen=True)
class Config:
    """Main configuration containing log level and nested config objects."""
    log_level: str = "INFO"
    driver_config: DriverConfig = field(default_factory=DriverConfig)
    sync_config: SyncConfig = field(default_factory=SyncConfig)
