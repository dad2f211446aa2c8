import os
from typing import Optional

from driverwrap.config.logging_config import configure_logging
from driverwrap.core.browser import Browser
from driverwrap.domain.config import Config
from driverwrap.infrastructure.config_loader import load


def setup_env(config_path: Optional[str] = None) -> Config:
    """Load configuration and configure logging.

    LOG_LEVEL in the environment wins over the configured level.
    """
    config = load(config_path)
    configure_logging(os.getenv("LOG_LEVEL", config.log_level))
    return config


async def open_browser(config: Config) -> Browser:
    """Launch the configured browser and wrap it for lazy, synchronized access."""
    # Playwright is only needed once a real browser is started
    from driverwrap.driver_adapter.driver import PlaywrightSession

    session = await PlaywrightSession.launch(config.driver_config)
    return Browser.from_config(session, config.driver_config, config.sync_config)
