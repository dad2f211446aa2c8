import os
import re
from pathlib import Path
from typing import Optional, Any

import yaml
from dotenv import find_dotenv, load_dotenv

from driverwrap.domain.config import Config, DriverConfig, SyncConfig

CONFIG_FILENAME = "config.yaml"

TRUE_VALUES = {"1", "true", "yes", "on"}


def find_config_path() -> Path:
    """Return $CONFIG_PATH, or the nearest config.yaml from the working directory upward."""
    env_config_path = os.getenv("CONFIG_PATH")
    if env_config_path:
        return _existing(env_config_path, "CONFIG_PATH")

    cwd = Path.cwd()
    for directory in (cwd, *cwd.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate

    raise FileNotFoundError(f"No {CONFIG_FILENAME} in {cwd} or its parents, and CONFIG_PATH is not set")


def _existing(config_path: str, origin: str) -> Path:
    path = Path(config_path)
    if not path.is_file():
        raise FileNotFoundError(f"{origin} points to a missing file: {config_path}")
    return path


def load(config_path: Optional[str] = None) -> Config:
    file = _find_config(config_path)
    data = _read_config(file)

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"Parsed config file {file} does not contain a mapping")

    return _map_to_domain(data)


def _read_config(file: Path) -> Any:
    content = file.read_text()

    def replace_env_var(match: re.Match) -> str:
        var_name = match.group(1)
        return os.getenv(var_name, match.group(0))

    content = re.sub(r'\$\{(\w+)}', replace_env_var, content)

    return yaml.safe_load(content)


def _find_config(config_path: str | None) -> Path:
    # .env is looked up from the working directory, like config.yaml
    load_dotenv(find_dotenv(usecwd=True))

    if config_path:
        return _existing(config_path, "config_path")
    return find_config_path()


def _as_bool(value: Any) -> bool:
    # ${VAR} substitution leaves strings such as "false" behind
    if isinstance(value, str):
        return value.strip().lower() in TRUE_VALUES
    return bool(value)


def _map_to_domain(data: dict) -> Config:
    driver_data = data.get('driver', {}) or {}
    driver_config = DriverConfig(
        browser=str(driver_data.get('browser', 'chromium')),
        headless=_as_bool(driver_data.get('headless', True)),
        base_url=str(driver_data.get('base-url', '') or ''),
        user_agent=driver_data.get('user-agent') or None,
    )

    sync_data = data.get('synchronization', {}) or {}
    sync_config = SyncConfig(
        default_timeout=float(sync_data.get('default-timeout', 10)),
        poll_interval_ms=int(sync_data.get('poll-interval-ms', 100)),
        ignore_synchronization=_as_bool(sync_data.get('ignore', False)),
    )

    return Config(
        log_level=data.get('log_level', 'INFO'),
        driver_config=driver_config,
        sync_config=sync_config,
    )
