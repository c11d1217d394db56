import os
from pathlib import Path
from typing import Any, Dict

import yaml

DEFAULT_CONFIG_PATH = Path("erpdash.config.yaml")
DEFAULT_SESSION_PATH = Path(".erpdash/session.yaml")
BASE_URL_ENV_VAR = "ERPDASH_API_BASE_URL"

API_DEFAULTS: Dict[str, Any] = {
    "timeout_seconds": 20,
    "user_agent": "erpdash/0.3",
    "language": "es",
    "default_api_key": None,
}
DEFAULT_ITEMS_PER_PAGE = 10


def load_config(path: Path | None = None) -> Dict[str, Any]:
    """
    Load runtime configuration from YAML file.

    Args:
        path: Optional path to the config file. Defaults to erpdash.config.yaml

    Returns:
        Dictionary with runtime configuration

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ValueError: If config structure is invalid
    """
    cfg_path = path or DEFAULT_CONFIG_PATH
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config file not found: {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as f:
        config = yaml.safe_load(f)

    # Validate structure
    if not isinstance(config, dict):
        raise ValueError("Config must be a dictionary")
    if "version" not in config:
        raise ValueError("Config must have 'version' field")

    api = config.get("api") or {}
    if not isinstance(api, dict):
        raise ValueError("Config 'api' must be a dictionary")
    if not api.get("base_url") and not os.environ.get(BASE_URL_ENV_VAR):
        raise ValueError(f"Config 'api.base_url' is required (or set {BASE_URL_ENV_VAR})")

    timeout = api.get("timeout_seconds")
    if timeout is not None and (not isinstance(timeout, (int, float)) or timeout <= 0):
        raise ValueError("Config 'api.timeout_seconds' must be a positive number")

    items_per_page = (config.get("pagination") or {}).get("items_per_page")
    if items_per_page is not None and (not isinstance(items_per_page, int) or items_per_page <= 0):
        raise ValueError("Config 'pagination.items_per_page' must be a positive integer")

    return config


def get_api_settings(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Get the ``api`` section with defaults applied.

    The ERPDASH_API_BASE_URL environment variable overrides ``api.base_url``.
    """
    settings = dict(API_DEFAULTS)
    settings.update({k: v for k, v in (config.get("api") or {}).items() if v is not None})
    env_base_url = os.environ.get(BASE_URL_ENV_VAR)
    if env_base_url:
        settings["base_url"] = env_base_url
    return settings


def get_items_per_page(config: Dict[str, Any]) -> int:
    return (config.get("pagination") or {}).get("items_per_page") or DEFAULT_ITEMS_PER_PAGE


def get_session_path(config: Dict[str, Any]) -> Path:
    path = (config.get("session") or {}).get("path")
    return Path(path) if path else DEFAULT_SESSION_PATH


def get_log_level(config: Dict[str, Any]) -> str | None:
    return (config.get("logging") or {}).get("level")
