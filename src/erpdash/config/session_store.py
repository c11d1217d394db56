"""Persist session credentials between CLI runs."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from erpdash.transport.session import ApiSession
from erpdash.utils.logging import get_logger

logger = get_logger(__name__)

SESSION_FIELDS = (
    "access_token",
    "api_key",
    "api_key_expiration",
    "company_id",
    "language",
    "user",
)


def load_session(path: Path) -> Dict[str, Any]:
    """
    Load stored credentials.

    Returns:
        Stored fields, or an empty dict when no session file exists

    Raises:
        ValueError: If the session file is not a mapping
    """
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Session file {path} must contain a mapping")
    return {k: v for k, v in data.items() if k in SESSION_FIELDS and v is not None}


def save_session(path: Path, session: ApiSession) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    data = {k: v for k, v in session.credentials().items() if v is not None}
    with path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, sort_keys=True, allow_unicode=True)
    logger.debug(f"Session saved to {path}")


def clear_session(path: Path) -> bool:
    """Remove the session file. Returns True when a file was removed."""
    if not path.exists():
        return False
    path.unlink()
    logger.debug(f"Session file {path} removed")
    return True


def build_session(base_url: str, path: Path, language: Optional[str] = None) -> ApiSession:
    """ApiSession for ``base_url`` with stored credentials applied."""
    stored = load_session(path)
    if language and "language" not in stored:
        stored["language"] = language
    return ApiSession(base_url=base_url, **stored)
