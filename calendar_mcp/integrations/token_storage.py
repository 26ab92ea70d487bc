"""
Token storage for OAuth credentials.

Tokens live in a single JSON file (settings.credentials_path), one entry
per service name.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from ..config import settings

logger = logging.getLogger(__name__)


# --------------------------------------------------------------------------- #
# File Helpers
# --------------------------------------------------------------------------- #

def _path() -> Path:
    return settings.credentials_path


def _read_all() -> Dict[str, Any]:
    path = _path()
    if not path.exists():
        return {}
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        logger.error(f"Ignoring unreadable token file {path}: {e}")
        return {}


def _write_all(data: Dict[str, Any]) -> None:
    path = _path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    path.chmod(0o600)


# --------------------------------------------------------------------------- #
# Token Storage Functions
# --------------------------------------------------------------------------- #

def save_token(service: str, token_data: Dict[str, Any]) -> None:
    """
    Save OAuth token data for a service.

    Args:
        service: The service name (e.g., "google_calendar")
        token_data: Token data including token, refresh_token, expiry, etc.
    """
    data = _read_all()
    data[service] = {
        **token_data,
        "updated_at": datetime.now(timezone.utc).isoformat(),
    }
    _write_all(data)


def get_token(service: str) -> Optional[Dict[str, Any]]:
    """Get OAuth token data for a service, or None if not stored."""
    return _read_all().get(service)


def delete_token(service: str) -> bool:
    """
    Delete OAuth token for a service.

    Returns:
        True if token was deleted, False if it didn't exist
    """
    data = _read_all()
    if service not in data:
        return False
    del data[service]
    _write_all(data)
    return True


def has_token(service: str) -> bool:
    """Check if a service has stored credentials."""
    return get_token(service) is not None
