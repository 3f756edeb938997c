"""Guest management tokens."""
from __future__ import annotations

import datetime as dt
import secrets
from typing import Optional

from tablebook.config import Settings, get_settings


def new_management_token(settings: Optional[Settings] = None) -> str:
    """Opaque, cryptographically random token with a namespacing prefix."""
    settings = settings or get_settings()
    return f"{settings.management_token_prefix}{secrets.token_urlsafe(32)}"


def token_expiry(now: dt.datetime, settings: Optional[Settings] = None) -> dt.datetime:
    settings = settings or get_settings()
    return now + dt.timedelta(days=settings.management_token_ttl_days)


def is_token_expired(expires_at: Optional[dt.datetime], now: dt.datetime) -> bool:
    """Tokens stay valid up to and including their expiry instant."""
    return expires_at is not None and expires_at < now
