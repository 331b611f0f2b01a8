"""Time helpers shared by models and services."""

from __future__ import annotations

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Return an aware UTC timestamp; all stored timestamps use UTC."""
    return datetime.now(timezone.utc)
