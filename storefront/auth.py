"""Resolve the acting user recorded in audit records."""

from __future__ import annotations

from fastapi import Header

from storefront.core.config import settings

ACTOR_HEADER: str = "X-User-Id"


def get_actor(x_user_id: str | None = Header(default=None, alias=ACTOR_HEADER)) -> str:
    """Return the caller identity from the request header or the configured default."""
    if x_user_id is None or not x_user_id.strip():
        return settings.default_actor
    return x_user_id.strip()[:128]
