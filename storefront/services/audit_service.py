"""Audit log helpers.

Records are added to the caller's session and never committed here: the audit
row and the business mutation commit or roll back together.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.core.config import settings
from storefront.models import AUDIT_ACTIONS, AuditRecord


def _jsonable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(key): _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value


def snapshot(instance: Any, fields: tuple[str, ...]) -> dict[str, Any]:
    """Capture selected attributes of an ORM row as JSON-safe values."""
    return {name: _jsonable(getattr(instance, name)) for name in fields}


def record_audit(
    db: Session,
    *,
    table_name: str,
    action: str,
    record_id: int | None = None,
    actor: str | None = None,
    old_values: dict[str, Any] | None = None,
    new_values: dict[str, Any] | None = None,
) -> AuditRecord:
    if action not in AUDIT_ACTIONS:
        raise ValueError(f"Unsupported audit action '{action}'")

    record = AuditRecord(
        table_name=table_name,
        action=action,
        record_id=record_id,
        user_id=actor or settings.default_actor,
        old_values=_jsonable(old_values) if old_values is not None else None,
        new_values=_jsonable(new_values) if new_values is not None else None,
    )
    db.add(record)
    return record


def list_audit_records(
    db: Session,
    *,
    table_name: str | None = None,
    record_id: int | None = None,
    limit: int = 100,
) -> list[AuditRecord]:
    """Return audit records newest first, optionally scoped to one row."""
    stmt = select(AuditRecord)
    if table_name is not None:
        stmt = stmt.where(AuditRecord.table_name == table_name)
    if record_id is not None:
        stmt = stmt.where(AuditRecord.record_id == record_id)
    stmt = stmt.order_by(AuditRecord.id.desc()).limit(limit)
    return list(db.scalars(stmt).all())
