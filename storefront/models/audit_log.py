"""Append-only audit trail for catalog and order mutations."""

from datetime import datetime
from typing import Any

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, JSON, String, event
from sqlalchemy.orm import Mapped, mapped_column

from storefront.db.base import Base
from storefront.utils.time import utcnow

AUDIT_ACTIONS = ("INSERT", "UPDATE", "DELETE", "STATUS_CHANGE", "CANCELLED")


class AuditRecord(Base):
    """Stores an immutable trail of catalog and order actions."""

    __tablename__ = "audit_log"
    __table_args__ = (
        CheckConstraint(
            "action IN ('INSERT', 'UPDATE', 'DELETE', 'STATUS_CHANGE', 'CANCELLED')",
            name="ck_audit_log_action_valid",
        ),
        CheckConstraint("length(trim(table_name)) > 0", name="ck_audit_log_table_name_not_empty"),
        Index("ix_audit_log_table_record", "table_name", "record_id"),
        Index("ix_audit_log_user_timestamp", "user_id", "timestamp"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    table_name: Mapped[str] = mapped_column(String(50), nullable=False)
    action: Mapped[str] = mapped_column(String(16), nullable=False)
    record_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    old_values: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    new_values: Mapped[dict | None] = mapped_column(JSON, nullable=True)


@event.listens_for(AuditRecord, "before_update")
def _reject_update(_mapper: Any, _connection: Any, target: AuditRecord) -> None:
    raise ValueError(f"Audit record {target.id} is append-only; updates are not allowed.")


@event.listens_for(AuditRecord, "before_delete")
def _reject_delete(_mapper: Any, _connection: Any, target: AuditRecord) -> None:
    raise ValueError(f"Audit record {target.id} is append-only; deletions are not allowed.")
