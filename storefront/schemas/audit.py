"""Audit record API schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class AuditRecordResponse(BaseModel):
    """Serialized audit record."""

    id: int
    table_name: str
    action: str
    record_id: int | None
    user_id: str
    timestamp: datetime
    old_values: dict[str, Any] | None
    new_values: dict[str, Any] | None

    model_config = ConfigDict(from_attributes=True)
