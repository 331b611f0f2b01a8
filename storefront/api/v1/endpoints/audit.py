"""Read-only audit trail endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.db.session import get_db
from storefront.schemas.audit import AuditRecordResponse
from storefront.services.audit_service import list_audit_records

router: APIRouter = APIRouter()


@router.get("", response_model=list[AuditRecordResponse])
def get_audit_records(
    table_name: str | None = Query(default=None),
    record_id: int | None = Query(default=None),
    limit: int = Query(default=100, ge=1, le=1000),
    db: Session = Depends(get_db),
) -> list[AuditRecordResponse]:
    records = list_audit_records(db, table_name=table_name, record_id=record_id, limit=limit)
    return [AuditRecordResponse.model_validate(record) for record in records]
