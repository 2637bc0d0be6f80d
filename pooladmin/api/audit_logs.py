from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..auth.jwt import require_permission
from ..models.models import AuditLog, User
from ..schemas.schemas import AuditLogEntry, AuditLogList

router = APIRouter(prefix="/audit-logs", tags=["audit"])


@router.get("/", response_model=AuditLogList)
def list_audit_logs(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    entity: Optional[str] = None,
    action: Optional[str] = None,
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("audit:read")),
) -> AuditLogList:
    query = db.query(AuditLog)
    if entity:
        query = query.filter(AuditLog.entity == entity)
    if action:
        query = query.filter(AuditLog.action.like(f"{action}%"))
    total = query.count()
    logs = query.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc()).offset(offset).limit(limit).all()
    return AuditLogList(items=[AuditLogEntry.model_validate(entry) for entry in logs], total=total)
