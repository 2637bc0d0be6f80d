from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..auth.jwt import require_permission, require_roles
from ..config import settings
from ..core.version import get_version_info
from ..models.models import User
from ..schemas.schemas import DashboardSummary, StateSnapshotRead
from ..services.dashboard import dashboard_summary
from ..services.snapshot import load_state

router = APIRouter()

RESTRICTED_TABLES = {"users": "users:manage", "audit_logs": "audit:read"}


@router.get("/version")
def get_version() -> Dict[str, str]:
    return get_version_info()


@router.get("/state", response_model=StateSnapshotRead)
def get_state(
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("members:read")),
) -> StateSnapshotRead:
    snapshot = load_state(db)
    for table, permission in RESTRICTED_TABLES.items():
        if not user.has_permission(permission):
            snapshot.data.pop(table, None)
    return StateSnapshotRead.model_validate(snapshot)


@router.get("/dashboard", response_model=DashboardSummary)
def get_dashboard(
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("finance:read")),
) -> DashboardSummary:
    return DashboardSummary(**dashboard_summary(db))


@router.get("/runtime", dependencies=[Depends(require_roles("ADMIN"))])
def get_runtime_diagnostics() -> Dict[str, Any]:
    """Expose non-sensitive runtime settings for debugging."""
    return {
        "organization_name": settings.organization_name,
        "database_backend": settings.database_url.split(":", 1)[0],
        "auto_create_tables": settings.auto_create_tables,
        "pdf_output_dir": settings.pdf_output_dir,
        "assistant_configured": settings.assistant_is_configured,
        "assistant_model": settings.assistant_model,
        "log_level": settings.log_level,
    }
