from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..auth.jwt import require_permission
from ..models.models import User
from ..schemas.schemas import AssistantRequest, AssistantResponse
from ..services.assistant import generate_pool_report
from ..services.audit import audit_log
from ..services.snapshot import load_state

router = APIRouter(prefix="/assistant", tags=["assistant"])

# The assistant sees operational data only.
ASSISTANT_TABLES = ("members", "transactions", "inventory_items", "maintenance_logs", "bank_accounts", "projects")


@router.post("/ask", response_model=AssistantResponse)
def ask_assistant(
    payload: AssistantRequest,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("assistant:use")),
) -> AssistantResponse:
    snapshot = load_state(db)
    state = {name: snapshot.data.get(name, []) for name in ASSISTANT_TABLES}
    text = generate_pool_report(state, payload.prompt)
    audit_log(
        db_session=db,
        actor=actor,
        action="assistant.ask",
        entity="Assistant",
        details=payload.prompt[:200],
    )
    return AssistantResponse(text=text)
