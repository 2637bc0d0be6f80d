import json
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy.orm import Session

from ..models.models import AuditLog, User


def _serialize(data: Any) -> Optional[str]:
    if data is None:
        return None
    try:
        return json.dumps(data, default=str)
    except TypeError:
        return str(data)


def audit_log(
    db_session: Session,
    actor: Optional[User],
    action: str,
    entity: Optional[str] = None,
    entity_id: Optional[Any] = None,
    details: Optional[str] = None,
    before: Any = None,
    after: Any = None,
    commit: bool = True,
) -> AuditLog:
    """Record an action. Pass ``commit=False`` to keep the entry inside a larger unit of work."""
    entry = AuditLog(
        timestamp=datetime.now(timezone.utc),
        actor_user_id=actor.id if actor else None,
        actor_name=actor.full_name if actor else None,
        action=action,
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
        details=details,
        before=_serialize(before),
        after=_serialize(after),
    )
    db_session.add(entry)
    if commit:
        db_session.commit()
    else:
        db_session.flush()
    return entry
