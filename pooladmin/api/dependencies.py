from typing import Any, Dict, Type, TypeVar

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ..auth.jwt import get_db
from ..schemas.schemas import CommandResultRead
from ..services.commands import CommandResult

__all__ = ["get_db", "get_or_404", "apply_changes", "raise_for_command", "model_snapshot"]

ModelT = TypeVar("ModelT")


def get_or_404(db: Session, model: Type[ModelT], object_id: int, label: str) -> ModelT:
    obj = db.get(model, object_id)
    if not obj:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return obj


def model_snapshot(obj: Any) -> Dict[str, Any]:
    return {column.name: getattr(obj, column.name) for column in obj.__table__.columns}


def apply_changes(obj: Any, changes: Dict[str, Any]) -> None:
    for key, value in changes.items():
        setattr(obj, key, value)


def raise_for_command(result: CommandResult) -> None:
    """Turn a failed command into a 409 carrying the per-step report."""
    if result.ok:
        return
    report = CommandResultRead.model_validate(result).model_dump(mode="json")
    raise HTTPException(status_code=409, detail={"message": result.error, "command": report})
