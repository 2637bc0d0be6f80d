from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..api.dependencies import apply_changes, get_db, get_or_404, model_snapshot
from ..auth.jwt import require_permission
from ..models.models import BoardMember, User
from ..schemas.schemas import BoardMemberCreate, BoardMemberRead, BoardMemberUpdate
from ..services.audit import audit_log

router = APIRouter(prefix="/board", tags=["board"])


@router.get("/", response_model=List[BoardMemberRead])
def list_board_members(
    current_on: Optional[date] = None,
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("board:read")),
) -> List[BoardMember]:
    """List the roster, optionally only the members whose period covers ``current_on``."""
    query = db.query(BoardMember)
    if current_on:
        query = query.filter(BoardMember.period_start <= current_on, BoardMember.period_end >= current_on)
    return query.order_by(BoardMember.period_start.desc(), BoardMember.full_name.asc()).all()


@router.post("/", response_model=BoardMemberRead, status_code=201)
def create_board_member(
    payload: BoardMemberCreate,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("board:write")),
) -> BoardMember:
    member = BoardMember(**payload.model_dump())
    db.add(member)
    db.flush()
    audit_log(
        db_session=db,
        actor=actor,
        action="board.create",
        entity="BoardMember",
        entity_id=member.id,
        details=f"{member.full_name} appointed {member.role}",
        after=model_snapshot(member),
    )
    db.refresh(member)
    return member


@router.patch("/{board_member_id}", response_model=BoardMemberRead)
def update_board_member(
    board_member_id: int,
    payload: BoardMemberUpdate,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("board:write")),
) -> BoardMember:
    member = get_or_404(db, BoardMember, board_member_id, "Board member")
    before = model_snapshot(member)
    apply_changes(member, payload.model_dump(exclude_unset=True))
    if member.period_end < member.period_start:
        db.rollback()
        raise HTTPException(status_code=400, detail="period_end must be on or after period_start")
    db.add(member)
    db.flush()
    audit_log(
        db_session=db,
        actor=actor,
        action="board.update",
        entity="BoardMember",
        entity_id=member.id,
        before=before,
        after=model_snapshot(member),
    )
    db.refresh(member)
    return member


@router.delete("/{board_member_id}", status_code=204)
def delete_board_member(
    board_member_id: int,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("board:delete")),
) -> None:
    member = get_or_404(db, BoardMember, board_member_id, "Board member")
    before = model_snapshot(member)
    db.delete(member)
    db.flush()
    audit_log(
        db_session=db,
        actor=actor,
        action="board.delete",
        entity="BoardMember",
        entity_id=board_member_id,
        before=before,
    )
