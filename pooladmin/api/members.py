from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ..api.dependencies import apply_changes, get_db, get_or_404, model_snapshot
from ..auth.jwt import require_permission
from ..models.models import Member, User
from ..schemas.schemas import MemberCreate, MemberRead, MemberUpdate
from ..services.audit import audit_log
from ..services.billing import parse_join_date

router = APIRouter(prefix="/members", tags=["members"])


def _validate_member(db: Session, data: Dict[str, Any], member_id: Optional[int] = None) -> None:
    if parse_join_date(data.get("join_date")) is None:
        raise HTTPException(status_code=400, detail="join_date must use the YYYY-MM-DD format")
    if data.get("category") == "DEPENDENT":
        parent_id = data.get("parent_member_id")
        if parent_id is None:
            raise HTTPException(status_code=400, detail="Dependents must reference a principal member")
        if parent_id == member_id:
            raise HTTPException(status_code=400, detail="A member cannot be its own principal")
        parent = db.get(Member, parent_id)
        if not parent or parent.category != "PRINCIPAL":
            raise HTTPException(status_code=400, detail="parent_member_id must reference a principal member")
    else:
        data["parent_member_id"] = None


@router.get("/", response_model=List[MemberRead])
def list_members(
    status: Optional[str] = None,
    category: Optional[str] = None,
    search: Optional[str] = Query(None, max_length=100),
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("members:read")),
) -> List[Member]:
    query = db.query(Member)
    if status:
        query = query.filter(Member.status == status.upper())
    if category:
        query = query.filter(Member.category == category.upper())
    if search:
        pattern = f"%{search.lower()}%"
        query = query.filter(or_(func.lower(Member.full_name).like(pattern), func.lower(Member.email).like(pattern)))
    return query.order_by(Member.full_name.asc()).all()


@router.get("/{member_id}", response_model=MemberRead)
def get_member(
    member_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("members:read")),
) -> Member:
    return get_or_404(db, Member, member_id, "Member")


@router.get("/{member_id}/dependents", response_model=List[MemberRead])
def list_dependents(
    member_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("members:read")),
) -> List[Member]:
    member = get_or_404(db, Member, member_id, "Member")
    return sorted(member.dependents, key=lambda dependent: dependent.full_name)


@router.post("/", response_model=MemberRead, status_code=201)
def create_member(
    payload: MemberCreate,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("members:write")),
) -> Member:
    data = payload.model_dump()
    _validate_member(db, data)
    member = Member(**data)
    db.add(member)
    db.flush()
    audit_log(
        db_session=db,
        actor=actor,
        action="member.create",
        entity="Member",
        entity_id=member.id,
        details=f"Registered member {member.full_name}",
        after=model_snapshot(member),
    )
    db.refresh(member)
    return member


@router.patch("/{member_id}", response_model=MemberRead)
def update_member(
    member_id: int,
    payload: MemberUpdate,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("members:write")),
) -> Member:
    member = get_or_404(db, Member, member_id, "Member")
    before = model_snapshot(member)
    changes = payload.model_dump(exclude_unset=True)
    merged = {**before, **changes}
    _validate_member(db, merged, member_id=member.id)
    if member.category == "PRINCIPAL" and merged["category"] != "PRINCIPAL" and member.dependents:
        raise HTTPException(status_code=409, detail="Reassign this principal's dependents before changing its category")
    changes["parent_member_id"] = merged["parent_member_id"]
    apply_changes(member, changes)
    db.add(member)
    db.flush()
    audit_log(
        db_session=db,
        actor=actor,
        action="member.update",
        entity="Member",
        entity_id=member.id,
        before=before,
        after=model_snapshot(member),
    )
    db.refresh(member)
    return member


@router.delete("/{member_id}", status_code=204)
def delete_member(
    member_id: int,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("members:delete")),
) -> None:
    member = get_or_404(db, Member, member_id, "Member")
    if member.dependents:
        raise HTTPException(status_code=409, detail="Reassign or remove this principal's dependents first")
    before = model_snapshot(member)
    db.delete(member)
    db.flush()
    audit_log(
        db_session=db,
        actor=actor,
        action="member.delete",
        entity="Member",
        entity_id=member_id,
        details=f"Removed member {before['full_name']}",
        before=before,
    )
