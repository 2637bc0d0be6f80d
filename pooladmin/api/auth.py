from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import OAuth2PasswordRequestForm
from jose import JWTError
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ..api.dependencies import get_db, get_or_404
from ..auth.jwt import (
    create_access_token,
    create_refresh_token,
    decode_token,
    get_current_user,
    get_password_hash,
    load_user,
    require_permission,
    verify_password,
)
from ..config import settings
from ..core.rate_limit import rate_limit_dependency
from ..models.models import Role, User
from ..schemas.schemas import RoleRead, Token, TokenRefreshRequest, UserCreate, UserRead, UserUpdate
from ..services.audit import audit_log

router = APIRouter()

login_rate_limit = rate_limit_dependency("auth:login", settings.login_rate_limit, settings.login_rate_window_seconds)


def _find_by_username(db: Session, username: str) -> User | None:
    return (
        db.query(User)
        .options(joinedload(User.role).joinedload(Role.permissions))
        .filter(func.lower(User.username) == username.strip().lower())
        .first()
    )


def _get_role(db: Session, name: str) -> Role:
    role = db.query(Role).filter(Role.name == name).first()
    if not role:
        raise HTTPException(status_code=400, detail=f"Role {name} is not configured")
    return role


def _build_token_response(user: User) -> Token:
    access_payload = {
        "sub": str(user.id),
        "role": user.role_name,
        "type": "access",
    }
    return Token(
        access_token=create_access_token(access_payload),
        refresh_token=create_refresh_token(str(user.id)),
        token_type="bearer",
        role=user.role_name,
        permissions=sorted(user.permission_names),
        expires_in=settings.access_token_expire_minutes * 60,
        refresh_expires_in=settings.refresh_token_expire_minutes * 60,
    )


@router.post("/login", response_model=Token, dependencies=[Depends(login_rate_limit)])
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    user = _find_by_username(db, form_data.username)
    if not user or not verify_password(form_data.password, user.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    user.last_login = datetime.now(timezone.utc)
    db.add(user)
    audit_log(db_session=db, actor=user, action="auth.login", entity="User", entity_id=user.id)
    return _build_token_response(user)


@router.post("/refresh", response_model=Token)
def refresh_token(
    payload: TokenRefreshRequest,
    db: Session = Depends(get_db),
):
    credentials_exception = HTTPException(status_code=401, detail="Invalid refresh token")
    try:
        decoded = decode_token(payload.refresh_token)
    except JWTError as exc:
        raise credentials_exception from exc

    if decoded.get("type") != "refresh":
        raise credentials_exception

    user_id = decoded.get("sub")
    if not user_id:
        raise credentials_exception

    user = load_user(db, int(user_id))
    if not user:
        raise credentials_exception

    return _build_token_response(user)


@router.get("/me", response_model=UserRead)
def read_current_user(current_user: User = Depends(get_current_user)) -> User:
    return current_user


@router.get("/roles", response_model=List[RoleRead])
def list_roles(
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("users:manage")),
) -> List[Role]:
    return db.query(Role).options(joinedload(Role.permissions)).order_by(Role.id).all()


@router.get("/users", response_model=List[UserRead])
def list_users(
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("users:manage")),
) -> List[User]:
    return db.query(User).options(joinedload(User.role)).order_by(User.username.asc()).all()


@router.post("/users", response_model=UserRead, status_code=201)
def create_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("users:manage")),
) -> User:
    if _find_by_username(db, payload.username):
        raise HTTPException(status_code=400, detail="Username already exists")
    role = _get_role(db, payload.role)
    user = User(
        username=payload.username.strip(),
        full_name=payload.full_name,
        hashed_password=get_password_hash(payload.password),
        role_id=role.id,
    )
    db.add(user)
    db.flush()
    audit_log(
        db_session=db,
        actor=actor,
        action="user.create",
        entity="User",
        entity_id=user.id,
        details=f"Created system user {user.username} ({role.name})",
        after={"username": user.username, "role": role.name},
    )
    db.refresh(user)
    return user


@router.patch("/users/{user_id}", response_model=UserRead)
def update_user(
    user_id: int,
    payload: UserUpdate,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("users:manage")),
) -> User:
    user = get_or_404(db, User, user_id, "User")
    updates = payload.model_dump(exclude_unset=True)
    before = {"full_name": user.full_name, "role": user.role_name}

    if updates.get("full_name"):
        user.full_name = updates["full_name"]
    if updates.get("role"):
        if user.id == actor.id and updates["role"] != "ADMIN":
            raise HTTPException(status_code=400, detail="You cannot remove your own administrator role")
        user.role_id = _get_role(db, updates["role"]).id
    if updates.get("password"):
        user.hashed_password = get_password_hash(updates["password"])
    db.add(user)
    db.flush()
    db.refresh(user)

    audit_log(
        db_session=db,
        actor=actor,
        action="user.update",
        entity="User",
        entity_id=user.id,
        before=before,
        after={"full_name": user.full_name, "role": user.role_name, "password_changed": bool(updates.get("password"))},
    )
    db.refresh(user)
    return user


@router.delete("/users/{user_id}", status_code=204)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("users:manage")),
) -> None:
    user = get_or_404(db, User, user_id, "User")
    if user.id == actor.id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")
    username = user.username
    db.delete(user)
    db.flush()
    audit_log(
        db_session=db,
        actor=actor,
        action="user.delete",
        entity="User",
        entity_id=user_id,
        before={"username": username},
    )
