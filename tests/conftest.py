import sys
from collections.abc import Callable, Generator
from decimal import Decimal
from pathlib import Path
from typing import Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from pooladmin.config import Base  # noqa: E402
import pooladmin.config as app_config  # noqa: E402
import pooladmin.main as app_main  # noqa: E402
from pooladmin.api.dependencies import get_db  # noqa: E402
from pooladmin.auth.jwt import get_current_user, get_password_hash  # noqa: E402
from pooladmin.core.rate_limit import limiter  # noqa: E402
# Import the full models module so every table registers with Base metadata.
from pooladmin.models import models as _all_models  # noqa: E402,F401
from pooladmin.models.models import BankAccount, Member, Role, User  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def _configure_global_test_db(tmp_path_factory):
    """Configure the app-wide SessionLocal/engine so TestClient uses a DB with all tables."""
    db_dir = tmp_path_factory.mktemp("globaldb")
    db_path = db_dir / "app.db"
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    app_config.SessionLocal = SessionLocal
    app_config.engine = engine
    app_main.SessionLocal = SessionLocal
    app_main.engine = engine
    yield
    engine.dispose()


@pytest.fixture(autouse=True)
def _pdf_output_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(app_config.settings, "pdf_output_dir", str(tmp_path / "pdfs"))


@pytest.fixture
def db_session(tmp_path) -> Generator[Session, None, None]:
    """Provide a fresh SQLite database for each test."""
    db_path = tmp_path / "test.db"
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def create_role(db_session: Session) -> Callable[[str], Role]:
    """Seed the default roles with their permissions and return the requested one."""

    def _create(name: str) -> Role:
        app_main.ensure_default_roles(db_session)
        app_main.ensure_role_permissions(db_session)
        role = db_session.query(Role).filter(Role.name == name).first()
        if role is None:
            role = Role(name=name)
            db_session.add(role)
            db_session.commit()
        return role

    return _create


@pytest.fixture
def create_user(db_session: Session, create_role: Callable[[str], Role]) -> Callable[..., User]:
    def _create(username: str = "admin", role_name: str = "ADMIN", password: str = "changeme") -> User:
        role = create_role(role_name)
        user = User(
            username=username,
            full_name=username.title(),
            hashed_password=get_password_hash(password),
            role_id=role.id,
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _create


@pytest.fixture
def create_member(db_session: Session) -> Callable[..., Member]:
    def _create(
        full_name: str = "Member",
        join_date: str = "2023-01-15",
        monthly_fee: str = "45.00",
        category: str = "INDIVIDUAL",
        status: str = "ACTIVE",
        parent_member_id: Optional[int] = None,
    ) -> Member:
        member = Member(
            full_name=full_name,
            join_date=join_date,
            monthly_fee=Decimal(monthly_fee),
            category=category,
            status=status,
            parent_member_id=parent_member_id,
        )
        db_session.add(member)
        db_session.commit()
        return member

    return _create


@pytest.fixture
def create_account(db_session: Session) -> Callable[..., BankAccount]:
    def _create(bank_name: str = "Banco General", opening_balance: str = "500.00") -> BankAccount:
        account = BankAccount(
            bank_name=bank_name,
            account_number="****-1234",
            type="CHECKING",
            opening_balance=Decimal(opening_balance),
        )
        db_session.add(account)
        db_session.commit()
        return account

    return _create


def _override_get_db(session):
    def _inner():
        try:
            yield session
        finally:
            pass

    return _inner


@pytest.fixture
def client(db_session: Session) -> Generator[Callable[[Optional[User]], TestClient], None, None]:
    """Return a factory that builds a TestClient acting as the given user."""
    app = app_main.app
    app.dependency_overrides[get_db] = _override_get_db(db_session)

    def _as(user: Optional[User] = None) -> TestClient:
        if user is None:
            app.dependency_overrides.pop(get_current_user, None)
        else:
            app.dependency_overrides[get_current_user] = lambda: user
        return TestClient(app)

    try:
        yield _as
    finally:
        app.dependency_overrides.clear()
        limiter.reset()
