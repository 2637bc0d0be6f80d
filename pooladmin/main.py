import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session

from .api import (
    assistant,
    audit_logs,
    auth,
    bank_accounts,
    board,
    inventory,
    members,
    payables,
    payroll,
    projects,
    receivables,
    reports,
    service_orders,
    suppliers,
    system,
    transactions,
)
from .config import Base, SessionLocal, engine, settings
from .constants import DEFAULT_ROLES, ROLE_PERMISSIONS
from .core.errors import register_exception_handlers
from .core.logging import configure_logging
from .core.request_context import RequestIDMiddleware
from .core.security import SecurityHeadersMiddleware, log_security_warnings
from .models.models import Permission, Role

logger = logging.getLogger(__name__)

configure_logging(settings.log_level, json_output=settings.log_json)

app = FastAPI(title=f"{settings.organization_name} - Administration API")

app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)
register_exception_handlers(app)


def ensure_default_roles(session: Session) -> None:
    for name, description in DEFAULT_ROLES:
        role = session.query(Role).filter(Role.name == name).first()
        if not role:
            session.add(Role(name=name, description=description))
    session.commit()


def ensure_role_permissions(session: Session) -> None:
    """Create every known permission and grant each role exactly its capability set."""
    known = {permission.name: permission for permission in session.query(Permission).all()}
    for names in ROLE_PERMISSIONS.values():
        for name in names:
            if name not in known:
                known[name] = Permission(name=name)
                session.add(known[name])
    session.flush()

    for role in session.query(Role).all():
        granted = ROLE_PERMISSIONS.get(role.name)
        if granted is None:
            continue
        role.permissions = [known[name] for name in granted]
    session.commit()


@app.on_event("startup")
def startup() -> None:
    log_security_warnings(settings)
    if settings.auto_create_tables:
        # Dev convenience; a missing schema otherwise shows up as the fallback state snapshot.
        Base.metadata.create_all(bind=engine)
    with SessionLocal() as session:
        ensure_default_roles(session)
        ensure_role_permissions(session)
    logger.info("%s API started", settings.organization_name)


app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(members.router)
app.include_router(transactions.router)
app.include_router(bank_accounts.router)
app.include_router(receivables.router)
app.include_router(payables.router)
app.include_router(inventory.router)
app.include_router(service_orders.router)
app.include_router(projects.router)
app.include_router(suppliers.router)
app.include_router(board.router)
app.include_router(payroll.router)
app.include_router(reports.router)
app.include_router(assistant.router)
app.include_router(audit_logs.router)
app.include_router(system.router, prefix="/system", tags=["system"])
