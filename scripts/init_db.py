#!/usr/bin/env python
"""
Create every table and the default roles/permissions.

Usage:
    python scripts/init_db.py
"""

from pooladmin.config import Base, SessionLocal, engine, settings
from pooladmin.main import ensure_default_roles, ensure_role_permissions
from pooladmin.models import models as _all_models  # noqa: F401


def main():
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as session:
        ensure_default_roles(session)
        ensure_role_permissions(session)
    print(f"Schema ready on {settings.database_url}")


if __name__ == "__main__":
    main()
