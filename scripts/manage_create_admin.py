"""Create the initial ADMIN user for the pool administration platform.

Run: `python scripts/manage_create_admin.py --username admin --password changeme`
"""

import argparse
from contextlib import contextmanager

from pooladmin.auth.jwt import get_password_hash
from pooladmin.config import SessionLocal
from pooladmin.main import ensure_default_roles, ensure_role_permissions
from pooladmin.models.models import Role, User


@contextmanager
def session_scope():
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def main():
    parser = argparse.ArgumentParser(description="Create the initial ADMIN user")
    parser.add_argument("--username", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--full-name", default="Main administrator")
    args = parser.parse_args()

    with session_scope() as db:
        ensure_default_roles(db)
        ensure_role_permissions(db)
        admin_role = db.query(Role).filter(Role.name == "ADMIN").one()

        username = args.username.strip().lower()
        existing_user = db.query(User).filter(User.username == username).first()
        if existing_user:
            print("User already exists with that username.")
            return

        user = User(
            username=username,
            full_name=args.full_name,
            hashed_password=get_password_hash(args.password),
            role_id=admin_role.id,
        )
        db.add(user)
        db.flush()
        print(f"Created ADMIN user with id {user.id}")


if __name__ == "__main__":
    main()
