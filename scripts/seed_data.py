#!/usr/bin/env python
"""
Seed script to populate the database with the built-in sample dataset for local development.

Usage:
    python scripts/seed_data.py --password changeme
"""

import argparse
from datetime import date
from decimal import Decimal

from sqlalchemy import Date, Numeric

from pooladmin.auth.jwt import get_password_hash
from pooladmin.config import Base, SessionLocal, engine
from pooladmin.main import ensure_default_roles, ensure_role_permissions
from pooladmin.models.models import (
    BankAccount,
    InventoryItem,
    Member,
    Role,
    Transaction,
    User,
)
from pooladmin.seeds.fallback_state import FALLBACK_STATE

# Parents before children so foreign keys resolve.
SEED_TABLES = [
    ("members", Member),
    ("bank_accounts", BankAccount),
    ("transactions", Transaction),
    ("inventory_items", InventoryItem),
]


def coerce_row(model, row: dict) -> dict:
    """Keep only real columns and convert ISO dates and money strings to column types."""
    values = {}
    for column in model.__table__.columns:
        if column.name not in row:
            continue
        value = row[column.name]
        if isinstance(value, str) and isinstance(column.type, Date):
            value = date.fromisoformat(value)
        elif isinstance(value, str) and isinstance(column.type, Numeric):
            value = Decimal(value)
        values[column.name] = value
    return values


def seed_users(session, password: str) -> int:
    created = 0
    for row in FALLBACK_STATE["users"]:
        if session.query(User).filter(User.username == row["username"]).first():
            continue
        role = session.query(Role).filter(Role.name == row["role"]).first()
        if not role:
            raise RuntimeError(f"Role '{row['role']}' is not defined. Run ensure_default_roles first.")
        session.add(
            User(
                username=row["username"],
                full_name=row["full_name"],
                hashed_password=get_password_hash(password),
                role_id=role.id,
            )
        )
        created += 1
    return created


def seed_database(password: str) -> None:
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as session:
        ensure_default_roles(session)
        ensure_role_permissions(session)

        if session.query(Member).count():
            print("Database already holds members; skipping sample data.")
        else:
            for table, model in SEED_TABLES:
                for row in FALLBACK_STATE[table]:
                    session.add(model(**coerce_row(model, row)))
                session.flush()

        users = seed_users(session, password)
        session.commit()
        print(f"Seed complete. Created {users} user accounts (password: '{password}').")


def main():
    parser = argparse.ArgumentParser(description="Seed the pool database with sample data.")
    parser.add_argument("--password", default="changeme", help="Password for the sample user accounts")
    args = parser.parse_args()
    seed_database(args.password)


if __name__ == "__main__":
    main()
