from decimal import Decimal
from types import SimpleNamespace

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from pooladmin.models.models import BankAccount, Transaction
from pooladmin.seeds.fallback_state import FALLBACK_STATE
from pooladmin.services.ledger import fold_balances
from pooladmin.services.snapshot import REMEDIATION_HINT, SNAPSHOT_TABLES, load_state


def test_snapshot_reads_every_table_and_derives_balances(db_session, create_user, create_account):
    create_user("admin", "ADMIN")
    account = create_account(opening_balance="100.00")
    db_session.add(
        Transaction(
            date=account.created_at.date(),
            description="Dues",
            amount=Decimal("45.00"),
            type="INCOME",
            category="CONTRIBUTION",
            related_bank_account_id=account.id,
        )
    )
    db_session.commit()

    snapshot = load_state(db_session)

    assert not snapshot.missing_tables
    assert set(snapshot.data) == set(SNAPSHOT_TABLES)
    assert snapshot.data["bank_accounts"][0]["balance"] == "145.00"
    user = snapshot.data["users"][0]
    assert user["role"] == "ADMIN"
    assert "hashed_password" not in user


def test_missing_schema_falls_back_to_the_builtin_dataset(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'empty.db'}")
    session = sessionmaker(bind=engine)()
    try:
        snapshot = load_state(session)
    finally:
        session.close()
        engine.dispose()

    assert snapshot.missing_tables
    assert snapshot.hint == REMEDIATION_HINT
    assert "scripts/init_db.py" in snapshot.hint
    assert snapshot.errors
    assert len(snapshot.data["members"]) == 6

    # Callers get a copy they are free to mutate
    snapshot.data["members"].clear()
    assert len(FALLBACK_STATE["members"]) == 6


def test_fallback_balances_match_the_fallback_ledger():
    accounts = [
        SimpleNamespace(id=row["id"], opening_balance=Decimal(row["opening_balance"]))
        for row in FALLBACK_STATE["bank_accounts"]
    ]
    transactions = [
        SimpleNamespace(
            type=row["type"],
            amount=Decimal(row["amount"]),
            related_bank_account_id=row.get("related_bank_account_id"),
            transfer_to_account_id=row.get("transfer_to_account_id"),
        )
        for row in FALLBACK_STATE["transactions"]
    ]
    balances = fold_balances(accounts, transactions)
    for row in FALLBACK_STATE["bank_accounts"]:
        assert balances[row["id"]] == Decimal(row["balance"])


def test_state_endpoint_hides_restricted_tables_from_viewers(db_session, client, create_user):
    viewer = create_user("guest", "VIEWER")
    admin = create_user("admin", "ADMIN")

    viewer_state = client(viewer).get("/system/state").json()
    assert "users" not in viewer_state["data"]
    assert "audit_logs" not in viewer_state["data"]
    assert "members" in viewer_state["data"]

    admin_state = client(admin).get("/system/state").json()
    assert {user["username"] for user in admin_state["data"]["users"]} == {"guest", "admin"}
    assert db_session.query(BankAccount).count() == 0
