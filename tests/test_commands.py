from decimal import Decimal

from pooladmin.models.models import BankAccount
from pooladmin.services.commands import CommandExecutor, CommandStep, format_error


class Boom(RuntimeError):
    code = "BOOM"


def _add_account(name):
    def _action(db, context):
        account = BankAccount(bank_name=name, account_number="0001", opening_balance=Decimal("10"))
        db.add(account)
        return account

    return _action


def test_all_steps_succeed_and_commit(db_session):
    steps = [
        CommandStep("first", "Create first account", _add_account("First")),
        CommandStep("second", "Create second account", _add_account("Second")),
    ]
    result = CommandExecutor(db_session).run("demo", steps)

    assert result.ok
    assert [step.status for step in result.steps] == ["success", "success"]
    assert result.output("first").id is not None
    db_session.expire_all()
    assert db_session.query(BankAccount).count() == 2


def test_failure_rolls_back_and_runs_compensations_newest_first(db_session):
    undone = []

    def fail(db, context):
        raise Boom("second step exploded")

    steps = [
        CommandStep("first", "Create account", _add_account("First"), compensate=lambda ctx: undone.append("first")),
        CommandStep("marker", "No-op", lambda db, ctx: None, compensate=lambda ctx: undone.append("marker")),
        CommandStep("second", "Explode", fail),
        CommandStep("never", "Never runs", _add_account("Never")),
    ]
    result = CommandExecutor(db_session).run("demo", steps)

    assert not result.ok
    assert result.failed_step == "second"
    assert result.error == "[BOOM] second step exploded"
    assert [step.status for step in result.steps] == ["rolled_back", "rolled_back", "error", "pending"]
    assert undone == ["marker", "first"]
    assert db_session.query(BankAccount).count() == 0


def test_failed_compensation_is_reported_on_its_step(db_session):
    def broken_undo(ctx):
        raise ValueError("cannot undo")

    def fail(db, context):
        raise ValueError("nope")

    steps = [
        CommandStep("first", "Create account", _add_account("First"), compensate=broken_undo),
        CommandStep("second", "Explode", fail),
    ]
    result = CommandExecutor(db_session).run("demo", steps)

    assert result.steps[0].status == "compensation_failed"
    assert result.steps[0].error == "[ValueError] cannot undo"
    assert result.steps[1].error == "[ValueError] nope"


def test_format_error_falls_back_to_class_name_and_placeholder():
    assert format_error(KeyError()) == "[KeyError] Unknown error"
