"""Multi-step write operations executed as a single unit of work.

A command is an ordered list of steps. Each step runs inside the same session
and is flushed before the next one starts, so a database error surfaces at the
step that caused it. The first failure rolls the session back, runs the
compensations of the steps that had already completed (newest first) and
reports which step failed. Nothing is committed unless every step succeeds.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

StepAction = Callable[[Session, Dict[str, Any]], Any]
StepCompensation = Callable[[Dict[str, Any]], None]

PENDING = "pending"
SUCCESS = "success"
ERROR = "error"
ROLLED_BACK = "rolled_back"
COMPENSATION_FAILED = "compensation_failed"


@dataclass
class CommandStep:
    key: str
    label: str
    action: StepAction
    # Undo for effects the session rollback cannot reach (files, in-memory caches).
    compensate: Optional[StepCompensation] = None


@dataclass
class StepReport:
    key: str
    label: str
    status: str = PENDING
    error: Optional[str] = None


@dataclass
class CommandResult:
    name: str
    ok: bool
    steps: List[StepReport]
    failed_step: Optional[str] = None
    error: Optional[str] = None
    context: Dict[str, Any] = field(default_factory=dict)

    def output(self, key: str) -> Any:
        return self.context.get(key)


def format_error(exc: BaseException) -> str:
    code = getattr(exc, "code", None) or exc.__class__.__name__
    message = str(exc) or "Unknown error"
    return f"[{code}] {message}"


class CommandExecutor:
    def __init__(self, session: Session) -> None:
        self.session = session

    def run(self, name: str, steps: Sequence[CommandStep], context: Optional[Dict[str, Any]] = None) -> CommandResult:
        context = dict(context or {})
        reports = [StepReport(key=step.key, label=step.label) for step in steps]
        completed: List[int] = []

        for index, step in enumerate(steps):
            try:
                context[step.key] = step.action(self.session, context)
                self.session.flush()
            except Exception as exc:
                logger.warning("Command %s failed at step %s: %s", name, step.key, exc)
                reports[index].status = ERROR
                reports[index].error = format_error(exc)
                self._unwind(name, steps, reports, completed, context)
                return CommandResult(
                    name=name,
                    ok=False,
                    steps=reports,
                    failed_step=step.key,
                    error=reports[index].error,
                    context=context,
                )
            reports[index].status = SUCCESS
            completed.append(index)

        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            logger.exception("Command %s failed to commit", name)
            self._unwind(name, steps, reports, completed, context)
            return CommandResult(
                name=name,
                ok=False,
                steps=reports,
                failed_step="commit",
                error=format_error(exc),
                context=context,
            )
        logger.info("Command %s completed (%d steps)", name, len(steps))
        return CommandResult(name=name, ok=True, steps=reports, context=context)

    def _unwind(
        self,
        name: str,
        steps: Sequence[CommandStep],
        reports: List[StepReport],
        completed: List[int],
        context: Dict[str, Any],
    ) -> None:
        self.session.rollback()
        for index in reversed(completed):
            step = steps[index]
            if step.compensate is not None:
                try:
                    step.compensate(context)
                except Exception as exc:
                    logger.exception("Compensation for %s/%s failed", name, step.key)
                    reports[index].status = COMPENSATION_FAILED
                    reports[index].error = format_error(exc)
                    continue
            reports[index].status = ROLLED_BACK
