from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any
from uuid import UUID

from fastapi import BackgroundTasks
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from src.config import settings
from src.crud.application import applications
from src.models.application import Application, ApplicationType
from src.services.notifications import StatusNotice, StatusNotifier
from src.services.results import ErrorKind, Result, WorkflowError
from src.services.state_machine import ACTIVE_STATUSES, Decision


logger = logging.getLogger(__name__)

AtomicOperation = Callable[[list[StatusNotice]], Awaitable[Result[Any]]]

CONFLICT_MESSAGE = "Application was modified concurrently; please retry"
DUPLICATE_ACTIVE_MESSAGE = "Another active application was created concurrently; please retry"
ACTIVE_OPT_EXISTS_MESSAGE = "Employee already has an active OPT STEM application"


def coerce_id(value: Any) -> UUID | None:
    """Accept a UUID or its string form; anything else is treated as unknown."""

    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        return None


def is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


class WorkflowServiceBase:
    """Shared plumbing for the workflow services.

    Every mutation runs through `_run_atomic`: one transaction per attempt,
    commit on success, rollback on a rule violation, bounded retry when the
    optimistic version check fails. Notifications collected by the operation
    are only sent once the commit has happened; with `background` set they are
    queued on it and go out after the HTTP response.
    """

    def __init__(
        self,
        *,
        notifier: StatusNotifier | None = None,
        max_attempts: int | None = None,
        background: BackgroundTasks | None = None,
    ) -> None:
        self.notifier = notifier or StatusNotifier()
        self.background = background
        attempts = settings.optimistic_retry_attempts if max_attempts is None else max_attempts
        self.max_attempts = max(1, attempts)

    async def _run_atomic(
        self,
        session: AsyncSession,
        operation: AtomicOperation,
        *,
        name: str,
    ) -> Result[Any]:
        result: Result[Any] | None = None
        outbox: list[StatusNotice] = []

        for attempt in range(1, self.max_attempts + 1):
            outbox = []
            try:
                result = await operation(outbox)
                if result.ok:
                    await session.commit()
                else:
                    await session.rollback()
            except IntegrityError:
                # Unique index lost to a committed row; re-running cannot succeed.
                await session.rollback()
                logger.warning("integrity_conflict operation=%s attempt=%s", name, attempt)
                return Result.fail(ErrorKind.CONFLICT, DUPLICATE_ACTIVE_MESSAGE)
            except StaleDataError:
                await session.rollback()
                logger.warning(
                    "optimistic_conflict operation=%s attempt=%s max_attempts=%s",
                    name,
                    attempt,
                    self.max_attempts,
                )
                result = None
                continue
            except Exception:
                await session.rollback()
                raise
            break

        if result is None:
            logger.error("optimistic_conflict_exhausted operation=%s attempts=%s", name, self.max_attempts)
            return Result.fail(ErrorKind.CONFLICT, CONFLICT_MESSAGE)

        if result.ok:
            for notice in outbox:
                if self.background is not None:
                    self.background.add_task(self.notifier.notify, notice)
                else:
                    await self.notifier.notify(notice)
        return result

    async def _load_application(self, session: AsyncSession, application_id: Any) -> Application | None:
        app_id = coerce_id(application_id)
        if app_id is None:
            return None
        return await applications.get_for_update(session, application_id=app_id)

    async def _active_opt_conflict(
        self,
        session: AsyncSession,
        employee_id: str,
        *,
        exclude: Application | None = None,
    ) -> WorkflowError | None:
        """An employee may have at most one Open or Pending OPT application."""

        rows = await applications.find_by_employee_and_status_in(
            session,
            employee_id=employee_id,
            statuses=ACTIVE_STATUSES,
            application_type=ApplicationType.OPT,
        )
        if any(exclude is None or row.id != exclude.id for row in rows):
            return WorkflowError(kind=ErrorKind.INVALID_STATE, message=ACTIVE_OPT_EXISTS_MESSAGE)
        return None

    async def _apply_decision(
        self,
        session: AsyncSession,
        app: Application,
        decision: Decision,
        outbox: list[StatusNotice],
    ) -> None:
        app.status = decision.status
        app.comment = decision.comment
        app.touch()
        await applications.save(session, db_obj=app)
        outbox.append(
            StatusNotice(
                employee_id=app.employee_id,
                status=decision.notice_status,
                message=decision.notice_message,
            )
        )
