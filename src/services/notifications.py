from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from fastapi.concurrency import run_in_threadpool

from src.services.employee_lookup import EmployeeLookup, NullEmployeeLookup, find_employee


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatusNotice:
    """A status change the employee should hear about once the change is committed."""

    employee_id: str
    status: str
    message: str


class NotificationDispatcher(Protocol):
    def send_status_notification(self, to_email: str, display_name: str, status: str, message: str) -> None:
        ...


class NullNotificationDispatcher:
    def send_status_notification(self, to_email: str, display_name: str, status: str, message: str) -> None:
        return None


class CeleryNotificationDispatcher:
    """Hands the email off to the Celery worker; nothing is awaited."""

    def send_status_notification(self, to_email: str, display_name: str, status: str, message: str) -> None:
        from src.worker.dispatch import enqueue_status_email

        enqueue_status_email(to=to_email, employee_name=display_name, status=status, comment=message)


class StatusNotifier:
    """Best-effort delivery of `StatusNotice`s.

    Resolves the employee's email through the lookup, then dispatches. Every
    failure is logged and swallowed: a notification can never fail or roll
    back the workflow operation that produced it.
    """

    def __init__(
        self,
        *,
        lookup: EmployeeLookup | None = None,
        dispatcher: NotificationDispatcher | None = None,
    ) -> None:
        self.lookup: EmployeeLookup = lookup or NullEmployeeLookup()
        self.dispatcher: NotificationDispatcher = dispatcher or NullNotificationDispatcher()

    async def notify(self, notice: StatusNotice) -> bool:
        employee = await find_employee(self.lookup, notice.employee_id)
        if employee is None or not employee.email:
            logger.warning("notification_skipped employee_id=%s reason=no_email", notice.employee_id)
            return False

        try:
            await run_in_threadpool(
                self.dispatcher.send_status_notification,
                employee.email,
                employee.display_name,
                notice.status,
                notice.message,
            )
        except Exception:
            logger.exception(
                "notification_failed employee_id=%s status=%s",
                notice.employee_id,
                notice.status,
            )
            return False

        logger.info("notification_sent employee_id=%s status=%s", notice.employee_id, notice.status)
        return True
