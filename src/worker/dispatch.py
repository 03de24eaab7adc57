from __future__ import annotations

import logging

from src.config import settings


logger = logging.getLogger(__name__)


def enqueue_status_email(*, to: str, employee_name: str, status: str, comment: str) -> None:
    """Enqueue a status email for the Celery worker.

    This must be non-fatal: failing to enqueue must not affect the workflow
    operation that triggered it. Disabled entirely when
    `NOTIFICATIONS_ENABLED=false`.
    """

    if not settings.notifications_enabled:
        logger.info("notifications disabled; skipping status email to=%s status=%s", to, status)
        return

    try:
        # Imported lazily so the API can start even if the broker is unreachable.
        from src.worker.tasks import send_application_status_email

        send_application_status_email.delay(to, employee_name, status, comment)
    except Exception:
        logger.exception("Failed to enqueue status email (to=%s, status=%s)", to, status)
