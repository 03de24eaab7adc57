from __future__ import annotations

import logging

import httpx

from src.config import settings
from src.worker.celery_app import celery_app


logger = logging.getLogger(__name__)

EMAIL_STATUS_PATH = "/api/email/async/application-status"


@celery_app.task(name="onboarding.send_application_status_email")
def send_application_status_email(to: str, employee_name: str, status: str, comment: str) -> bool:
    """Forward an application status change to the email service.

    Delivery is best-effort: a failed request is logged, not retried.
    """

    payload = {
        "to": to,
        "employeeName": employee_name,
        "status": status,
        "comment": comment,
    }

    try:
        with httpx.Client(base_url=settings.email_service_url, timeout=settings.email_request_timeout_seconds) as client:
            r = client.post(EMAIL_STATUS_PATH, json=payload)
        r.raise_for_status()
    except httpx.HTTPError:
        logger.exception("status_email_failed to=%s status=%s", to, status)
        return False

    logger.info("status_email_sent to=%s status=%s", to, status)
    return True
