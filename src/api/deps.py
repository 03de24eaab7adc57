from __future__ import annotations

from functools import lru_cache

from fastapi import BackgroundTasks, Depends

from src.config import settings
from src.services.application_service import ApplicationWorkflowService
from src.services.document_service import DocumentService
from src.services.employee_lookup import HttpEmployeeLookup
from src.services.notifications import CeleryNotificationDispatcher, StatusNotifier
from src.services.visa_service import VisaApplicationService


@lru_cache
def get_status_notifier() -> StatusNotifier:
    lookup = HttpEmployeeLookup(
        base_url=settings.employee_service_url,
        timeout=settings.employee_lookup_timeout_seconds,
    )
    return StatusNotifier(lookup=lookup, dispatcher=CeleryNotificationDispatcher())


# Status notifications are queued on the request's BackgroundTasks so the
# employee lookup and broker publish happen after the response is sent.


def get_application_service(
    background_tasks: BackgroundTasks,
    notifier: StatusNotifier = Depends(get_status_notifier),
) -> ApplicationWorkflowService:
    return ApplicationWorkflowService(notifier=notifier, background=background_tasks)


def get_visa_service(
    background_tasks: BackgroundTasks,
    notifier: StatusNotifier = Depends(get_status_notifier),
) -> VisaApplicationService:
    return VisaApplicationService(notifier=notifier, background=background_tasks)


def get_document_service(
    background_tasks: BackgroundTasks,
    notifier: StatusNotifier = Depends(get_status_notifier),
) -> DocumentService:
    return DocumentService(notifier=notifier, background=background_tasks)
