from __future__ import annotations

from celery import Celery

from src.config import settings


def make_celery() -> Celery:
    """Create the Celery app.

    Kept in a function so tests can import tasks without eagerly touching
    global state beyond settings.
    """

    celery = Celery(
        "onboarding",
        broker=settings.redis_url,
        backend=settings.redis_url,
        include=["src.worker.tasks"],
    )

    celery.conf.update(
        task_serializer="json",
        result_serializer="json",
        accept_content=["json"],
        timezone="UTC",
        enable_utc=True,
        task_ignore_result=True,
        # Publishing happens on the request path; fail fast instead of retrying
        # against an unavailable broker.
        task_publish_retry=False,
        broker_connection_timeout=2,
    )

    return celery


celery_app = make_celery()
