import httpx

from src.config import settings
from src.worker import dispatch, tasks


def test_enqueue_is_noop_when_notifications_disabled(monkeypatch):
    called = []
    monkeypatch.setattr(settings, "notifications_enabled", False)
    monkeypatch.setattr(tasks.send_application_status_email, "delay", lambda *args: called.append(args))

    dispatch.enqueue_status_email(to="a@b.c", employee_name="A", status="Approved", comment="ok")

    assert called == []


def test_enqueue_delays_the_celery_task(monkeypatch):
    called = []
    monkeypatch.setattr(settings, "notifications_enabled", True)
    monkeypatch.setattr(tasks.send_application_status_email, "delay", lambda *args: called.append(args))

    dispatch.enqueue_status_email(to="a@b.c", employee_name="A", status="Approved", comment="ok")

    assert called == [("a@b.c", "A", "Approved", "ok")]


def test_enqueue_failure_is_not_fatal(monkeypatch):
    def _boom(*args):
        raise ConnectionError("redis down")

    monkeypatch.setattr(settings, "notifications_enabled", True)
    monkeypatch.setattr(tasks.send_application_status_email, "delay", _boom)

    # Must not raise.
    dispatch.enqueue_status_email(to="a@b.c", employee_name="A", status="Approved", comment="ok")


def _patch_http(monkeypatch, handler):
    real_client = httpx.Client

    def _client(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(tasks.httpx, "Client", _client)


def test_status_email_task_posts_to_the_email_service(monkeypatch):
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["path"] = request.url.path
        captured["body"] = request.read()
        return httpx.Response(202)

    _patch_http(monkeypatch, handler)

    assert tasks.send_application_status_email("a@b.c", "Jane", "I-20 Uploaded", "pending review") is True
    assert captured["path"] == tasks.EMAIL_STATUS_PATH
    assert b'"employeeName":"Jane"' in captured["body"].replace(b" ", b"")


def test_status_email_task_reports_failure(monkeypatch):
    _patch_http(monkeypatch, lambda request: httpx.Response(500))

    assert tasks.send_application_status_email("a@b.c", "Jane", "Rejected", "no") is False
