import pytest
from fastapi import BackgroundTasks
from sqlalchemy.orm.exc import StaleDataError

from src.crud.application import applications
from src.models.application import ApplicationStatus, ApplicationType
from src.services.application_service import ApplicationWorkflowService
from src.services.notifications import StatusNotice, StatusNotifier
from src.services.results import ErrorKind, Result
from src.services.workflow_base import CONFLICT_MESSAGE, WorkflowServiceBase


class _FlakySave:
    """Raise StaleDataError for the first `failures` saves, then behave normally."""

    def __init__(self, real, failures: int) -> None:
        self.real = real
        self.failures = failures
        self.calls = 0

    async def __call__(self, session, *, db_obj):
        self.calls += 1
        if self.calls <= self.failures:
            raise StaleDataError("row version changed")
        return await self.real(session, db_obj=db_obj)


async def _pending_app(session):
    workflow = ApplicationWorkflowService()
    app = (
        await workflow.create_application(session, employee_id="emp-1", application_type=ApplicationType.ONBOARDING)
    ).value
    await workflow.submit_application(session, app.id)
    return app


@pytest.mark.anyio
async def test_stale_write_is_retried_from_a_fresh_read(session, notifier, dispatcher, monkeypatch):
    app = await _pending_app(session)
    flaky = _FlakySave(applications.save, failures=1)
    monkeypatch.setattr(applications, "save", flaky)

    r = await ApplicationWorkflowService(notifier=notifier, max_attempts=3).approve_application(session, app.id, "ok")

    assert r.ok
    assert r.value.status is ApplicationStatus.APPROVED
    assert flaky.calls == 2
    # Only the committed attempt notifies.
    assert [n["status"] for n in dispatcher.sent] == ["Approved"]


@pytest.mark.anyio
async def test_exhausted_retries_return_conflict(session, notifier, dispatcher, monkeypatch):
    app = await _pending_app(session)
    flaky = _FlakySave(applications.save, failures=10)
    monkeypatch.setattr(applications, "save", flaky)

    r = await ApplicationWorkflowService(notifier=notifier, max_attempts=3).approve_application(session, app.id, "ok")

    assert r.error.kind is ErrorKind.CONFLICT
    assert r.error.message == CONFLICT_MESSAGE
    assert flaky.calls == 3
    assert dispatcher.sent == []

    monkeypatch.undo()
    current = await ApplicationWorkflowService().get_application_by_id(session, app.id)
    assert current.value.status is ApplicationStatus.PENDING


@pytest.mark.anyio
async def test_rule_violation_rolls_back_and_does_not_notify(session, notifier, dispatcher):
    base = WorkflowServiceBase(notifier=notifier)

    async def op(outbox):
        outbox.append(StatusNotice(employee_id="emp-1", status="Approved", message="never sent"))
        return Result.fail(ErrorKind.INVALID_STATE, "nope")

    r = await base._run_atomic(session, op, name="test")
    assert r.error.kind is ErrorKind.INVALID_STATE
    assert dispatcher.sent == []


@pytest.mark.anyio
async def test_infrastructure_errors_propagate(session):
    base = WorkflowServiceBase(notifier=StatusNotifier())

    async def op(outbox):
        raise RuntimeError("database went away")

    with pytest.raises(RuntimeError):
        await base._run_atomic(session, op, name="test")


def test_max_attempts_is_at_least_one():
    assert WorkflowServiceBase(max_attempts=0).max_attempts == 1


@pytest.mark.anyio
async def test_notifications_are_queued_on_background_tasks(session, notifier, dispatcher):
    tasks = BackgroundTasks()
    service = ApplicationWorkflowService(notifier=notifier, background=tasks)
    app = await _pending_app(session)

    r = await service.approve_application(session, app.id, "ok")

    assert r.ok
    assert dispatcher.sent == []
    assert len(tasks.tasks) == 1

    await tasks()
    assert [n["status"] for n in dispatcher.sent] == ["Approved"]


@pytest.mark.anyio
async def test_refused_operation_adds_no_background_task(session, notifier):
    tasks = BackgroundTasks()
    service = ApplicationWorkflowService(notifier=notifier, background=tasks)
    app = await _pending_app(session)
    await service.approve_application(session, app.id, None)

    r = await service.approve_application(session, app.id, None)

    assert r.error.kind is ErrorKind.INVALID_STATE
    assert len(tasks.tasks) == 1
