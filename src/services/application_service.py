from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.crud.application import applications
from src.crud.document import documents
from src.models.application import Application, ApplicationStatus, ApplicationType
from src.schemas.application import (
    ApplicationListItem,
    ApplicationRead,
    ApplicationStatusRead,
    ApplicationUpdate,
)
from src.services.notifications import StatusNotice
from src.services.results import ErrorKind, Result
from src.services.stages import resolve_stage
from src.services.state_machine import (
    ACTIVE_STATUSES,
    OPT_CREATED_COMMENT,
    Operation,
    check_transition,
    decide_approval,
    decide_rejection,
)
from src.services.workflow_base import WorkflowServiceBase, is_blank


logger = logging.getLogger(__name__)


def _parse_enum(enum_cls, value: Any):
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return None


class ApplicationWorkflowService(WorkflowServiceBase):
    """Onboarding (and generic) application lifecycle."""

    async def create_application(
        self,
        session: AsyncSession,
        *,
        employee_id: str | None,
        application_type: ApplicationType | str | None,
        comment: str | None = None,
    ) -> Result[ApplicationRead]:
        if is_blank(employee_id):
            return Result.fail(ErrorKind.VALIDATION, "employee_id is required")
        if application_type is None:
            return Result.fail(ErrorKind.VALIDATION, "application_type is required")

        app_type = _parse_enum(ApplicationType, application_type)
        if app_type is None:
            return Result.fail(ErrorKind.VALIDATION, f"Unsupported application type: {application_type}")

        if comment is None and app_type is ApplicationType.OPT:
            comment = OPT_CREATED_COMMENT

        async def op(outbox: list[StatusNotice]) -> Result[ApplicationRead]:
            if app_type is ApplicationType.OPT:
                conflict = await self._active_opt_conflict(session, employee_id.strip())
                if conflict is not None:
                    return Result(error=conflict)

            app = Application(
                employee_id=employee_id.strip(),
                application_type=app_type,
                status=ApplicationStatus.OPEN,
                comment=comment,
            )
            await applications.save(session, db_obj=app)
            logger.info(
                "application_created application_id=%s employee_id=%s type=%s",
                app.id,
                app.employee_id,
                app.application_type.value,
            )
            return Result.success(ApplicationRead.model_validate(app))

        return await self._run_atomic(session, op, name="create_application")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_application_by_id(self, session: AsyncSession, application_id: Any) -> Result[ApplicationRead]:
        app = await self._load_application(session, application_id)
        if app is None:
            return Result.not_found(f"Application not found with id: {application_id}")
        return Result.success(ApplicationRead.model_validate(app))

    async def get_latest_active_application(
        self,
        session: AsyncSession,
        employee_id: str | None,
    ) -> Result[ApplicationRead]:
        if is_blank(employee_id):
            return Result.fail(ErrorKind.VALIDATION, "employee_id is required")

        app = await applications.find_latest_by_employee_and_status_in(
            session, employee_id=employee_id, statuses=ACTIVE_STATUSES
        )
        if app is None:
            return Result.not_found(f"No active application found for employee_id: {employee_id}")
        return Result.success(ApplicationRead.model_validate(app))

    async def list_active_applications(
        self,
        session: AsyncSession,
        employee_id: str | None,
    ) -> Result[list[ApplicationListItem]]:
        if is_blank(employee_id):
            return Result.fail(ErrorKind.VALIDATION, "employee_id is required")

        rows = await applications.find_by_employee_and_status_in(
            session, employee_id=employee_id, statuses=ACTIVE_STATUSES
        )
        if not rows:
            return Result.not_found(f"No active applications found for employee_id: {employee_id}")
        return Result.success([ApplicationListItem.model_validate(a) for a in rows])

    async def list_ongoing_applications(self, session: AsyncSession) -> Result[list[ApplicationRead]]:
        rows = await applications.find_by_status_in(session, statuses=ACTIVE_STATUSES)
        return Result.success([ApplicationRead.model_validate(a) for a in rows])

    async def list_applications_by_employee(
        self,
        session: AsyncSession,
        employee_id: str | None,
    ) -> Result[list[ApplicationRead]]:
        if is_blank(employee_id):
            return Result.fail(ErrorKind.VALIDATION, "employee_id is required")

        rows = await applications.find_by_employee(session, employee_id=employee_id)
        return Result.success([ApplicationRead.model_validate(a) for a in rows])

    async def list_applications_by_status(
        self,
        session: AsyncSession,
        status: ApplicationStatus | str | None,
    ) -> Result[list[ApplicationRead]]:
        parsed = _parse_enum(ApplicationStatus, status)
        if parsed is None:
            return Result.fail(ErrorKind.VALIDATION, f"Unsupported application status: {status}")

        rows = await applications.find_by_status(session, status=parsed)
        return Result.success([ApplicationRead.model_validate(a) for a in rows])

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def update_application(
        self,
        session: AsyncSession,
        application_id: Any,
        patch: ApplicationUpdate,
    ) -> Result[ApplicationRead]:
        async def op(outbox: list[StatusNotice]) -> Result[ApplicationRead]:
            app = await self._load_application(session, application_id)
            if app is None:
                return Result.not_found(f"Application not found with id: {application_id}")

            err = check_transition(Operation.UPDATE, app.status)
            if err is not None:
                return Result(error=err)

            new_type = patch.application_type
            if (
                new_type is not None
                and new_type is not app.application_type
                and ApplicationType.OPT in (app.application_type, new_type)
            ):
                # OPT progress lives in its documents; retyping would orphan it.
                return Result.fail(ErrorKind.INVALID_STATE, "Cannot change the type of an OPT STEM application")

            app.touch()
            await applications.update(session, db_obj=app, obj_in=patch.model_dump(exclude_none=True))

            logger.info("application_updated application_id=%s", app.id)
            return Result.success(ApplicationRead.model_validate(app))

        return await self._run_atomic(session, op, name="update_application")

    async def submit_application(self, session: AsyncSession, application_id: Any) -> Result[ApplicationRead]:
        async def op(outbox: list[StatusNotice]) -> Result[ApplicationRead]:
            app = await self._load_application(session, application_id)
            if app is None:
                return Result.not_found(f"Application not found with id: {application_id}")

            err = check_transition(Operation.SUBMIT, app.status)
            if err is not None:
                return Result(error=err)
            if app.application_type is ApplicationType.OPT:
                conflict = await self._active_opt_conflict(session, app.employee_id, exclude=app)
                if conflict is not None:
                    return Result(error=conflict)

            app.status = ApplicationStatus.PENDING
            app.touch()
            await applications.save(session, db_obj=app)

            logger.info("application_submitted application_id=%s", app.id)
            return Result.success(ApplicationRead.model_validate(app))

        return await self._run_atomic(session, op, name="submit_application")

    async def approve_application(
        self,
        session: AsyncSession,
        application_id: Any,
        comment: str | None = None,
    ) -> Result[ApplicationStatusRead]:
        """Approve a Pending application.

        OPT applications go through the stage-aware rule, so approving one
        before its EAD is on file re-opens it for the next document.
        """

        async def op(outbox: list[StatusNotice]) -> Result[ApplicationStatusRead]:
            app = await self._load_application(session, application_id)
            if app is None:
                return Result.not_found(f"Application not found with id: {application_id}")

            err = check_transition(Operation.APPROVE, app.status)
            if err is not None:
                return Result(error=err)

            stage = None
            if app.application_type is ApplicationType.OPT:
                docs = await documents.find_documents_by_application(session, application_id=app.id)
                stage = resolve_stage(docs)

            decision = decide_approval(app.application_type, comment, stage=stage)
            await self._apply_decision(session, app, decision, outbox)

            logger.info("application_approved application_id=%s status=%s", app.id, app.status.value)
            return Result.success(ApplicationStatusRead.model_validate(app))

        return await self._run_atomic(session, op, name="approve_application")

    async def reject_application(
        self,
        session: AsyncSession,
        application_id: Any,
        comment: str | None = None,
    ) -> Result[ApplicationStatusRead]:
        async def op(outbox: list[StatusNotice]) -> Result[ApplicationStatusRead]:
            app = await self._load_application(session, application_id)
            if app is None:
                return Result.not_found(f"Application not found with id: {application_id}")

            err = check_transition(Operation.REJECT, app.status)
            if err is not None:
                return Result(error=err)

            decision = decide_rejection(app.application_type, comment)
            await self._apply_decision(session, app, decision, outbox)

            logger.info("application_rejected application_id=%s", app.id)
            return Result.success(ApplicationStatusRead.model_validate(app))

        return await self._run_atomic(session, op, name="reject_application")

    async def delete_application(self, session: AsyncSession, application_id: Any) -> Result[None]:
        """Delete an Open or Rejected application together with its documents."""

        async def op(outbox: list[StatusNotice]) -> Result[None]:
            app = await self._load_application(session, application_id)
            if app is None:
                return Result.not_found(f"Application not found with id: {application_id}")

            err = check_transition(Operation.DELETE, app.status)
            if err is not None:
                return Result(error=err)

            removed = await documents.delete_for_application(session, application_id=app.id)
            await applications.delete(session, db_obj=app)

            logger.info("application_deleted application_id=%s documents_removed=%s", app.id, removed)
            return Result.success(None)

        return await self._run_atomic(session, op, name="delete_application")
