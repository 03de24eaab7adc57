"""OPT STEM visa workflow.

I-983 (downloaded, filled, sent to the school) -> I-20 -> OPT STEM Receipt
-> OPT STEM EAD. Each upload parks the application in Pending for HR; each
HR approval short of the EAD re-opens it for the next document.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.crud.application import applications
from src.crud.document import documents
from src.models.application import Application, ApplicationStatus, ApplicationType
from src.models.document import Document
from src.schemas.visa import NextStepsRead, PhaseRead, VisaApplicationRead, VisaDocumentRead
from src.services.employee_lookup import find_employee
from src.services.notifications import StatusNotice
from src.services.results import ErrorKind, Result
from src.services.stages import (
    I20,
    OPT_STEM_EAD,
    OPT_STEM_RECEIPT,
    is_visa_document_type,
    missing_prerequisite_message,
    prerequisite_for,
    resolve_stage,
)
from src.services.state_machine import (
    ACTIVE_STATUSES,
    OPT_CREATED_COMMENT,
    UPLOAD_EFFECTS,
    NextAction,
    Operation,
    check_transition,
    decide_approval,
    decide_rejection,
    next_steps,
    phase_of,
)
from src.services.workflow_base import WorkflowServiceBase, is_blank


logger = logging.getLogger(__name__)

NOT_OPT_MESSAGE = "Application is not an OPT STEM application"


def to_visa_read(app: Application, docs: Sequence[Document]) -> VisaApplicationRead:
    stage = resolve_stage(docs)
    phase = phase_of(app.status, app.application_type, stage)
    return VisaApplicationRead(
        id=app.id,
        employee_id=app.employee_id,
        application_type=app.application_type,
        status=app.status,
        comment=app.comment,
        current_stage=stage,
        phase=PhaseRead(kind=phase.kind, stage=phase.stage),
        created_at=app.created_at,
        updated_at=app.updated_at,
        documents=[VisaDocumentRead.model_validate(d) for d in docs if is_visa_document_type(d.type)],
    )


class VisaApplicationService(WorkflowServiceBase):
    def __init__(self, *, i983_template_url: str | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.i983_template_url = i983_template_url or settings.i983_template_url

    async def _with_employee(self, result: Result[Any]) -> Result[Any]:
        """Fill in the employee's name and email; a failed lookup leaves them empty."""

        if not result.ok or result.value is None:
            return result

        async def enrich(read: VisaApplicationRead) -> VisaApplicationRead:
            contact = await find_employee(self.notifier.lookup, read.employee_id)
            if contact is None:
                return read
            return read.model_copy(
                update={
                    "employee_name": contact.full_name or contact.display_name,
                    "employee_email": contact.email,
                }
            )

        if isinstance(result.value, list):
            return Result.success([await enrich(r) for r in result.value])
        return Result.success(await enrich(result.value))

    async def _project(self, session: AsyncSession, app: Application) -> VisaApplicationRead:
        docs = await documents.find_documents_by_application(session, application_id=app.id)
        return to_visa_read(app, docs)

    async def _project_many(self, session: AsyncSession, rows: Sequence[Application]) -> list[VisaApplicationRead]:
        return [await self._project(session, app) for app in rows]

    async def _load_opt(self, session: AsyncSession, application_id: Any) -> Result[Application]:
        app = await self._load_application(session, application_id)
        if app is None:
            return Result.not_found(f"Application not found with id: {application_id}")
        if app.application_type is not ApplicationType.OPT:
            return Result.fail(ErrorKind.INVALID_STATE, NOT_OPT_MESSAGE)
        return Result.success(app)

    # ------------------------------------------------------------------
    # Creation and queries
    # ------------------------------------------------------------------

    async def create_opt_stem_application(
        self,
        session: AsyncSession,
        employee_id: str | None,
    ) -> Result[VisaApplicationRead]:
        if is_blank(employee_id):
            return Result.fail(ErrorKind.VALIDATION, "employee_id is required")
        employee_id = employee_id.strip()

        async def op(outbox: list[StatusNotice]) -> Result[VisaApplicationRead]:
            conflict = await self._active_opt_conflict(session, employee_id)
            if conflict is not None:
                return Result(error=conflict)

            app = Application(
                employee_id=employee_id,
                application_type=ApplicationType.OPT,
                status=ApplicationStatus.OPEN,
                comment=OPT_CREATED_COMMENT,
            )
            await applications.save(session, db_obj=app)

            logger.info("opt_application_created application_id=%s employee_id=%s", app.id, employee_id)
            return Result.success(to_visa_read(app, []))

        return await self._with_employee(await self._run_atomic(session, op, name="create_opt_stem_application"))

    async def get_current_visa_application(
        self,
        session: AsyncSession,
        employee_id: str | None,
    ) -> Result[VisaApplicationRead]:
        if is_blank(employee_id):
            return Result.fail(ErrorKind.VALIDATION, "employee_id is required")

        rows = await applications.find_by_employee_and_status_in(
            session,
            employee_id=employee_id,
            statuses=ACTIVE_STATUSES,
            application_type=ApplicationType.OPT,
        )
        if not rows:
            return Result.not_found(f"No active OPT STEM application found for employee_id: {employee_id}")
        return await self._with_employee(Result.success(await self._project(session, rows[0])))

    async def get_visa_application_by_id(self, session: AsyncSession, application_id: Any) -> Result[VisaApplicationRead]:
        loaded = await self._load_opt(session, application_id)
        if not loaded.ok:
            return loaded
        return await self._with_employee(Result.success(await self._project(session, loaded.value)))

    async def list_pending_visa_applications(self, session: AsyncSession) -> Result[list[VisaApplicationRead]]:
        rows = await applications.find_by_status(
            session, status=ApplicationStatus.PENDING, application_type=ApplicationType.OPT
        )
        return await self._with_employee(Result.success(await self._project_many(session, rows)))

    async def list_visa_applications(self, session: AsyncSession) -> Result[list[VisaApplicationRead]]:
        rows = await applications.list_all(session, application_type=ApplicationType.OPT)
        return await self._with_employee(Result.success(await self._project_many(session, rows)))

    def get_i983_template_url(self) -> Result[str]:
        return Result.success(self.i983_template_url)

    # ------------------------------------------------------------------
    # Uploads
    # ------------------------------------------------------------------

    async def upload_visa_document(
        self,
        session: AsyncSession,
        application_id: Any,
        *,
        document_type: str,
        path: str | None,
        title: str | None = None,
        description: str | None = None,
    ) -> Result[VisaApplicationRead]:
        """Attach the next visa document and move the application to Pending.

        Checks run in a fixed order: existence, application type, status,
        then the document-sequence prerequisite.
        """

        if not is_visa_document_type(document_type):
            return Result.fail(ErrorKind.VALIDATION, f"Unsupported visa document type: {document_type}")
        if is_blank(path):
            return Result.fail(ErrorKind.VALIDATION, "document_path is required")

        async def op(outbox: list[StatusNotice]) -> Result[VisaApplicationRead]:
            loaded = await self._load_opt(session, application_id)
            if not loaded.ok:
                return loaded
            app = loaded.value

            err = check_transition(Operation.UPLOAD_VISA_DOCUMENT, app.status)
            if err is not None:
                return Result(error=err)
            if app.status is ApplicationStatus.REJECTED:
                conflict = await self._active_opt_conflict(session, app.employee_id, exclude=app)
                if conflict is not None:
                    return Result(error=conflict)

            docs = await documents.find_documents_by_application(session, application_id=app.id)
            prerequisite = prerequisite_for(document_type)
            if prerequisite is not None and not any(d.type == prerequisite for d in docs):
                return Result.fail(ErrorKind.SEQUENCE, missing_prerequisite_message(prerequisite))

            doc = Document(
                application_id=app.id,
                type=document_type,
                is_required=True,
                title=title or document_type,
                description=description,
                path=path,
            )
            await documents.save_document(session, document=doc)

            effect = UPLOAD_EFFECTS[document_type]
            app.status = ApplicationStatus.PENDING
            app.comment = effect.comment
            app.touch()
            await applications.save(session, db_obj=app)

            outbox.append(
                StatusNotice(employee_id=app.employee_id, status=effect.notice_status, message=effect.notice_message)
            )
            logger.info(
                "visa_document_uploaded application_id=%s document_type=%s document_id=%s",
                app.id,
                document_type,
                doc.id,
            )
            return Result.success(to_visa_read(app, [*docs, doc]))

        return await self._with_employee(await self._run_atomic(session, op, name="upload_visa_document"))

    async def upload_i20(self, session: AsyncSession, application_id: Any, **kwargs: Any) -> Result[VisaApplicationRead]:
        return await self.upload_visa_document(session, application_id, document_type=I20, **kwargs)

    async def upload_opt_stem_receipt(
        self, session: AsyncSession, application_id: Any, **kwargs: Any
    ) -> Result[VisaApplicationRead]:
        return await self.upload_visa_document(session, application_id, document_type=OPT_STEM_RECEIPT, **kwargs)

    async def upload_opt_stem_ead(
        self, session: AsyncSession, application_id: Any, **kwargs: Any
    ) -> Result[VisaApplicationRead]:
        return await self.upload_visa_document(session, application_id, document_type=OPT_STEM_EAD, **kwargs)

    # ------------------------------------------------------------------
    # HR decisions
    # ------------------------------------------------------------------

    async def approve_visa_application(
        self,
        session: AsyncSession,
        application_id: Any,
        comment: str | None = None,
    ) -> Result[VisaApplicationRead]:
        async def op(outbox: list[StatusNotice]) -> Result[VisaApplicationRead]:
            loaded = await self._load_opt(session, application_id)
            if not loaded.ok:
                return loaded
            app = loaded.value

            err = check_transition(Operation.APPROVE, app.status)
            if err is not None:
                return Result(error=err)

            docs = await documents.find_documents_by_application(session, application_id=app.id)
            stage = resolve_stage(docs)
            decision = decide_approval(app.application_type, comment, stage=stage)
            await self._apply_decision(session, app, decision, outbox)

            logger.info(
                "visa_application_approved application_id=%s stage=%s status=%s",
                app.id,
                stage.value,
                app.status.value,
            )
            return Result.success(to_visa_read(app, docs))

        return await self._with_employee(await self._run_atomic(session, op, name="approve_visa_application"))

    async def reject_visa_application(
        self,
        session: AsyncSession,
        application_id: Any,
        comment: str | None = None,
    ) -> Result[VisaApplicationRead]:
        async def op(outbox: list[StatusNotice]) -> Result[VisaApplicationRead]:
            loaded = await self._load_opt(session, application_id)
            if not loaded.ok:
                return loaded
            app = loaded.value

            err = check_transition(Operation.REJECT, app.status)
            if err is not None:
                return Result(error=err)

            docs = await documents.find_documents_by_application(session, application_id=app.id)
            decision = decide_rejection(app.application_type, comment, visa=True)
            await self._apply_decision(session, app, decision, outbox)

            logger.info("visa_application_rejected application_id=%s", app.id)
            return Result.success(to_visa_read(app, docs))

        return await self._with_employee(await self._run_atomic(session, op, name="reject_visa_application"))

    # ------------------------------------------------------------------
    # Guidance
    # ------------------------------------------------------------------

    async def get_next_steps(self, session: AsyncSession, application_id: Any) -> Result[NextStepsRead]:
        loaded = await self._load_opt(session, application_id)
        if not loaded.ok:
            return loaded
        app = loaded.value

        docs = await documents.find_documents_by_application(session, application_id=app.id)
        stage = resolve_stage(docs)
        action, message = next_steps(stage, app.status)

        return Result.success(
            NextStepsRead(
                application_id=app.id,
                current_stage=stage,
                status=app.status,
                next_action=action,
                message=message,
                download_url=self.i983_template_url if action is NextAction.DOWNLOAD_I983 else None,
            )
        )
