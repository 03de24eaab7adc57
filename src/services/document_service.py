from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.crud.application import applications
from src.crud.document import documents
from src.models.document import Document
from src.schemas.document import DocumentRead
from src.services.notifications import StatusNotice
from src.services.results import ErrorKind, Result
from src.services.stages import is_visa_document_type
from src.services.state_machine import Operation, check_transition
from src.services.workflow_base import WorkflowServiceBase, coerce_id, is_blank


logger = logging.getLogger(__name__)


class DocumentService(WorkflowServiceBase):
    """Supporting documents attached to an application.

    Visa documents (I-20, receipt, EAD) drive the OPT stage and only go in
    through `VisaApplicationService`; they are refused here.
    """

    async def upload_document(
        self,
        session: AsyncSession,
        application_id: Any,
        *,
        document_type: str | None,
        path: str | None,
        title: str | None = None,
        description: str | None = None,
        is_required: bool = False,
    ) -> Result[DocumentRead]:
        if is_blank(document_type):
            return Result.fail(ErrorKind.VALIDATION, "type is required")
        if is_blank(path):
            return Result.fail(ErrorKind.VALIDATION, "path is required")
        if is_visa_document_type(document_type):
            return Result.fail(
                ErrorKind.VALIDATION,
                f"{document_type} must be uploaded through the visa application workflow",
            )

        async def op(outbox: list[StatusNotice]) -> Result[DocumentRead]:
            app = await self._load_application(session, application_id)
            if app is None:
                return Result.not_found(f"Application not found with id: {application_id}")

            err = check_transition(Operation.UPLOAD_DOCUMENT, app.status)
            if err is not None:
                return Result(error=err)

            doc = Document(
                application_id=app.id,
                type=document_type.strip(),
                is_required=is_required,
                title=title,
                description=description,
                path=path,
            )
            await documents.save_document(session, document=doc)

            # Bumps the version so a concurrent decision on the same application conflicts.
            app.touch()
            await applications.save(session, db_obj=app)

            logger.info(
                "document_uploaded application_id=%s document_id=%s type=%s",
                app.id,
                doc.id,
                doc.type,
            )
            return Result.success(DocumentRead.model_validate(doc))

        return await self._run_atomic(session, op, name="upload_document")

    async def get_document(self, session: AsyncSession, document_id: Any) -> Result[DocumentRead]:
        doc_id = coerce_id(document_id)
        doc = await documents.get(session, id=doc_id) if doc_id is not None else None
        if doc is None:
            return Result.not_found(f"Document not found with id: {document_id}")
        return Result.success(DocumentRead.model_validate(doc))

    async def list_documents_by_application(
        self,
        session: AsyncSession,
        application_id: Any,
    ) -> Result[list[DocumentRead]]:
        app = await self._load_application(session, application_id)
        if app is None:
            return Result.not_found(f"Application not found with id: {application_id}")

        rows = await documents.find_documents_by_application(session, application_id=app.id)
        return Result.success([DocumentRead.model_validate(d) for d in rows])

    async def list_documents_by_employee(
        self,
        session: AsyncSession,
        employee_id: str | None,
    ) -> Result[list[DocumentRead]]:
        if is_blank(employee_id):
            return Result.fail(ErrorKind.VALIDATION, "employee_id is required")

        rows = await documents.find_documents_by_employee(session, employee_id=employee_id)
        return Result.success([DocumentRead.model_validate(d) for d in rows])

    async def list_documents_by_type(
        self,
        session: AsyncSession,
        document_type: str | None,
    ) -> Result[list[DocumentRead]]:
        if is_blank(document_type):
            return Result.fail(ErrorKind.VALIDATION, "type is required")

        rows = await documents.find_documents_by_type(session, document_type=document_type)
        return Result.success([DocumentRead.model_validate(d) for d in rows])

    async def list_required_documents(self, session: AsyncSession) -> Result[list[DocumentRead]]:
        rows = await documents.find_required_documents(session)
        return Result.success([DocumentRead.model_validate(d) for d in rows])

    async def delete_document(self, session: AsyncSession, document_id: Any) -> Result[None]:
        async def op(outbox: list[StatusNotice]) -> Result[None]:
            doc_id = coerce_id(document_id)
            doc = await documents.get(session, id=doc_id) if doc_id is not None else None
            if doc is None:
                return Result.not_found(f"Document not found with id: {document_id}")

            # Removing a visa document would silently move the OPT stage backwards.
            if is_visa_document_type(doc.type):
                return Result.fail(ErrorKind.INVALID_STATE, "Visa documents cannot be deleted")

            app = await applications.get_for_update(session, application_id=doc.application_id)
            if app is not None:
                err = check_transition(Operation.DELETE_DOCUMENT, app.status)
                if err is not None:
                    return Result(error=err)
                app.touch()
                await applications.save(session, db_obj=app)

            await documents.delete(session, db_obj=doc)
            logger.info("document_deleted document_id=%s application_id=%s", doc.id, doc.application_id)
            return Result.success(None)

        return await self._run_atomic(session, op, name="delete_document")
