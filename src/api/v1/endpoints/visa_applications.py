from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.deps import get_visa_service
from src.api.v1.endpoints._results import unwrap
from src.database import get_db
from src.schemas.application import HRDecision
from src.schemas.visa import (
    NextStepsRead,
    TemplateUrlRead,
    TypedVisaDocumentUpload,
    VisaApplicationCreate,
    VisaApplicationRead,
    VisaDocumentUpload,
)
from src.services.stages import I20, OPT_STEM_EAD, OPT_STEM_RECEIPT
from src.services.visa_service import VisaApplicationService


router = APIRouter(prefix="/visa-applications", tags=["visa-applications"])


@router.post("", response_model=VisaApplicationRead, status_code=status.HTTP_201_CREATED)
async def create_opt_stem_application_endpoint(
    payload: VisaApplicationCreate,
    session: AsyncSession = Depends(get_db),
    service: VisaApplicationService = Depends(get_visa_service),
) -> VisaApplicationRead:
    return unwrap(await service.create_opt_stem_application(session, payload.employee_id))


@router.get("", response_model=list[VisaApplicationRead])
async def list_visa_applications_endpoint(
    session: AsyncSession = Depends(get_db),
    service: VisaApplicationService = Depends(get_visa_service),
) -> list[VisaApplicationRead]:
    return unwrap(await service.list_visa_applications(session))


@router.get("/pending", response_model=list[VisaApplicationRead])
async def list_pending_visa_applications_endpoint(
    session: AsyncSession = Depends(get_db),
    service: VisaApplicationService = Depends(get_visa_service),
) -> list[VisaApplicationRead]:
    """HR review queue: OPT applications waiting on a decision."""

    return unwrap(await service.list_pending_visa_applications(session))


@router.get("/i983-template", response_model=TemplateUrlRead)
async def get_i983_template_endpoint(
    service: VisaApplicationService = Depends(get_visa_service),
) -> TemplateUrlRead:
    return TemplateUrlRead(url=unwrap(service.get_i983_template_url()))


@router.get("/employee/{employee_id}/current", response_model=VisaApplicationRead)
async def get_current_visa_application_endpoint(
    employee_id: str,
    session: AsyncSession = Depends(get_db),
    service: VisaApplicationService = Depends(get_visa_service),
) -> VisaApplicationRead:
    return unwrap(await service.get_current_visa_application(session, employee_id))


@router.get("/{application_id}", response_model=VisaApplicationRead)
async def get_visa_application_endpoint(
    application_id: UUID,
    session: AsyncSession = Depends(get_db),
    service: VisaApplicationService = Depends(get_visa_service),
) -> VisaApplicationRead:
    return unwrap(await service.get_visa_application_by_id(session, application_id))


@router.get("/{application_id}/next-steps", response_model=NextStepsRead)
async def get_next_steps_endpoint(
    application_id: UUID,
    session: AsyncSession = Depends(get_db),
    service: VisaApplicationService = Depends(get_visa_service),
) -> NextStepsRead:
    return unwrap(await service.get_next_steps(session, application_id))


@router.post("/{application_id}/documents", response_model=VisaApplicationRead)
async def upload_visa_document_endpoint(
    application_id: UUID,
    payload: TypedVisaDocumentUpload,
    session: AsyncSession = Depends(get_db),
    service: VisaApplicationService = Depends(get_visa_service),
) -> VisaApplicationRead:
    return await _upload(service, session, application_id, payload.document_type, payload)


async def _upload(
    service: VisaApplicationService,
    session: AsyncSession,
    application_id: UUID,
    document_type: str,
    payload: VisaDocumentUpload,
) -> VisaApplicationRead:
    result = await service.upload_visa_document(
        session,
        application_id,
        document_type=document_type,
        path=payload.document_path,
        title=payload.title,
        description=payload.description,
    )
    return unwrap(result)


@router.post("/{application_id}/i20", response_model=VisaApplicationRead)
async def upload_i20_endpoint(
    application_id: UUID,
    payload: VisaDocumentUpload,
    session: AsyncSession = Depends(get_db),
    service: VisaApplicationService = Depends(get_visa_service),
) -> VisaApplicationRead:
    return await _upload(service, session, application_id, I20, payload)


@router.post("/{application_id}/opt-stem-receipt", response_model=VisaApplicationRead)
async def upload_opt_stem_receipt_endpoint(
    application_id: UUID,
    payload: VisaDocumentUpload,
    session: AsyncSession = Depends(get_db),
    service: VisaApplicationService = Depends(get_visa_service),
) -> VisaApplicationRead:
    return await _upload(service, session, application_id, OPT_STEM_RECEIPT, payload)


@router.post("/{application_id}/opt-stem-ead", response_model=VisaApplicationRead)
async def upload_opt_stem_ead_endpoint(
    application_id: UUID,
    payload: VisaDocumentUpload,
    session: AsyncSession = Depends(get_db),
    service: VisaApplicationService = Depends(get_visa_service),
) -> VisaApplicationRead:
    return await _upload(service, session, application_id, OPT_STEM_EAD, payload)


@router.post("/{application_id}/approve", response_model=VisaApplicationRead)
async def approve_visa_application_endpoint(
    application_id: UUID,
    payload: HRDecision | None = None,
    session: AsyncSession = Depends(get_db),
    service: VisaApplicationService = Depends(get_visa_service),
) -> VisaApplicationRead:
    comment = payload.comment if payload else None
    return unwrap(await service.approve_visa_application(session, application_id, comment))


@router.post("/{application_id}/reject", response_model=VisaApplicationRead)
async def reject_visa_application_endpoint(
    application_id: UUID,
    payload: HRDecision | None = None,
    session: AsyncSession = Depends(get_db),
    service: VisaApplicationService = Depends(get_visa_service),
) -> VisaApplicationRead:
    comment = payload.comment if payload else None
    return unwrap(await service.reject_visa_application(session, application_id, comment))
