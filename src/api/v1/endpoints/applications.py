from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.deps import get_application_service
from src.api.v1.endpoints._results import unwrap
from src.database import get_db
from src.schemas.application import (
    ApplicationCreate,
    ApplicationListItem,
    ApplicationRead,
    ApplicationStatusRead,
    ApplicationUpdate,
    HRDecision,
)
from src.services.application_service import ApplicationWorkflowService


router = APIRouter(prefix="/applications", tags=["applications"])


@router.post("", response_model=ApplicationRead, status_code=status.HTTP_201_CREATED)
async def create_application_endpoint(
    payload: ApplicationCreate,
    session: AsyncSession = Depends(get_db),
    service: ApplicationWorkflowService = Depends(get_application_service),
) -> ApplicationRead:
    result = await service.create_application(
        session,
        employee_id=payload.employee_id,
        application_type=payload.application_type,
        comment=payload.comment,
    )
    return unwrap(result)


@router.get("/ongoing", response_model=list[ApplicationRead])
async def list_ongoing_applications_endpoint(
    session: AsyncSession = Depends(get_db),
    service: ApplicationWorkflowService = Depends(get_application_service),
) -> list[ApplicationRead]:
    """HR dashboard feed: every Open or Pending application, newest first."""

    return unwrap(await service.list_ongoing_applications(session))


@router.get("/by-status/{application_status}", response_model=list[ApplicationRead])
async def list_applications_by_status_endpoint(
    application_status: str,
    session: AsyncSession = Depends(get_db),
    service: ApplicationWorkflowService = Depends(get_application_service),
) -> list[ApplicationRead]:
    return unwrap(await service.list_applications_by_status(session, application_status))


@router.get("/employee/{employee_id}", response_model=list[ApplicationRead])
async def list_employee_applications_endpoint(
    employee_id: str,
    session: AsyncSession = Depends(get_db),
    service: ApplicationWorkflowService = Depends(get_application_service),
) -> list[ApplicationRead]:
    return unwrap(await service.list_applications_by_employee(session, employee_id))


@router.get("/employee/{employee_id}/active", response_model=list[ApplicationListItem])
async def list_active_applications_endpoint(
    employee_id: str,
    session: AsyncSession = Depends(get_db),
    service: ApplicationWorkflowService = Depends(get_application_service),
) -> list[ApplicationListItem]:
    return unwrap(await service.list_active_applications(session, employee_id))


@router.get("/employee/{employee_id}/latest", response_model=ApplicationRead)
async def get_latest_active_application_endpoint(
    employee_id: str,
    session: AsyncSession = Depends(get_db),
    service: ApplicationWorkflowService = Depends(get_application_service),
) -> ApplicationRead:
    return unwrap(await service.get_latest_active_application(session, employee_id))


@router.get("/{application_id}", response_model=ApplicationRead)
async def get_application_endpoint(
    application_id: UUID,
    session: AsyncSession = Depends(get_db),
    service: ApplicationWorkflowService = Depends(get_application_service),
) -> ApplicationRead:
    return unwrap(await service.get_application_by_id(session, application_id))


@router.patch("/{application_id}", response_model=ApplicationRead)
async def update_application_endpoint(
    application_id: UUID,
    payload: ApplicationUpdate,
    session: AsyncSession = Depends(get_db),
    service: ApplicationWorkflowService = Depends(get_application_service),
) -> ApplicationRead:
    return unwrap(await service.update_application(session, application_id, payload))


@router.post("/{application_id}/submit", response_model=ApplicationRead)
async def submit_application_endpoint(
    application_id: UUID,
    session: AsyncSession = Depends(get_db),
    service: ApplicationWorkflowService = Depends(get_application_service),
) -> ApplicationRead:
    return unwrap(await service.submit_application(session, application_id))


@router.post("/{application_id}/approve", response_model=ApplicationStatusRead)
async def approve_application_endpoint(
    application_id: UUID,
    payload: HRDecision | None = None,
    session: AsyncSession = Depends(get_db),
    service: ApplicationWorkflowService = Depends(get_application_service),
) -> ApplicationStatusRead:
    comment = payload.comment if payload else None
    return unwrap(await service.approve_application(session, application_id, comment))


@router.post("/{application_id}/reject", response_model=ApplicationStatusRead)
async def reject_application_endpoint(
    application_id: UUID,
    payload: HRDecision | None = None,
    session: AsyncSession = Depends(get_db),
    service: ApplicationWorkflowService = Depends(get_application_service),
) -> ApplicationStatusRead:
    comment = payload.comment if payload else None
    return unwrap(await service.reject_application(session, application_id, comment))


@router.delete("/{application_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_application_endpoint(
    application_id: UUID,
    session: AsyncSession = Depends(get_db),
    service: ApplicationWorkflowService = Depends(get_application_service),
) -> Response:
    """Delete an Open or Rejected application and its documents."""

    unwrap(await service.delete_application(session, application_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
