from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.deps import get_document_service
from src.api.v1.endpoints._results import unwrap
from src.database import get_db
from src.schemas.document import DocumentRead, DocumentUpload
from src.services.document_service import DocumentService


router = APIRouter(prefix="/documents", tags=["documents"])


@router.post("", response_model=DocumentRead, status_code=status.HTTP_201_CREATED)
async def upload_document_endpoint(
    payload: DocumentUpload,
    session: AsyncSession = Depends(get_db),
    service: DocumentService = Depends(get_document_service),
) -> DocumentRead:
    result = await service.upload_document(
        session,
        payload.application_id,
        document_type=payload.type,
        path=payload.path,
        title=payload.title,
        description=payload.description,
    )
    return unwrap(result)


@router.get("/required", response_model=list[DocumentRead])
async def list_required_documents_endpoint(
    session: AsyncSession = Depends(get_db),
    service: DocumentService = Depends(get_document_service),
) -> list[DocumentRead]:
    return unwrap(await service.list_required_documents(session))


@router.get("/application/{application_id}", response_model=list[DocumentRead])
async def list_application_documents_endpoint(
    application_id: UUID,
    session: AsyncSession = Depends(get_db),
    service: DocumentService = Depends(get_document_service),
) -> list[DocumentRead]:
    return unwrap(await service.list_documents_by_application(session, application_id))


@router.get("/employee/{employee_id}", response_model=list[DocumentRead])
async def list_employee_documents_endpoint(
    employee_id: str,
    session: AsyncSession = Depends(get_db),
    service: DocumentService = Depends(get_document_service),
) -> list[DocumentRead]:
    return unwrap(await service.list_documents_by_employee(session, employee_id))


@router.get("/type/{document_type}", response_model=list[DocumentRead])
async def list_documents_by_type_endpoint(
    document_type: str,
    session: AsyncSession = Depends(get_db),
    service: DocumentService = Depends(get_document_service),
) -> list[DocumentRead]:
    return unwrap(await service.list_documents_by_type(session, document_type))


@router.get("/{document_id}", response_model=DocumentRead)
async def get_document_endpoint(
    document_id: UUID,
    session: AsyncSession = Depends(get_db),
    service: DocumentService = Depends(get_document_service),
) -> DocumentRead:
    return unwrap(await service.get_document(session, document_id))


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document_endpoint(
    document_id: UUID,
    session: AsyncSession = Depends(get_db),
    service: DocumentService = Depends(get_document_service),
) -> Response:
    unwrap(await service.delete_document(session, document_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
