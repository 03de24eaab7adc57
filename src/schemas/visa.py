from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from src.models.application import ApplicationStatus, ApplicationType
from src.services.state_machine import NextAction, PhaseKind
from src.services.stages import VisaStage


class VisaApplicationCreate(BaseModel):
    employee_id: str | None = None


class VisaDocumentUpload(BaseModel):
    document_path: str
    title: str | None = None
    description: str | None = None


class TypedVisaDocumentUpload(VisaDocumentUpload):
    document_type: str


class VisaDocumentRead(BaseModel):
    id: UUID
    type: str
    title: str | None
    path: str

    class Config:
        from_attributes = True


class PhaseRead(BaseModel):
    kind: PhaseKind
    stage: VisaStage | None = None


class VisaApplicationRead(BaseModel):
    id: UUID
    employee_id: str
    employee_name: str | None = None
    employee_email: str | None = None

    application_type: ApplicationType
    status: ApplicationStatus
    comment: str | None

    # Derived from the uploaded documents on every read; never stored.
    current_stage: VisaStage
    phase: PhaseRead

    created_at: datetime
    updated_at: datetime

    documents: list[VisaDocumentRead] = Field(default_factory=list)


class NextStepsRead(BaseModel):
    application_id: UUID
    current_stage: VisaStage
    status: ApplicationStatus
    next_action: NextAction
    message: str
    download_url: str | None = None


class TemplateUrlRead(BaseModel):
    url: str
