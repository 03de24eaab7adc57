from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from src.models.application import ApplicationStatus, ApplicationType


class ApplicationCreate(BaseModel):
    # Presence is checked by the workflow service so a missing value comes back
    # as a ValidationError result with a readable reason.
    employee_id: str | None = None
    application_type: ApplicationType | None = None
    comment: str | None = None


class ApplicationUpdate(BaseModel):
    comment: str | None = None
    application_type: ApplicationType | None = None


class HRDecision(BaseModel):
    comment: str | None = None


class ApplicationRead(BaseModel):
    id: UUID
    employee_id: str
    application_type: ApplicationType
    status: ApplicationStatus
    comment: str | None

    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ApplicationListItem(BaseModel):
    id: UUID
    employee_id: str
    application_type: ApplicationType
    status: ApplicationStatus
    comment: str | None

    class Config:
        from_attributes = True


class ApplicationStatusRead(BaseModel):
    status: ApplicationStatus
    comment: str | None

    class Config:
        from_attributes = True
