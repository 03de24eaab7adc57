from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class DocumentUpload(BaseModel):
    application_id: UUID
    type: str
    path: str
    title: str | None = None
    description: str | None = None


class DocumentRead(BaseModel):
    id: UUID
    application_id: UUID

    type: str
    is_required: bool
    title: str | None
    description: str | None
    path: str

    created_at: datetime

    class Config:
        from_attributes = True
