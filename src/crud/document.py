from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.crud.base import BaseCRUD
from src.models.application import Application
from src.models.document import Document


class DocumentCRUD(BaseCRUD[Document]):
    """Document store keyed by owning application."""

    def __init__(self) -> None:
        super().__init__(Document)

    async def find_documents_by_application(
        self,
        session: AsyncSession,
        *,
        application_id: UUID,
    ) -> list[Document]:
        stmt = (
            select(Document)
            .where(Document.application_id == application_id)
            .order_by(Document.created_at.asc(), Document.id.asc())
        )
        res = await session.execute(stmt)
        return list(res.scalars().all())

    async def save_document(self, session: AsyncSession, *, document: Document) -> Document:
        return await self.save(session, db_obj=document)

    async def find_documents_by_employee(self, session: AsyncSession, *, employee_id: str) -> list[Document]:
        stmt = (
            select(Document)
            .join(Application, Application.id == Document.application_id)
            .where(Application.employee_id == employee_id)
            .order_by(Document.created_at.asc(), Document.id.asc())
        )
        res = await session.execute(stmt)
        return list(res.scalars().all())

    async def find_documents_by_type(self, session: AsyncSession, *, document_type: str) -> list[Document]:
        stmt = select(Document).where(Document.type == document_type).order_by(Document.created_at.asc())
        res = await session.execute(stmt)
        return list(res.scalars().all())

    async def find_required_documents(self, session: AsyncSession) -> list[Document]:
        stmt = select(Document).where(Document.is_required.is_(True)).order_by(Document.created_at.asc())
        res = await session.execute(stmt)
        return list(res.scalars().all())

    async def delete_for_application(self, session: AsyncSession, *, application_id: UUID) -> int:
        res = await session.execute(delete(Document).where(Document.application_id == application_id))
        return int(res.rowcount or 0)


documents = DocumentCRUD()
