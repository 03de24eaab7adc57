from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.crud.base import BaseCRUD
from src.models.application import Application, ApplicationStatus, ApplicationType


class ApplicationCRUD(BaseCRUD[Application]):
    """Workflow repository for the Application aggregate.

    Every listing is newest-first by creation time.
    """

    def __init__(self) -> None:
        super().__init__(Application)

    def _newest_first(self, stmt):
        return stmt.order_by(Application.created_at.desc(), Application.id.desc())

    async def find_by_employee_and_status_in(
        self,
        session: AsyncSession,
        *,
        employee_id: str,
        statuses: Iterable[ApplicationStatus],
        application_type: ApplicationType | None = None,
    ) -> list[Application]:
        stmt = select(Application).where(
            Application.employee_id == employee_id,
            Application.status.in_(list(statuses)),
        )
        if application_type is not None:
            stmt = stmt.where(Application.application_type == application_type)

        res = await session.execute(self._newest_first(stmt))
        return list(res.scalars().all())

    async def find_latest_by_employee_and_status_in(
        self,
        session: AsyncSession,
        *,
        employee_id: str,
        statuses: Iterable[ApplicationStatus],
    ) -> Application | None:
        stmt = select(Application).where(
            Application.employee_id == employee_id,
            Application.status.in_(list(statuses)),
        )
        res = await session.execute(self._newest_first(stmt).limit(1))
        return res.scalar_one_or_none()

    async def find_by_status_in(
        self,
        session: AsyncSession,
        *,
        statuses: Iterable[ApplicationStatus],
        application_type: ApplicationType | None = None,
    ) -> list[Application]:
        stmt = select(Application).where(Application.status.in_(list(statuses)))
        if application_type is not None:
            stmt = stmt.where(Application.application_type == application_type)

        res = await session.execute(self._newest_first(stmt))
        return list(res.scalars().all())

    async def find_by_status(
        self,
        session: AsyncSession,
        *,
        status: ApplicationStatus,
        application_type: ApplicationType | None = None,
    ) -> list[Application]:
        return await self.find_by_status_in(session, statuses=[status], application_type=application_type)

    async def find_by_employee(self, session: AsyncSession, *, employee_id: str) -> list[Application]:
        stmt = select(Application).where(Application.employee_id == employee_id)
        res = await session.execute(self._newest_first(stmt))
        return list(res.scalars().all())

    async def list_all(
        self,
        session: AsyncSession,
        *,
        application_type: ApplicationType | None = None,
    ) -> list[Application]:
        stmt = select(Application)
        if application_type is not None:
            stmt = stmt.where(Application.application_type == application_type)

        res = await session.execute(self._newest_first(stmt))
        return list(res.scalars().all())

    async def get_for_update(self, session: AsyncSession, *, application_id: UUID) -> Application | None:
        """Load the aggregate for a read-modify-write.

        The row is refreshed from the database so a retried operation always
        starts from the latest committed version.
        """

        return await self.get(session, id=application_id)


applications = ApplicationCRUD()
