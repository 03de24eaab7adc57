from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession


TModel = TypeVar("TModel")


def _to_dict(obj: Any, *, exclude_unset: bool = True) -> dict[str, Any]:
    """Best-effort conversion for Pydantic models / plain dict payloads."""

    if obj is None:
        return {}
    if isinstance(obj, dict):
        return obj
    if isinstance(obj, BaseModel):
        return obj.model_dump(exclude_unset=exclude_unset)
    return dict(vars(obj))


class BaseCRUD(Generic[TModel]):
    """Generic CRUD helper for SQLAlchemy (async).

    Methods intentionally do NOT commit. Callers control transaction boundaries.
    """

    def __init__(self, model: type[TModel]) -> None:
        self.model = model

    async def get(self, session: AsyncSession, *, id: Any) -> TModel | None:
        q = (
            select(self.model)
            .where(getattr(self.model, "id") == id)
            .execution_options(populate_existing=True)
        )
        r = await session.execute(q)
        return r.scalar_one_or_none()

    async def save(self, session: AsyncSession, *, db_obj: TModel) -> TModel:
        session.add(db_obj)  # no-op for persistent objects, safe for new/detached
        await session.flush()
        return db_obj

    async def update(self, session: AsyncSession, *, db_obj: TModel, obj_in: Any) -> TModel:
        for field, value in _to_dict(obj_in).items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)
        return await self.save(session, db_obj=db_obj)

    async def delete(self, session: AsyncSession, *, db_obj: TModel) -> None:
        await session.delete(db_obj)  # type: ignore[arg-type]
        await session.flush()
