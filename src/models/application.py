from __future__ import annotations

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Enum, Index, Integer, String, Text, Uuid, func, text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class ApplicationStatus(str, enum.Enum):
    OPEN = "Open"
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class ApplicationType(str, enum.Enum):
    ONBOARDING = "ONBOARDING"
    OPT = "OPT"


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


_ACTIVE_OPT = text("application_type = 'OPT' AND status IN ('Open', 'Pending')")


class Application(Base):
    __tablename__ = "application_workflows"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    employee_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)

    application_type: Mapped[ApplicationType] = mapped_column(
        Enum(ApplicationType, native_enum=False, length=20, values_callable=_enum_values),
        nullable=False,
    )
    status: Mapped[ApplicationStatus] = mapped_column(
        Enum(ApplicationStatus, native_enum=False, length=20, values_callable=_enum_values),
        nullable=False,
        index=True,
    )
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Optimistic lock: every UPDATE is guarded by the version it was read at.
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    __table_args__ = (
        # At most one Open or Pending OPT application per employee.
        Index(
            "uq_application_workflows_active_opt",
            "employee_id",
            unique=True,
            postgresql_where=_ACTIVE_OPT,
            sqlite_where=_ACTIVE_OPT,
        ),
    )
    __mapper_args__ = {"version_id_col": version}

    def touch(self) -> None:
        self.updated_at = utcnow()
