from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

import httpx


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmployeeContact:
    employee_id: str
    email: str | None
    display_name: str
    full_name: str

    @classmethod
    def from_payload(cls, employee_id: str, payload: dict[str, Any]) -> "EmployeeContact":
        # The employee service may wrap its body in a {"success": ..., "data": {...}} envelope.
        if isinstance(payload.get("data"), dict):
            payload = payload["data"]

        first = (payload.get("firstName") or "").strip()
        middle = (payload.get("middleName") or "").strip()
        last = (payload.get("lastName") or "").strip()
        preferred = (payload.get("preferredName") or "").strip()

        email = (payload.get("email") or "").strip() or None
        display_name = preferred or first or "Employee"
        full_name = " ".join(part for part in (first, middle, last) if part)

        return cls(employee_id=employee_id, email=email, display_name=display_name, full_name=full_name)


class EmployeeLookup(Protocol):
    async def get_employee(self, employee_id: str) -> EmployeeContact | None:
        ...


class NullEmployeeLookup:
    """Lookup that never finds anyone; notifications are skipped."""

    async def get_employee(self, employee_id: str) -> EmployeeContact | None:
        return None


class HttpEmployeeLookup:
    """Resolve employees through the employee service (`GET /employees/{id}`).

    Transport errors and non-404 error statuses are raised; callers that treat
    the lookup as optional go through `find_employee`.
    """

    def __init__(
        self,
        *,
        base_url: str,
        timeout: float = 2.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def get_employee(self, employee_id: str) -> EmployeeContact | None:
        async with httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
        ) as client:
            r = await client.get(f"/employees/{employee_id}")

        if r.status_code == 404:
            return None
        r.raise_for_status()

        payload = r.json()
        if not isinstance(payload, dict):
            return None
        return EmployeeContact.from_payload(employee_id, payload)


async def find_employee(lookup: EmployeeLookup, employee_id: str) -> EmployeeContact | None:
    """Failure-tolerant lookup: any error is logged and reported as "not found"."""

    try:
        return await lookup.get_employee(employee_id)
    except Exception:
        logger.warning("employee_lookup_failed employee_id=%s", employee_id, exc_info=True)
        return None
