from src.services.employee_lookup import EmployeeContact


class FakeEmployeeLookup:
    """In-memory employee directory keyed by employee id."""

    def __init__(self, employees: dict[str, EmployeeContact] | None = None, *, fail: bool = False) -> None:
        self.employees = employees or {}
        self.fail = fail
        self.calls: list[str] = []

    async def get_employee(self, employee_id: str) -> EmployeeContact | None:
        self.calls.append(employee_id)
        if self.fail:
            raise RuntimeError("employee service unavailable")
        return self.employees.get(employee_id)


class RecordingDispatcher:
    def __init__(self, *, fail: bool = False) -> None:
        self.sent: list[dict] = []
        self.fail = fail

    def send_status_notification(self, to_email: str, display_name: str, status: str, message: str) -> None:
        if self.fail:
            raise RuntimeError("broker down")
        self.sent.append({"to": to_email, "name": display_name, "status": status, "message": message})


def make_contact(employee_id: str, *, first: str = "Jane", last: str = "Doe", email: str | None = None) -> EmployeeContact:
    return EmployeeContact(
        employee_id=employee_id,
        email=email if email is not None else f"{employee_id}@example.com",
        display_name=first,
        full_name=f"{first} {last}",
    )

