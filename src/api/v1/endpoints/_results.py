from __future__ import annotations

from typing import TypeVar

from fastapi import HTTPException, status

from src.services.results import ErrorKind, Result


T = TypeVar("T")

ERROR_KIND_HEADER = "X-Error-Kind"

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.INVALID_STATE: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.SEQUENCE: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
}


def unwrap(result: Result[T]) -> T:
    """Return the value of a successful result or raise the matching HTTPException."""

    if result.ok:
        return result.value  # type: ignore[return-value]

    err = result.error
    raise HTTPException(
        status_code=STATUS_BY_KIND[err.kind],
        detail=err.message,
        headers={ERROR_KIND_HEADER: err.kind.value},
    )
