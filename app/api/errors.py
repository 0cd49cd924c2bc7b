from fastapi import HTTPException

from app.core.exceptions import ErrorKind
from app.core.result import ServiceResult

STATUS_CODES = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.VALIDATION_FAILED: 400,
    ErrorKind.INTERNAL: 500,
}


def unwrap(result: ServiceResult):
    """Return the data of a successful result, or raise the HTTPException matching its error kind."""
    if result.ok:
        return result.data
    raise HTTPException(status_code=STATUS_CODES.get(result.error_kind, 500), detail=result.message)
