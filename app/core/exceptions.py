"""
Error taxonomy for the order lifecycle core.

Core operations raise these internally; `app.core.result.service_operation`
turns them into a tagged `ServiceResult` before anything leaves the core.
"""
from enum import Enum


class ErrorKind(str, Enum):
    NOT_FOUND = "NotFound"
    CONFLICT = "Conflict"
    VALIDATION_FAILED = "ValidationFailed"
    INTERNAL = "Internal"


class ServiceError(Exception):
    """Base class for expected failures of a core operation."""
    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ServiceError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, resource: str, identifier=None):
        message = f"{resource} not found" if identifier is None else f"{resource} '{identifier}' not found"
        super().__init__(message)
        self.resource = resource


class ConflictError(ServiceError):
    kind = ErrorKind.CONFLICT


class ValidationFailedError(ServiceError):
    kind = ErrorKind.VALIDATION_FAILED
