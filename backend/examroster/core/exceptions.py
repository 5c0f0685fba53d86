from collections.abc import Iterator
from contextlib import contextmanager
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ResourceNotFoundError(AppError):
    """Raised when a referenced entity is absent."""
    def __init__(self, resource_type: str, resource_id: int | str, message: str | None = None):
        super().__init__(
            message or f"{resource_type} with id {resource_id} not found",
            status_code=404,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class ConflictError(AppError):
    """Raised when a constraint is violated: double booking, already staffed, bad window."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=409, details=details)


class UnavailableError(AppError):
    """Raised when an examiner has not declared availability for the day."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=422, details=details)


class InvalidArgumentError(AppError):
    """Raised when a caller passes a value the operation cannot work with."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=422, details=details)


class ForbiddenError(AppError):
    """Raised when the actor has no rights over this specific resource."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=403, details=details)


class InternalServiceError(AppError):
    """Raised for storage or unexpected failures. Never carries internal detail."""
    def __init__(self, message: str = "Internal error"):
        super().__init__(message, status_code=500)


@contextmanager
def storage_guard(db: Session, operation: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Storage failure during %s", operation)
        raise InternalServiceError(f"Storage failure during {operation}") from exc
