"""
Custom Exception Classes for the SkillMatch API
"""
from typing import Dict, Any
from fastapi import HTTPException
from pymongo.errors import PyMongoError


class SkillMatchBaseException(Exception):
    """Base exception for the SkillMatch API"""

    def __init__(
        self,
        message: str,
        error_code: str = None,
        details: Dict[str, Any] = None,
        cause: Exception = None
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.cause = cause
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/response"""
        result = {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }
        if self.cause:
            result["cause"] = str(self.cause)
        return result


class ValidationError(SkillMatchBaseException):
    """Raised when request data fails validation"""

    def __init__(self, message: str, field: str = None, value: Any = None, **kwargs):
        details = kwargs.pop('details', {})
        if field:
            details['field'] = field
        if value is not None:
            details['invalid_value'] = str(value)[:200]
        super().__init__(message, error_code="VALIDATION_ERROR", details=details, **kwargs)


class NotFoundError(SkillMatchBaseException):
    """Raised when a resume, job or match does not exist"""

    def __init__(self, message: str, resource: str = None, resource_id: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if resource:
            details['resource'] = resource
        if resource_id:
            details['resource_id'] = resource_id
        super().__init__(message, error_code="NOT_FOUND", details=details, **kwargs)


class ExternalServiceUnavailable(SkillMatchBaseException):
    """Raised when an oracle (extraction, embedding, generation) or the vector index fails"""

    error_code_value = "EXTERNAL_SERVICE_UNAVAILABLE"

    def __init__(self, message: str, service_name: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if service_name:
            details['service_name'] = service_name
        self.service_name = service_name
        super().__init__(message, error_code=self.error_code_value, details=details, **kwargs)


class ExtractionFailure(ExternalServiceUnavailable):
    """Raised when the skill extraction oracle cannot be reached"""

    error_code_value = "EXTRACTION_FAILURE"

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("service_name", "extraction")
        super().__init__(message, **kwargs)


class VectorIndexTimeout(ExternalServiceUnavailable):
    """Raised when the vector index does not become ready in time"""

    error_code_value = "VECTOR_INDEX_TIMEOUT"

    def __init__(self, message: str, timeout: float = None, **kwargs):
        kwargs.setdefault("service_name", "vector_index")
        details = kwargs.pop('details', {})
        if timeout is not None:
            details['timeout_seconds'] = timeout
        super().__init__(message, details=details, **kwargs)


class DatabaseError(SkillMatchBaseException):
    """Raised when record store operations fail"""

    def __init__(self, message: str, operation: str = None, collection: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if operation:
            details['operation'] = operation
        if collection:
            details['collection'] = collection
        super().__init__(message, error_code="DATABASE_ERROR", details=details, **kwargs)


class InternalError(SkillMatchBaseException):
    """Raised for anything that could not be classified"""

    def __init__(self, message: str = "Internal error", **kwargs):
        super().__init__(message, error_code="INTERNAL_ERROR", **kwargs)


STATUS_CODE_MAPPING = {
    ValidationError: 400,
    NotFoundError: 404,
    ExternalServiceUnavailable: 503,
    DatabaseError: 500,
    InternalError: 500,
}


def status_code_for(exc: SkillMatchBaseException) -> int:
    """Resolve the HTTP status for an exception, honouring subclasses"""
    for exc_type in type(exc).__mro__:
        if exc_type in STATUS_CODE_MAPPING:
            return STATUS_CODE_MAPPING[exc_type]
    return 500


def map_to_http_exception(exc: SkillMatchBaseException) -> HTTPException:
    """Map custom exceptions to HTTP exceptions"""
    detail = {
        "error": exc.to_dict(),
        "message": exc.message
    }
    return HTTPException(status_code=status_code_for(exc), detail=detail)


class ExceptionContext:
    """Context manager that logs an operation and wraps unclassified failures"""

    def __init__(self, operation: str, logger=None, **context):
        self.operation = operation
        self.logger = logger
        self.context = context

    def __enter__(self):
        if self.logger:
            self.logger.debug(f"Starting operation: {self.operation}", extra=self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            if self.logger:
                self.logger.debug(f"Operation completed: {self.operation}", extra=self.context)
            return False

        # typed errors are logged by the exception middleware
        if isinstance(exc_val, SkillMatchBaseException):
            return False

        if self.logger:
            self.logger.error(
                f"Operation failed: {self.operation} - {exc_val}",
                extra={**self.context, "exception_type": exc_type.__name__}
            )

        if isinstance(exc_val, PyMongoError) or "database" in str(exc_val).lower():
            raise DatabaseError(
                f"Database error in {self.operation}: {exc_val}",
                operation=self.operation,
                details=dict(self.context),
                cause=exc_val
            ) from exc_val

        raise InternalError(
            f"Unexpected error in {self.operation}: {exc_val}",
            details=dict(self.context),
            cause=exc_val
        ) from exc_val
