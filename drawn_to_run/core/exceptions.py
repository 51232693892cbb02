"""
Custom application exceptions
"""

from typing import Optional, Dict, Any, List, Union


class DrawnToRunException(Exception):
    """Base exception for the Drawn to Run API"""

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: Optional[Union[Dict[str, Any], List[Any]]] = None
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class BadRequestError(DrawnToRunException):
    """Malformed request or failed precondition"""

    def __init__(self, message: str = "Bad Request", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            code="BAD_REQUEST",
            status_code=400,
            details=details
        )


class RequestValidationFailed(DrawnToRunException):
    """Schema validation errors, one entry per offending field"""

    def __init__(self, errors: List[Dict[str, str]], message: str = "Validation failed"):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=422,
            details=errors
        )


class AuthenticationError(DrawnToRunException):
    """Missing, invalid or expired credentials"""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(
            message=message,
            code="UNAUTHORIZED",
            status_code=401
        )


class AuthorizationError(DrawnToRunException):
    """Authenticated but not permitted"""

    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(
            message=message,
            code="FORBIDDEN",
            status_code=403
        )


class NotFoundError(DrawnToRunException):
    """Resource not found errors"""

    def __init__(self, resource: str):
        super().__init__(
            message=f"{resource} not found",
            code="NOT_FOUND",
            status_code=404
        )


class ConflictError(DrawnToRunException):
    """Resource conflict errors"""

    def __init__(self, message: str = "Resource already exists"):
        super().__init__(
            message=message,
            code="CONFLICT",
            status_code=409
        )
