from fastapi import HTTPException
from typing import Any, Dict, List, Optional

class SoundscoreException(HTTPException):
    """Base exception for SoundScore API"""
    code = "ERROR"

    def __init__(
        self,
        status_code: int,
        detail: str,
        headers: Optional[Dict[str, Any]] = None,
        code: Optional[str] = None,
        errors: Optional[List[Dict[str, str]]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        if code:
            self.code = code
        self.errors = errors

class ValidationException(SoundscoreException):
    """Request data failed a business rule"""
    code = "VALIDATION_ERROR"

    def __init__(self, message: str, errors: Optional[List[Dict[str, str]]] = None, code: Optional[str] = None):
        super().__init__(status_code=400, detail=message, errors=errors, code=code)

class NotFoundException(SoundscoreException):
    """Resource not found"""
    code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id: Any):
        super().__init__(
            status_code=404,
            detail=f"{resource} with id {resource_id} not found"
        )

class UnauthorizedError(SoundscoreException):
    """User is not authenticated"""
    code = "UNAUTHORIZED"

    def __init__(self, message: str = "Authentication required"):
        super().__init__(status_code=401, detail=message)

class ForbiddenError(SoundscoreException):
    """User is authenticated but not allowed to do this"""
    code = "FORBIDDEN"

    def __init__(self, message: str = "Access denied", code: Optional[str] = None):
        super().__init__(status_code=403, detail=message, code=code)

class ConflictError(SoundscoreException):
    """Request conflicts with the current state of a resource"""
    code = "CONFLICT"

    def __init__(self, message: str = "Resource conflict", code: Optional[str] = None):
        super().__init__(status_code=409, detail=message, code=code)

class DuplicateError(ConflictError):
    """Resource already exists"""
    def __init__(self, field: str, value: Any):
        super().__init__(message=f"{field} '{value}' already exists", code="DUPLICATE")

class RateLimitError(SoundscoreException):
    """Too many requests"""
    code = "RATE_LIMIT_EXCEEDED"

    def __init__(self, message: str = "Too many requests, please try again later", headers: Optional[Dict[str, Any]] = None):
        super().__init__(status_code=429, detail=message, headers=headers)

class ExternalServiceError(SoundscoreException):
    """A third-party API (Google, Deezer) failed or returned garbage"""
    code = "EXTERNAL_SERVICE_ERROR"

    def __init__(self, service: str, message: str):
        super().__init__(status_code=502, detail=f"{service}: {message}")
