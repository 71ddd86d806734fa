# eduplatform/core/exceptions.py
"""Custom exceptions for the EduPlatform application."""
from fastapi import HTTPException
from typing import Any, Dict, Optional


class EduPlatformException(HTTPException):
    """Base exception for EduPlatform application."""
    def __init__(
        self,
        status_code: int,
        detail: str,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)


class BadRequestError(EduPlatformException):
    def __init__(self, message: str = "Bad request"):
        super().__init__(status_code=400, detail=message)


class AuthenticationError(EduPlatformException):
    def __init__(self, message: str = "Not authenticated"):
        super().__init__(
            status_code=401,
            detail=message,
            headers={"WWW-Authenticate": "Bearer"}
        )


class PermissionDeniedError(EduPlatformException):
    def __init__(self, message: str = "Access denied"):
        super().__init__(status_code=403, detail=message)


class NotFoundError(EduPlatformException):
    """Raised when a resource does not exist (or is not visible to the caller)."""
    def __init__(self, resource: str, message: Optional[str] = None):
        super().__init__(status_code=404, detail=message or f"{resource} not found")


class ConflictError(EduPlatformException):
    def __init__(self, message: str):
        super().__init__(status_code=409, detail=message)


class RateLimitExceeded(EduPlatformException):
    def __init__(self, retry_after: int):
        super().__init__(
            status_code=429,
            detail="Rate limit exceeded",
            headers={"Retry-After": str(retry_after)}
        )
