"""Custom exception classes for the photo app."""

from typing import List, Optional

from fastapi import HTTPException, status


class PhotoAppError(Exception):
    """Base exception for PhotoApp."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)


class ValidationError(PhotoAppError):
    """Raised when input validation fails."""
    status_code = status.HTTP_400_BAD_REQUEST


class PermissionValidationError(ValidationError):
    """Raised when a permission map is not allowed for a role."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or []


class AuthenticationError(PhotoAppError):
    """Raised when authentication fails."""
    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationError(PhotoAppError):
    """Raised when user lacks permission."""
    status_code = status.HTTP_403_FORBIDDEN


class ResourceNotFoundError(PhotoAppError):
    """Raised when a requested resource is not found."""
    status_code = status.HTTP_404_NOT_FOUND


class ResourceConflictError(PhotoAppError):
    """Raised when a resource already exists."""
    status_code = status.HTTP_409_CONFLICT


class StorageError(PhotoAppError):
    """Raised when MinIO/storage operation fails."""
    status_code = status.HTTP_502_BAD_GATEWAY


# HTTP exception shortcuts
def forbidden(detail: str = "Insufficient permissions") -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def unauthorized(detail: str = "Not authenticated") -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)
