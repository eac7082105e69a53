"""Domain errors surfaced directly as HTTP responses."""
from fastapi import HTTPException, status

from .security import AuthorizationError

class NotFoundError(HTTPException):
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
        )

class InvalidArgumentError(HTTPException):
    def __init__(self, detail: str = "Invalid argument"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
        )

class ConflictError(HTTPException):
    def __init__(self, detail: str = "Conflict with an existing resource"):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
        )

# Ownership and role violations share the 403 raised by the auth layer
ForbiddenError = AuthorizationError
