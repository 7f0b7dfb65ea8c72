from typing import Optional

from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    """
    Referenced entity does not exist or is soft-deleted (404).
    """

    def __init__(self, detail: str = "Not found."):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ForbiddenError(HTTPException):
    """
    Role or ownership guard failed (403).
    """

    def __init__(self, detail: str = "Insufficient permissions"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class ValidationError(HTTPException):
    """
    Malformed input, missing required field or quantity outside the allowed range (400).
    """

    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class ConflictError(HTTPException):
    """
    Action not allowed in the entity's current state (409).
    """

    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


def http_unauthorized(detail: Optional[str] = None) -> HTTPException:
    """
    401 Unauthorized response shortcut.
    """
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail or "Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
