from typing import Optional

from fastapi import HTTPException, status


class AppException(HTTPException):
    """Base application exception"""
    pass


class NotFoundError(AppException):
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class BadRequestError(AppException):
    def __init__(self, detail: str = "Bad request"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class NotAuthenticated(AppException):
    """Raised when a user-scoped operation runs without a current user."""

    def __init__(self, detail: str = "Usuário não autenticado"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class OperationInProgressError(AppException):
    def __init__(self, detail: str = "Operation already in progress"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class InternalServerError(AppException):
    def __init__(self, detail: str = "Internal server error"):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


class RemoteError(Exception):
    """A procedure reported ``success: False`` or the database call failed."""

    def __init__(self, message: str, budget_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.budget_id = budget_id


class PartialBatchError(Exception):
    """Some items of a batch succeeded and some failed.

    Not a hard failure: callers turn it into a mixed-outcome notification.
    """

    def __init__(self, report):
        super().__init__(
            f"{report.success_count} of {report.total_count} items succeeded, "
            f"{report.error_count} failed"
        )
        self.report = report
