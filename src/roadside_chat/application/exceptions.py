from __future__ import annotations


class AppError(Exception):
    """Base application error."""

    default_detail = "Application error"

    def __init__(self, detail: str = "") -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class UnauthorizedError(AppError):
    default_detail = "Unauthorized"


class InvalidPayloadError(AppError):
    default_detail = "Invalid payload"


class NotFoundError(AppError):
    default_detail = "Not found"


class ForbiddenError(AppError):
    default_detail = "Forbidden"


class ConflictError(AppError):
    default_detail = "Conflict"


class AlreadyProcessedError(ConflictError):
    default_detail = "Already processed"


class ServerError(AppError):
    default_detail = "Server error"
