from fastapi import status


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ValidationFailed(ServiceError):
    """Input rejected before anything was persisted."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class NotFoundError(ServiceError):
    """Referenced entity does not exist for this owner."""

    def __init__(self, resource: str) -> None:
        super().__init__(f"{resource} not found", status.HTTP_404_NOT_FOUND)


class ConflictError(ServiceError):
    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_409_CONFLICT)


class RemoteCallError(ServiceError):
    """Backend/storage failure. Safe to show; root cause goes to the log only."""

    def __init__(self, message: str = "The service is temporarily unavailable. Please try again.") -> None:
        super().__init__(message, status.HTTP_503_SERVICE_UNAVAILABLE)
