from fastapi import status
from fastapi.responses import JSONResponse


class ApplicationException(Exception):
    # Storage/transaction failures set this; request errors never do
    retryable = False

    def __init__(self, message: str, status_code: int = status.HTTP_400_BAD_REQUEST):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def code(self) -> str:
        return type(self).__name__

    def to_response(self):
        return JSONResponse(
            status_code=self.status_code,
            content={
                "success": False,
                "error": self.message,
                "code": self.code,
                "retryable": self.retryable
            }
        )


class InvalidRange(ApplicationException):
    def __init__(self, message: str = "startTime must be before endTime"):
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class DurationTooLarge(ApplicationException):
    def __init__(self, message: str = "Duration cannot exceed 24 hours"):
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class InvalidTimeZone(ApplicationException):
    def __init__(self, message: str = "Invalid timeZone"):
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class InvalidPlatform(ApplicationException):
    def __init__(self, message: str = "Unsupported device platform"):
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class DeviceConflict(ApplicationException):
    def __init__(self, message: str = "Device belongs to another user"):
        super().__init__(message, status.HTTP_403_FORBIDDEN)


class Unauthorized(ApplicationException):
    def __init__(self, message: str = "User not authenticated"):
        super().__init__(message, status.HTTP_401_UNAUTHORIZED)


class AppNotFound(ApplicationException):
    def __init__(self, message: str = "App not found"):
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class StorageUnavailable(ApplicationException):
    retryable = True

    def __init__(self, message: str = "Storage is temporarily unavailable"):
        super().__init__(message, status.HTTP_503_SERVICE_UNAVAILABLE)


class IngestionTimeout(ApplicationException):
    retryable = True

    def __init__(self, message: str = "Session ingestion timed out"):
        super().__init__(message, status.HTTP_503_SERVICE_UNAVAILABLE)
