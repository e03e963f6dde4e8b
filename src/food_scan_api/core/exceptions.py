"""Custom exception classes for the API."""

from typing import Any


class APIError(Exception):
    """Base exception for API errors."""

    def __init__(self, message: str, status_code: int = 400, details: Any = None):
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class InvalidScanRequestError(APIError):
    """Request is missing required input or is malformed."""

    def __init__(self, message: str, details: Any = None):
        super().__init__(message=message, status_code=400, details=details)


class ClassificationUnavailableError(APIError):
    """Both the primary and the fallback vision paths failed.

    The message is fixed so provider error text never reaches the client.
    """

    MESSAGE = (
        "Unable to analyze the image at the moment. "
        "Try a clearer photo or enter items manually."
    )

    def __init__(self):
        super().__init__(message=self.MESSAGE, status_code=502)


class ScanProcessingError(APIError):
    """Unexpected failure anywhere in the scan pipeline."""

    def __init__(self, message: str = "Unexpected error while analyzing the image"):
        super().__init__(message=message, status_code=500)
