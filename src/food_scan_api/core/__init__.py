"""Core configuration and errors."""

from .config import Settings, get_settings
from .exceptions import (
    APIError,
    ClassificationUnavailableError,
    InvalidScanRequestError,
    ScanProcessingError,
)

__all__ = [
    "APIError",
    "ClassificationUnavailableError",
    "InvalidScanRequestError",
    "ScanProcessingError",
    "Settings",
    "get_settings",
]
