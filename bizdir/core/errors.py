"""Exceptions raised by the ingestion pipeline."""

from typing import Any, Dict, Optional


class IngestError(RuntimeError):
    """Base class for pipeline failures; ``record`` holds the would-be business when one exists."""

    def __init__(self, message: str, record: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.record = record


class ValidationError(IngestError):
    """Raised for malformed input."""


class FetchError(IngestError):
    """Raised when a page could not be retrieved."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class FetchTimeoutError(FetchError):
    """Raised when a fetch exceeded its time budget."""


class ExtractionError(IngestError):
    """Raised when no usable business record could be extracted."""


class CategoryResolutionError(IngestError):
    """Raised when no category was supplied and none exists to default to."""
