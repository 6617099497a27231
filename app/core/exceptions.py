"""Custom exception classes for the application."""
from typing import Any


class AppException(Exception):
    """Base exception for the application."""

    def __init__(self, message: str, detail: Any = None):
        self.message = message
        self.detail = detail
        super().__init__(message)


class NotFoundError(AppException):
    """Resource not found."""
    pass


class ParsingError(AppException):
    """Error parsing feed content."""
    pass


class ImportPipelineError(AppException):
    """Batch-fatal import failure — nothing useful to reconcile."""
    pass


class NoStrategyFoundError(ImportPipelineError):
    """No registered strategy recognised the content."""
    pass


class NothingExtractedError(ImportPipelineError):
    """A strategy matched the content but produced zero records."""
    pass
