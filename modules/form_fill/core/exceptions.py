"""
Custom exceptions for the form fill module.
"""

from typing import List, Optional


class FormFillException(Exception):
    """Base exception for form fill module."""
    pass


class DocumentLoadError(FormFillException):
    """Exception raised when source bytes cannot be parsed as a document."""
    pass


class FieldWriteError(FormFillException):
    """Exception raised when a single field or cell cannot be set."""
    pass


class TransformationError(FormFillException):
    """Exception raised inside a transformation function."""
    pass


class OutputWriteError(FormFillException):
    """Exception raised when the output artifact cannot be written."""
    pass


class UnsupportedDocumentError(FormFillException):
    """Exception raised when no adapter handles a file type."""
    pass


class TemplateNotFoundException(FormFillException):
    """Exception raised when template not found."""
    pass


class TemplateValidationException(FormFillException):
    """Exception raised when template validation fails."""

    def __init__(self, errors: List[str], message: Optional[str] = None):
        self.errors = list(errors)
        super().__init__(message or "Template validation failed: " + "; ".join(self.errors))
