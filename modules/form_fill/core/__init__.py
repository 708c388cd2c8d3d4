"""
Core components for form fill module.
"""

from modules.form_fill.core.interfaces import (
    IDocumentAdapter,
    IFormTarget,
    IRosterTarget,
    AnalysisResult,
    FillResult,
    BatchJobResult,
    BatchResult,
)

from modules.form_fill.core.registry import (
    AdapterRegistry,
    register_adapter,
    create_adapter,
    detect_document_type,
    get_supported_extensions,
    get_file_type_category,
    get_file_type_name,
    is_supported,
)

from modules.form_fill.core.exceptions import (
    FormFillException,
    DocumentLoadError,
    FieldWriteError,
    TransformationError,
    OutputWriteError,
    UnsupportedDocumentError,
    TemplateNotFoundException,
    TemplateValidationException,
)

__all__ = [
    # Interfaces
    "IDocumentAdapter",
    "IFormTarget",
    "IRosterTarget",
    # Results
    "AnalysisResult",
    "FillResult",
    "BatchJobResult",
    "BatchResult",
    # Registry
    "AdapterRegistry",
    "register_adapter",
    "create_adapter",
    "detect_document_type",
    "get_supported_extensions",
    "get_file_type_category",
    "get_file_type_name",
    "is_supported",
    # Exceptions
    "FormFillException",
    "DocumentLoadError",
    "FieldWriteError",
    "TransformationError",
    "OutputWriteError",
    "UnsupportedDocumentError",
    "TemplateNotFoundException",
    "TemplateValidationException",
]
