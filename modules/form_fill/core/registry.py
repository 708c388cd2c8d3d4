"""
Registry pattern implementation for document adapters.

Adapters self-register with the AdapterRegistry.
Zero core code changes when adding new formats.
"""

import io
import zipfile
from pathlib import Path
from typing import Callable, Dict, List, Optional

from modules.form_fill.config import FormFillConfig
from modules.form_fill.core.exceptions import UnsupportedDocumentError
from modules.form_fill.core.interfaces import IDocumentAdapter
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


PDF_SIGNATURE = b"%PDF"
ZIP_SIGNATURE = b"PK\x03\x04"

FILE_TYPE_NAMES = {
    ".pdf": "PDF Document",
    ".docx": "Word Document (Modern)",
    ".doc": "Word Document (Legacy)",
    ".xlsx": "Excel Spreadsheet (Modern)",
    ".xls": "Excel Spreadsheet (Legacy)",
}

FILE_TYPE_CATEGORIES = {
    "pdf": "pdf",
    "docx": "word",
    "xlsx": "excel",
}


class AdapterRegistry:
    """
    Registry for document adapters.

    Adapters self-register using @register_adapter decorator, keyed by
    document type and by every file extension they accept.
    """

    _REGISTRY: Dict[str, Callable[..., IDocumentAdapter]] = {}
    _EXTENSIONS: Dict[str, str] = {}

    @classmethod
    def register(
        cls,
        document_type: str,
        factory_func: Callable[..., IDocumentAdapter],
        extensions: Optional[List[str]] = None
    ) -> None:
        """
        Register an adapter factory function.

        Args:
            document_type: Document type (pdf, docx, xlsx)
            factory_func: Function taking (file_path, file_bytes, config) and returning an adapter
            extensions: File extensions routed to this adapter
        """
        if document_type in cls._REGISTRY:
            logger.warning(f"Adapter '{document_type}' already registered, overwriting")

        cls._REGISTRY[document_type] = factory_func
        for ext in extensions or []:
            cls._EXTENSIONS[ext.lower()] = document_type

        logger.debug(f"Registered adapter: {document_type} ({', '.join(extensions or [])})")

    @classmethod
    def get(
        cls,
        document_type: str,
        file_path: str,
        file_bytes: bytes,
        config: Optional[FormFillConfig] = None
    ) -> IDocumentAdapter:
        """
        Get adapter instance from registry.

        Raises:
            UnsupportedDocumentError: If no adapter is registered for the type
        """
        factory_func = cls._REGISTRY.get(document_type)

        if not factory_func:
            available = list(cls._REGISTRY.keys())
            raise UnsupportedDocumentError(
                f"Unsupported document type: {document_type}. Available: {available}"
            )

        return factory_func(file_path, file_bytes, config)

    @classmethod
    def type_for_extension(cls, extension: str) -> Optional[str]:
        return cls._EXTENSIONS.get(extension.lower())

    @classmethod
    def list_adapters(cls) -> List[str]:
        """Get list of registered document types"""
        return list(cls._REGISTRY.keys())

    @classmethod
    def list_extensions(cls) -> List[str]:
        """Get list of routed file extensions"""
        return list(cls._EXTENSIONS.keys())

    @classmethod
    def is_registered(cls, document_type: str) -> bool:
        """Check if adapter is registered"""
        return document_type in cls._REGISTRY


def register_adapter(document_type: str, extensions: Optional[List[str]] = None):
    """
    Decorator to register a document adapter.

    Usage:
        @register_adapter("pdf", extensions=[".pdf"])
        class PdfAdapter(IDocumentAdapter):
            ...
    """
    def decorator(cls):
        def factory(file_path, file_bytes, config=None):
            return cls(file_path, file_bytes, config)
        AdapterRegistry.register(document_type, factory, extensions)
        return cls
    return decorator


# ==============================================================================
# FACTORY HELPERS
# ==============================================================================

def get_supported_extensions() -> List[str]:
    return AdapterRegistry.list_extensions()


def is_supported(file_path: str) -> bool:
    return AdapterRegistry.type_for_extension(Path(file_path).suffix) is not None


def get_file_type_category(file_path: str) -> str:
    """Return pdf, word, excel or unknown for a file path."""
    document_type = AdapterRegistry.type_for_extension(Path(file_path).suffix)
    return FILE_TYPE_CATEGORIES.get(document_type or "", "unknown")


def get_file_type_name(extension: str) -> str:
    return FILE_TYPE_NAMES.get(extension.lower(), "Unknown Document")


def detect_document_type(file_bytes: bytes) -> Optional[str]:
    """
    Route unknown bytes by signature.

    PDF is recognised by its magic bytes. DOCX and XLSX share the ZIP
    signature, so the archive members decide between them.

    Returns:
        pdf, docx, xlsx or None
    """
    if file_bytes[:4] == PDF_SIGNATURE:
        return "pdf"

    if file_bytes[:4] != ZIP_SIGNATURE:
        return None

    try:
        with zipfile.ZipFile(io.BytesIO(file_bytes)) as archive:
            names = archive.namelist()
    except zipfile.BadZipFile:
        return None

    if any(name.startswith("word/") for name in names):
        return "docx"
    if any(name.startswith("xl/") for name in names):
        return "xlsx"
    return None


def create_adapter(
    file_path: str,
    file_bytes: bytes,
    document_type: Optional[str] = None,
    config: Optional[FormFillConfig] = None
) -> IDocumentAdapter:
    """
    Create the adapter for a document.

    The declared document type wins; otherwise the file extension decides,
    and as a last resort the byte signature.

    Raises:
        UnsupportedDocumentError: If no adapter matches
    """
    resolved = (
        document_type
        or AdapterRegistry.type_for_extension(Path(file_path).suffix)
        or detect_document_type(file_bytes)
    )

    if not resolved:
        raise UnsupportedDocumentError(f"Unsupported file type: {Path(file_path).suffix or file_path}")

    return AdapterRegistry.get(resolved, file_path, file_bytes, config)
