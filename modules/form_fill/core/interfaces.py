"""
Core interfaces for the form fill module.

Every document format implements IDocumentAdapter. Adapters that expose
named controls (PDF AcroForm, Word placeholders) also implement IFormTarget;
adapters filled one record per row (spreadsheets) implement IRosterTarget.
The FillOrchestrator drives a fill pass through those two seams.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from modules.form_fill.config import FormFillConfig, get_form_fill_config
from modules.form_fill.core.types import (
    DataContext,
    DocumentField,
    FieldMapping,
    SpreadsheetConfig,
)
from shared.utils.helpers import generate_file_hash


# ==============================================================================
# RESULT TYPES
# ==============================================================================

@dataclass
class AnalysisResult:
    """Result of analyzing a document for fillable fields."""
    success: bool
    fields: List[DocumentField] = field(default_factory=list)
    pages: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "success": self.success,
            "fields": [f.to_dict() for f in self.fields],
            "pages": self.pages,
            "metadata": self.metadata,
            "error": self.error,
        }


@dataclass
class FillResult:
    """
    Result of a fill operation.

    Per-field problems are reported in warnings and never flip success;
    success is False only when the document as a whole could not be
    loaded, filled or written.
    """
    success: bool
    output_path: Optional[str] = None
    warnings: List[str] = field(default_factory=list)
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "success": self.success,
            "outputPath": self.output_path,
            "warnings": self.warnings,
            "error": self.error,
            "metadata": self.metadata,
        }


@dataclass
class BatchJobResult:
    """Outcome of one job inside a batch."""
    input_path: str
    output_path: str
    success: bool
    warnings: List[str] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "inputPath": self.input_path,
            "outputPath": self.output_path,
            "success": self.success,
            "warnings": self.warnings,
            "error": self.error,
        }


@dataclass
class BatchResult:
    """Aggregate outcome of a batch run."""
    results: List[BatchJobResult] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def total_count(self) -> int:
        return len(self.results)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "success": True,
            "results": [r.to_dict() for r in self.results],
            "successCount": self.success_count,
            "totalCount": self.total_count,
        }


# ==============================================================================
# ADAPTER INTERFACE
# ==============================================================================

class IDocumentAdapter(ABC):
    """
    Abstract interface for document format adapters.

    Each adapter handles one document format (PDF, DOCX, XLSX).
    Adapters self-register with the AdapterRegistry.

    Example:
        @register_adapter("pdf", extensions=[".pdf"])
        class PdfAdapter(IDocumentAdapter, IFormTarget):
            async def analyze_document(self, options=None):
                # Implementation
    """

    document_type: str = ""
    format_label: str = ""

    def __init__(
        self,
        file_path: str,
        file_bytes: bytes,
        config: Optional[FormFillConfig] = None
    ):
        """
        Initialize adapter over a document's raw bytes.

        Args:
            file_path: Original path (used for metadata and naming only)
            file_bytes: Document content
            config: Module configuration (defaults to the global config)
        """
        self.file_path = str(file_path)
        self.file_bytes = file_bytes
        self.config = config or get_form_fill_config()

    @abstractmethod
    def can_process(self) -> bool:
        """
        Cheap signature check on the raw bytes.

        Returns:
            True if the bytes look like this adapter's format
        """
        pass

    @abstractmethod
    async def analyze_document(
        self,
        options: Optional[Dict[str, Any]] = None
    ) -> AnalysisResult:
        """
        Build the normalized field list.

        Args:
            options: Optional analysis options
                - detectFields (bool): Enumerate fields (default: True)

        Returns:
            AnalysisResult with fields, page count and metadata
        """
        pass

    @abstractmethod
    async def fill_document(
        self,
        mappings: List[Union[FieldMapping, Dict[str, Any]]],
        data: Union[DataContext, Dict[str, Any]],
        output_path: Union[str, Path],
        format_options: Optional[Union[SpreadsheetConfig, Dict[str, Any]]] = None
    ) -> FillResult:
        """
        Fill the document and write it to output_path.

        Args:
            mappings: Field mappings to apply
            data: Data context (provider, providers, office, mailingAddress, custom)
            output_path: Where to write the filled document
            format_options: Format-specific options (spreadsheet row configuration)

        Returns:
            FillResult
        """
        pass

    @abstractmethod
    async def get_preview_data(self) -> Dict[str, Any]:
        """Read-only rendering helper data (pages, sheets, grid)."""
        pass

    @abstractmethod
    async def extract_text(self) -> str:
        """Read-only plain text export of the document."""
        pass

    def get_document_type(self) -> str:
        return self.document_type

    def get_base_metadata(self) -> Dict[str, Any]:
        """Metadata shared by every format."""
        return {
            "filePath": self.file_path,
            "fileSize": len(self.file_bytes),
            "documentHash": generate_file_hash(self.file_bytes),
            "processedAt": datetime.now().isoformat(),
        }

    def failure_message(self, action: str, error: Exception) -> str:
        return f"Failed to {action} {self.format_label}: {error}"


class IFormTarget(ABC):
    """Fill seam for documents with named controls."""

    @abstractmethod
    def live_fields(self) -> Dict[str, DocumentField]:
        """
        Controls present in the currently loaded document.

        Returns:
            Dictionary of {field_id: DocumentField}
        """
        pass

    @abstractmethod
    def write_field(self, field: DocumentField, value: Any) -> None:
        """
        Write a resolved value into a control according to its native type.

        Raises:
            FieldWriteError: If the control cannot take the value
        """
        pass


class IRosterTarget(ABC):
    """Fill seam for documents filled one record per row."""

    @abstractmethod
    def write_cell(self, row: int, column_letter: str, value: Any) -> Optional[str]:
        """
        Write a value into one cell of the roster sheet.

        Returns:
            The cell's formula when the cell carries one and was left untouched,
            otherwise None
        """
        pass

    @abstractmethod
    def mark_for_recalculation(self) -> None:
        """Flag the document so formulas are recalculated on next open."""
        pass

    @abstractmethod
    def sheet_name(self) -> str:
        """Title of the sheet rows are written to."""
        pass
