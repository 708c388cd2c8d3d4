"""
Spreadsheet adapter - roster workbooks.

A spreadsheet has no native form fields, so every column of the first
sheet becomes one text field ("Sheet!Column"). Filling writes one provider
record per row with openpyxl, leaves formula cells untouched and flags the
workbook for full recalculation on next open.
"""

from io import BytesIO
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from openpyxl import Workbook, load_workbook
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from modules.form_fill.core.exceptions import DocumentLoadError, FieldWriteError, OutputWriteError
from modules.form_fill.core.interfaces import AnalysisResult, FillResult, IDocumentAdapter, IRosterTarget
from modules.form_fill.core.registry import register_adapter
from modules.form_fill.core.types import (
    DataContext,
    DocumentField,
    FieldMapping,
    SpreadsheetConfig,
    parse_mapping_set,
)
from modules.form_fill.orchestrator import FillOrchestrator
from modules.form_fill.transformations.library import stringify
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


ZIP_SIGNATURE = b"PK\x03\x04"


def cell_formula(cell) -> Optional[str]:
    """Formula text of a cell, or None for plain values."""
    value = cell.value
    if cell.data_type == "f":
        return getattr(value, "text", None) or str(value)
    if isinstance(value, str) and value.startswith("="):
        return value
    return None


def cell_text(cell) -> str:
    if cell.value is None:
        return ""
    formula = cell_formula(cell)
    if formula is not None:
        return formula
    return stringify(cell.value).strip()


def used_column_count(worksheet: Worksheet) -> int:
    """Index of the right-most column holding a value (0 for an empty sheet)."""
    return max(
        (cell.column for row in worksheet.iter_rows() for cell in row if cell.value not in (None, "")),
        default=0,
    )


@register_adapter("xlsx", extensions=[".xlsx", ".xls"])
class SpreadsheetAdapter(IDocumentAdapter, IRosterTarget):
    """
    Adapter for roster spreadsheets.

    Example:
        >>> adapter = SpreadsheetAdapter("rosters/panel.xlsx", xlsx_bytes)
        >>> result = await adapter.fill_document(
        ...     mappings, {"providers": [...]}, "out/panel.xlsx", {"dataStartRow": 3}
        ... )
        >>> result.metadata["rowsWritten"]
    """

    document_type = "xlsx"
    format_label = "Excel"

    def __init__(self, file_path, file_bytes, config=None):
        super().__init__(file_path, file_bytes, config)
        self._workbook: Optional[Workbook] = None
        self._sheet: Optional[Worksheet] = None

    def can_process(self) -> bool:
        return self.file_bytes[:4] == ZIP_SIGNATURE

    def _load_workbook(self) -> Workbook:
        try:
            workbook = load_workbook(BytesIO(self.file_bytes))
        except Exception as e:
            raise DocumentLoadError(f"Unable to parse workbook: {e}") from e

        if not workbook.worksheets:
            raise DocumentLoadError("No worksheets found in Excel document")
        return workbook

    # ==========================================================================
    # ANALYSIS
    # ==========================================================================

    async def analyze_document(
        self,
        options: Optional[Dict[str, Any]] = None
    ) -> AnalysisResult:
        options = options or {}

        try:
            workbook = self._load_workbook()
            fields: List[DocumentField] = []

            if options.get("detectFields", True):
                fields = self._column_fields(workbook.worksheets[0])

            logger.info(f"Analyzed workbook {self.file_path}: {len(fields)} column fields")

            return AnalysisResult(
                success=True,
                fields=fields,
                pages=len(workbook.worksheets),
                metadata=self._extract_metadata(workbook),
            )

        except Exception as e:
            logger.error(f"Excel analysis failed: {e}")
            return AnalysisResult(success=False, error=self.failure_message("analyze", e))

    def _column_fields(self, worksheet: Worksheet) -> List[DocumentField]:
        column_count = min(
            used_column_count(worksheet) or self.config.spreadsheet_default_columns,
            self.config.spreadsheet_max_columns,
        )

        fields = []
        for index in range(1, column_count + 1):
            letter = get_column_letter(index)
            fields.append(DocumentField(
                id=f"{worksheet.title}!{letter}",
                name=f"Column {letter}",
                type="text",
                required=False,
            ))
        return fields

    def _extract_metadata(self, workbook: Workbook) -> Dict[str, Any]:
        metadata = self.get_base_metadata()
        properties = workbook.properties

        metadata.update({
            "title": properties.title,
            "subject": properties.subject,
            "creator": properties.creator,
            "lastModifiedBy": properties.lastModifiedBy,
            "created": properties.created.isoformat() if properties.created else None,
            "modified": properties.modified.isoformat() if properties.modified else None,
            "sheetCount": len(workbook.worksheets),
            "sheetNames": workbook.sheetnames,
            "format": "Excel",
        })
        return {k: v for k, v in metadata.items() if v is not None}

    # ==========================================================================
    # FILLING
    # ==========================================================================

    async def fill_document(
        self,
        mappings: List[Union[FieldMapping, Dict[str, Any]]],
        data: Union[DataContext, Dict[str, Any]],
        output_path: Union[str, Path],
        format_options: Optional[Union[SpreadsheetConfig, Dict[str, Any]]] = None
    ) -> FillResult:
        try:
            parsed, parse_warnings = parse_mapping_set(mappings)
            context = DataContext.coerce(data)
            sheet_config = SpreadsheetConfig.coerce(format_options)

            self._workbook = self._load_workbook()
            self._sheet = self._workbook.worksheets[0]

            outcome = FillOrchestrator().fill_roster(
                self,
                parsed,
                context,
                sheet_config,
                default_start_row=self.config.data_start_row,
            )

            output = self._save(output_path)
            logger.info(f"Saved filled workbook: {output}")

            return FillResult(
                success=True,
                output_path=str(output),
                warnings=parse_warnings + outcome.warnings,
                metadata={
                    "rowsWritten": outcome.rows_written,
                    "preservedFormulas": outcome.preserved_formulas,
                },
            )

        except Exception as e:
            logger.error(f"Excel fill failed: {e}")
            return FillResult(success=False, error=self.failure_message("fill", e))

        finally:
            self._workbook = None
            self._sheet = None

    def _save(self, output_path: Union[str, Path]) -> Path:
        output = Path(output_path)
        try:
            output.parent.mkdir(parents=True, exist_ok=True)
            self._workbook.save(output)
        except OSError as e:
            raise OutputWriteError(f"Unable to write {output}: {e}") from e
        return output

    def write_cell(self, row: int, column_letter: str, value: Any) -> Optional[str]:
        cell = self._sheet[f"{column_letter}{row}"]

        formula = cell_formula(cell)
        if formula is not None:
            logger.debug(f"Preserved formula in {column_letter}{row}: {formula}")
            return formula

        try:
            cell.value = value
        except (ValueError, TypeError) as e:
            raise FieldWriteError(f"Cannot write {type(value).__name__} to {column_letter}{row}: {e}") from e
        return None

    def mark_for_recalculation(self) -> None:
        self._workbook.calculation.fullCalcOnLoad = True

    def sheet_name(self) -> str:
        return self._sheet.title

    # ==========================================================================
    # READ-ONLY HELPERS
    # ==========================================================================

    async def get_preview_data(self) -> Dict[str, Any]:
        workbook = self._load_workbook()

        sheets = [
            {
                "name": sheet.title,
                "index": index,
                "rowCount": sheet.max_row,
                "columnCount": sheet.max_column,
            }
            for index, sheet in enumerate(workbook.worksheets)
        ]

        main_sheet = workbook.worksheets[0]
        row_count = min(main_sheet.max_row, self.config.preview_max_rows)
        column_count = min(
            max(used_column_count(main_sheet), self.config.spreadsheet_default_columns),
            self.config.preview_max_columns,
        )

        preview_rows = []
        for row in main_sheet.iter_rows(min_row=1, max_row=row_count, max_col=column_count):
            preview_rows.append({
                "number": row[0].row,
                "cells": [
                    {
                        "address": cell.coordinate,
                        "value": stringify(cell.value) if cell.value is not None else None,
                        "text": cell_text(cell),
                    }
                    for cell in row
                ],
            })

        return {
            "sheets": sheets,
            "previewData": preview_rows,
            "metadata": self._extract_metadata(workbook),
        }

    async def extract_text(self) -> str:
        workbook = self._load_workbook()
        lines: List[str] = []

        for sheet in workbook.worksheets:
            lines.append(f"Sheet: {sheet.title}")
            for row in sheet.iter_rows():
                texts = [text for text in (cell_text(cell) for cell in row) if text]
                if texts:
                    lines.append("\t".join(texts))
            lines.append("")

        return "\n".join(lines)
