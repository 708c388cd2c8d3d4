"""
Word adapter.

Word documents carry no form controls the engine can address, so
{{placeholder}} tokens in paragraphs and table cells stand in for fields.
Each placeholder is reported as a text field and filled by text
replacement with python-docx.
"""

import re
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

from docx import Document

from modules.form_fill.core.exceptions import DocumentLoadError, OutputWriteError
from modules.form_fill.core.interfaces import AnalysisResult, FillResult, IDocumentAdapter, IFormTarget
from modules.form_fill.core.registry import register_adapter
from modules.form_fill.core.types import DataContext, DocumentField, FieldMapping, parse_mapping_set
from modules.form_fill.orchestrator import FillOrchestrator
from modules.form_fill.transformations.library import stringify
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


PLACEHOLDER = re.compile(r"\{\{\s*([A-Za-z0-9_.\-]+)\s*\}\}")


def _iter_paragraphs(doc) -> Iterator[Any]:
    yield from doc.paragraphs
    for table in doc.tables:
        for row in table.rows:
            for cell in row.cells:
                yield from cell.paragraphs


def _replace_in_paragraph(paragraph, values: Dict[str, str]) -> bool:
    """Replace placeholders in a paragraph, keeping the first run's formatting."""
    full_text = paragraph.text
    if "{{" not in full_text:
        return False

    new_text = PLACEHOLDER.sub(
        lambda m: values.get(m.group(1), m.group(0)),
        full_text,
    )
    if new_text == full_text:
        return False

    for run in paragraph.runs:
        run.text = ""
    if paragraph.runs:
        paragraph.runs[0].text = new_text
    else:
        paragraph.add_run(new_text)
    return True


@register_adapter("docx", extensions=[".docx", ".doc"])
class WordAdapter(IDocumentAdapter, IFormTarget):
    """Adapter for Word documents with {{placeholder}} fields."""

    document_type = "docx"
    format_label = "Word document"

    def __init__(self, file_path, file_bytes, config=None):
        super().__init__(file_path, file_bytes, config)
        self._values: Dict[str, str] = {}
        self._placeholders: List[str] = []

    def can_process(self) -> bool:
        return self.file_bytes[:4] == b"PK\x03\x04"

    def _load_document(self):
        try:
            return Document(BytesIO(self.file_bytes))
        except Exception as e:
            raise DocumentLoadError(f"Unable to parse Word document: {e}") from e

    def _find_placeholders(self, doc) -> List[str]:
        names: List[str] = []
        for paragraph in _iter_paragraphs(doc):
            for name in PLACEHOLDER.findall(paragraph.text):
                if name not in names:
                    names.append(name)
        return names

    async def analyze_document(
        self,
        options: Optional[Dict[str, Any]] = None
    ) -> AnalysisResult:
        options = options or {}

        try:
            doc = self._load_document()
            placeholders = self._find_placeholders(doc)
            fields = []
            if options.get("detectFields", True):
                fields = [DocumentField(id=name, name=name, type="text") for name in placeholders]

            metadata = self.get_base_metadata()
            metadata.update({
                "title": doc.core_properties.title or None,
                "author": doc.core_properties.author or None,
                "paragraphCount": len(doc.paragraphs),
                "fieldCount": len(placeholders),
                "format": "Word",
            })

            return AnalysisResult(
                success=True,
                fields=fields,
                pages=1,
                metadata={k: v for k, v in metadata.items() if v is not None},
            )

        except Exception as e:
            logger.error(f"Word analysis failed: {e}")
            return AnalysisResult(success=False, error=self.failure_message("analyze", e))

    async def fill_document(
        self,
        mappings: List[Union[FieldMapping, Dict[str, Any]]],
        data: Union[DataContext, Dict[str, Any]],
        output_path: Union[str, Path],
        format_options: Optional[Dict[str, Any]] = None
    ) -> FillResult:
        try:
            parsed, parse_warnings = parse_mapping_set(mappings)
            context = DataContext.coerce(data)

            doc = self._load_document()
            self._placeholders = self._find_placeholders(doc)
            self._values = {}

            warnings = parse_warnings + FillOrchestrator().fill_form(self, parsed, context)

            replaced = sum(1 for p in _iter_paragraphs(doc) if _replace_in_paragraph(p, self._values))
            logger.info(f"Replaced placeholders in {replaced} paragraphs")

            output = Path(output_path)
            try:
                output.parent.mkdir(parents=True, exist_ok=True)
                doc.save(str(output))
            except OSError as e:
                raise OutputWriteError(f"Unable to write {output}: {e}") from e

            return FillResult(success=True, output_path=str(output), warnings=warnings)

        except Exception as e:
            logger.error(f"Word fill failed: {e}")
            return FillResult(success=False, error=self.failure_message("fill", e))

        finally:
            self._values = {}
            self._placeholders = []

    def live_fields(self) -> Dict[str, DocumentField]:
        return {name: DocumentField(id=name, name=name, type="text") for name in self._placeholders}

    def write_field(self, field: DocumentField, value: Any) -> None:
        self._values[field.id] = "" if value is None else stringify(value)

    async def get_preview_data(self) -> Dict[str, Any]:
        doc = self._load_document()
        return {
            "paragraphCount": len(doc.paragraphs),
            "placeholders": self._find_placeholders(doc),
        }

    async def extract_text(self) -> str:
        doc = self._load_document()
        return "\n".join(p.text for p in _iter_paragraphs(doc))
