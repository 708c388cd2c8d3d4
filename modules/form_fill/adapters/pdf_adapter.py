"""
PDF adapter - AcroForm field analysis and population.

Reads the interactive form fields of a fillable PDF with pypdf and writes
values straight into the field dictionaries (/V, widget /AS), then sets
/NeedAppearances so viewers regenerate field appearances.
"""

import re
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from pypdf import PdfReader, PdfWriter
from pypdf.generic import BooleanObject, DictionaryObject, NameObject, TextStringObject

from modules.form_fill.core.exceptions import DocumentLoadError, FieldWriteError, OutputWriteError
from modules.form_fill.core.interfaces import AnalysisResult, FillResult, IDocumentAdapter, IFormTarget
from modules.form_fill.core.registry import register_adapter
from modules.form_fill.core.types import DataContext, DocumentField, FieldMapping, parse_mapping_set
from modules.form_fill.orchestrator import FillOrchestrator
from modules.form_fill.transformations.library import is_truthy, stringify
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


# Field flags (PDF 32000-1, 12.7.4)
FF_RADIO = 1 << 15
FF_PUSHBUTTON = 1 << 16
FF_EDIT = 1 << 18

OFF_STATE = "/Off"


def clean_field_name(name: str) -> str:
    """
    Human readable label for a control name.

    Example:
        >>> clean_field_name("provider_firstName")
        'Provider First Name'
    """
    label = re.sub(r"[_-]", " ", name)
    label = re.sub(r"([a-z])([A-Z])", r"\1 \2", label)
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), label)


def _resolve(value: Any) -> Any:
    return value.get_object() if hasattr(value, "get_object") else value


def _name_value(value: Any) -> str:
    """Strip the leading slash of a PDF name."""
    text = str(value) if value is not None else ""
    return text[1:] if text.startswith("/") else text


def _widgets(field_obj: DictionaryObject) -> List[DictionaryObject]:
    kids = _resolve(field_obj.get("/Kids"))
    if kids:
        return [kid.get_object() for kid in kids]
    return [field_obj]


def _appearance_states(widget: DictionaryObject) -> List[str]:
    appearance = widget.get("/AP")
    if not appearance:
        return []
    normal = appearance.get_object().get("/N")
    if normal is None:
        return []
    normal = normal.get_object()
    if not isinstance(normal, DictionaryObject):
        return []
    return [str(k) for k in normal.keys()]


def _on_states(field_obj: DictionaryObject) -> List[str]:
    states: List[str] = []
    for widget in _widgets(field_obj):
        for state in _appearance_states(widget):
            if state != OFF_STATE and state not in states:
                states.append(state)
    return states


def _opt_values(opt: Any) -> List[str]:
    """Export values of an /Opt array; entries may be [export, display] pairs."""
    values = []
    for entry in _resolve(opt) or []:
        entry = _resolve(entry)
        if isinstance(entry, list):
            values.append(str(entry[0]))
        else:
            values.append(str(entry))
    return values


def iter_terminal_fields(
    fields: Any,
    parent_name: str = "",
    inherited_type: Optional[str] = None,
    inherited_flags: int = 0
) -> Iterator[Tuple[str, DictionaryObject, Optional[str], int]]:
    """
    Walk an AcroForm /Fields tree.

    Yields (qualified_name, field_dict, field_type, field_flags) for every
    terminal field. Kids without a /T entry are widgets, not fields.
    """
    for ref in _resolve(fields) or []:
        obj = ref.get_object()
        partial = obj.get("/T")
        if partial is not None and parent_name:
            name = f"{parent_name}.{partial}"
        else:
            name = str(partial) if partial is not None else parent_name

        field_type = obj.get("/FT", inherited_type)
        flags = int(obj.get("/Ff", inherited_flags) or 0)

        kids = _resolve(obj.get("/Kids")) or []
        child_fields = [k for k in kids if "/T" in k.get_object()]
        if child_fields:
            yield from iter_terminal_fields(child_fields, name, field_type, flags)
        elif name:
            yield name, obj, str(field_type) if field_type else None, flags


@register_adapter("pdf", extensions=[".pdf"])
class PdfAdapter(IDocumentAdapter, IFormTarget):
    """
    Adapter for fillable PDF forms.

    Example:
        >>> adapter = PdfAdapter("forms/enrollment.pdf", pdf_bytes)
        >>> analysis = await adapter.analyze_document()
        >>> result = await adapter.fill_document(mappings, {"provider": {...}}, "out/filled.pdf")
    """

    document_type = "pdf"
    format_label = "PDF"

    def __init__(self, file_path, file_bytes, config=None):
        super().__init__(file_path, file_bytes, config)
        self._writer: Optional[PdfWriter] = None
        self._live: Dict[str, Tuple[DocumentField, DictionaryObject, int]] = {}

    def can_process(self) -> bool:
        return self.file_bytes[:4] == b"%PDF"

    # ==========================================================================
    # LOADING
    # ==========================================================================

    def _load_reader(self) -> PdfReader:
        try:
            return PdfReader(BytesIO(self.file_bytes))
        except Exception as e:
            raise DocumentLoadError(f"Unable to parse PDF: {e}") from e

    def _collect_fields(
        self,
        root: DictionaryObject,
        states: Dict[str, List[str]]
    ) -> Dict[str, Tuple[DocumentField, DictionaryObject, int]]:
        collected: Dict[str, Tuple[DocumentField, DictionaryObject, int]] = {}

        acro_form = root.get("/AcroForm")
        if acro_form is None:
            return collected

        for name, obj, field_type, flags in iter_terminal_fields(acro_form.get_object().get("/Fields")):
            try:
                document_field = self._convert_field(name, obj, field_type, flags, states.get(name, []))
            except Exception as e:
                logger.warning(f"Failed to convert PDF field '{name}': {e}")
                continue
            if document_field is not None:
                collected[name] = (document_field, obj, flags)

        return collected

    def _field_states(self, reader: PdfReader) -> Dict[str, List[str]]:
        """Button states pypdf reports per qualified field name."""
        try:
            fields = reader.get_fields() or {}
        except Exception as e:
            logger.debug(f"get_fields failed: {e}")
            return {}
        return {
            name: [str(s) for s in (info.get("/_States_") or []) if str(s) != OFF_STATE]
            for name, info in fields.items()
        }

    def _is_required(self, name: str) -> bool:
        lowered = name.lower()
        return any(keyword in lowered for keyword in self.config.required_field_keywords)

    def _convert_field(
        self,
        name: str,
        obj: DictionaryObject,
        field_type: Optional[str],
        flags: int,
        states: List[str]
    ) -> Optional[DocumentField]:
        base = {
            "id": name,
            "name": clean_field_name(name),
            "required": self._is_required(name),
        }
        current = _resolve(obj.get("/V"))

        if field_type == "/Tx":
            return DocumentField(type="text", value=str(current) if current else None, **base)

        if field_type == "/Btn":
            if flags & FF_PUSHBUTTON:
                return None
            if flags & FF_RADIO:
                options = self._radio_options(name, obj, states)
                return DocumentField(
                    type="radio",
                    value=_name_value(current) if current and str(current) != OFF_STATE else None,
                    options=options or None,
                    **base,
                )
            return DocumentField(
                type="checkbox",
                value=current is not None and str(current) != OFF_STATE,
                **base,
            )

        if field_type == "/Ch":
            options = self._choice_options(name, obj, states)
            return DocumentField(
                type="dropdown",
                value=_name_value(current) if current else None,
                options=options or None,
                **base,
            )

        return DocumentField(type="text", **base)

    def _radio_options(self, name: str, obj: DictionaryObject, states: List[str]) -> List[str]:
        """Radio options: pypdf button states, then widget appearances, then /Opt."""
        strategies = (
            lambda: [_name_value(s) for s in states],
            lambda: [_name_value(s) for s in _on_states(obj)],
            lambda: _opt_values(obj.get("/Opt")),
        )
        return self._first_options(name, strategies)

    def _choice_options(self, name: str, obj: DictionaryObject, states: List[str]) -> List[str]:
        """Dropdown options: /Opt, then pypdf states, then /Opt on a widget."""
        strategies = (
            lambda: _opt_values(obj.get("/Opt")),
            lambda: [_name_value(s) for s in states],
            lambda: [v for w in _widgets(obj) for v in _opt_values(w.get("/Opt"))],
        )
        return self._first_options(name, strategies)

    def _first_options(self, name: str, strategies) -> List[str]:
        for strategy in strategies:
            try:
                options = strategy()
            except Exception as e:
                logger.debug(f"Option discovery strategy failed for '{name}': {e}")
                continue
            if options:
                return options
        return []

    # ==========================================================================
    # ANALYSIS
    # ==========================================================================

    async def analyze_document(
        self,
        options: Optional[Dict[str, Any]] = None
    ) -> AnalysisResult:
        options = options or {}

        try:
            reader = self._load_reader()
            fields: List[DocumentField] = []
            collected = self._collect_fields(reader.trailer["/Root"], self._field_states(reader))

            if options.get("detectFields", True):
                fields = [entry[0] for entry in collected.values()]

            logger.info(f"Analyzed PDF {self.file_path}: {len(collected)} fields, {len(reader.pages)} pages")

            return AnalysisResult(
                success=True,
                fields=fields,
                pages=len(reader.pages),
                metadata=self._extract_metadata(reader, len(collected)),
            )

        except Exception as e:
            logger.error(f"PDF analysis failed: {e}")
            return AnalysisResult(success=False, error=self.failure_message("analyze", e))

    def _extract_metadata(self, reader: PdfReader, field_count: int) -> Dict[str, Any]:
        metadata = self.get_base_metadata()

        try:
            info = reader.metadata
            if info is not None:
                metadata.update({
                    "title": info.title,
                    "author": info.author,
                    "subject": info.subject,
                    "creator": info.creator,
                    "producer": info.producer,
                    "creationDate": info.creation_date.isoformat() if info.creation_date else None,
                    "modificationDate": (
                        info.modification_date.isoformat() if info.modification_date else None
                    ),
                })
        except Exception as e:
            logger.warning(f"Failed to extract full metadata: {e}")

        metadata.update({
            "pageCount": len(reader.pages),
            "hasForm": field_count > 0,
            "fieldCount": field_count,
            "format": "PDF",
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
        format_options: Optional[Dict[str, Any]] = None
    ) -> FillResult:
        try:
            parsed, parse_warnings = parse_mapping_set(mappings)
            context = DataContext.coerce(data)

            reader = self._load_reader()
            self._writer = PdfWriter(clone_from=reader)
            self._live = self._collect_fields(self._writer._root_object, self._field_states(reader))

            logger.info(f"Filling PDF {self.file_path}: {len(parsed)} mappings, {len(self._live)} fields")
            warnings = parse_warnings + FillOrchestrator().fill_form(self, parsed, context)

            if "/AcroForm" in self._writer._root_object:
                acro_form = self._writer._root_object["/AcroForm"]
                acro_form.update({
                    NameObject("/NeedAppearances"): BooleanObject(True)
                })

            output = self._save(output_path)
            logger.info(f"Saved filled PDF: {output}")

            return FillResult(success=True, output_path=str(output), warnings=warnings)

        except Exception as e:
            logger.error(f"PDF fill failed: {e}")
            return FillResult(success=False, error=self.failure_message("fill", e))

        finally:
            self._writer = None
            self._live = {}

    def _save(self, output_path: Union[str, Path]) -> Path:
        output = Path(output_path)
        try:
            output.parent.mkdir(parents=True, exist_ok=True)
            with open(output, "wb") as f:
                self._writer.write(f)
        except OSError as e:
            raise OutputWriteError(f"Unable to write {output}: {e}") from e
        return output

    def live_fields(self) -> Dict[str, DocumentField]:
        return {name: entry[0] for name, entry in self._live.items()}

    def write_field(self, field: DocumentField, value: Any) -> None:
        _, obj, flags = self._live[field.id]

        if field.type == "checkbox":
            self._set_checkbox(field, obj, is_truthy(value))
        elif field.type == "radio":
            if value:
                self._select_radio(field, obj, stringify(value))
        elif field.type == "dropdown":
            if value:
                self._select_choice(field, obj, flags, stringify(value))
        else:
            text = "" if value is None or value == "" else stringify(value)
            obj[NameObject("/V")] = TextStringObject(text)

    def _set_checkbox(self, field: DocumentField, obj: DictionaryObject, checked: bool) -> None:
        on_states = _on_states(obj)
        on_state = on_states[0] if on_states else "/Yes"
        state = on_state if checked else OFF_STATE

        obj[NameObject("/V")] = NameObject(state)
        for widget in _widgets(obj):
            widget_states = _appearance_states(widget)
            widget_state = state if (not widget_states or state in widget_states) else OFF_STATE
            widget[NameObject("/AS")] = NameObject(widget_state)

    def _select_radio(self, field: DocumentField, obj: DictionaryObject, value: str) -> None:
        if field.options and value not in field.options:
            raise FieldWriteError(f'"{value}" is not an option of radio group "{field.id}"')

        state = "/" + value
        obj[NameObject("/V")] = NameObject(state)
        for widget in _widgets(obj):
            widget_state = state if state in _appearance_states(widget) else OFF_STATE
            widget[NameObject("/AS")] = NameObject(widget_state)

    def _select_choice(self, field: DocumentField, obj: DictionaryObject, flags: int, value: str) -> None:
        if field.options and value not in field.options and not flags & FF_EDIT:
            raise FieldWriteError(f'"{value}" is not an option of dropdown "{field.id}"')
        obj[NameObject("/V")] = TextStringObject(value)

    # ==========================================================================
    # READ-ONLY HELPERS
    # ==========================================================================

    async def get_preview_data(self) -> Dict[str, Any]:
        reader = self._load_reader()
        pages = [
            {
                "pageNumber": index + 1,
                "width": float(page.mediabox.width),
                "height": float(page.mediabox.height),
                "rotation": page.rotation,
            }
            for index, page in enumerate(reader.pages)
        ]
        field_count = len(self._collect_fields(reader.trailer["/Root"], {}))
        return {
            "pageCount": len(pages),
            "pages": pages,
            "metadata": self._extract_metadata(reader, field_count),
        }

    async def extract_text(self) -> str:
        reader = self._load_reader()
        return "\n".join(page.extract_text() or "" for page in reader.pages)
