"""
Type definitions for the form fill module.

Interchange records (fields, mappings, transformations, templates, data
context) are pydantic models with camelCase aliases so they accept and emit
the same JSON shape the template store and the UI exchange.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel


FieldType = Literal["text", "checkbox", "radio", "dropdown", "date"]
SourceType = Literal["provider", "provider-slot", "office", "mailing", "custom", "static"]
DocumentType = Literal["pdf", "docx", "xlsx"]

FIELD_TYPES = ("text", "checkbox", "radio", "dropdown", "date")
SOURCE_TYPES = ("provider", "provider-slot", "office", "mailing", "custom", "static")
DOCUMENT_TYPES = ("pdf", "docx", "xlsx")
RULE_ACTIONS = ("setValue", "hideField", "showField")


class CamelModel(BaseModel):
    """Base model serialising to the camelCase interchange shape."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to interchange dictionary."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# ==============================================================================
# DOCUMENT FIELDS
# ==============================================================================

class DocumentField(CamelModel):
    """
    Normalized field model produced by document analysis.

    Attributes:
        id: Format-native identifier (PDF control name or "Sheet!Column")
        name: Human readable label
        type: Normalized field type
        required: Heuristically inferred required flag
        value: Current value read from the source document
        options: Allowed values for radio/dropdown fields
    """
    id: str
    name: str
    type: FieldType = "text"
    required: bool = False
    value: Any = None
    options: Optional[List[str]] = None


# ==============================================================================
# TRANSFORMATIONS
# ==============================================================================

class FormatConfig(CamelModel):
    date_format: Optional[str] = None
    phone_format: Optional[Literal["xxx-xxx-xxxx", "(xxx) xxx-xxxx", "xxxxxxxxxx"]] = None
    ssn_format: Optional[Literal["xxx-xx-xxxx", "xxxxxxxxx"]] = None
    case_transform: Optional[Literal["upper", "lower", "title", "sentence"]] = None
    prefix: Optional[str] = None
    suffix: Optional[str] = None


class ConcatenateConfig(CamelModel):
    sources: List[str] = Field(default_factory=list)
    separator: str = " "
    skip_empty: bool = True


class Condition(CamelModel):
    field: str
    operator: Literal[
        "equals", "notEquals", "contains", "startsWith", "endsWith", "greaterThan", "lessThan"
    ]
    value: Any = None


class ConditionalConfig(CamelModel):
    condition: Condition
    true_value: Any = None
    false_value: Any = None


class LookupConfig(CamelModel):
    lookup_table: Dict[str, Any] = Field(default_factory=dict)
    default_value: Any = None
    common_table: Optional[str] = None


class BooleanConfig(CamelModel):
    true_values: Optional[List[str]] = None
    false_values: Optional[List[str]] = None
    default_value: Optional[bool] = None


class NameFormatConfig(CamelModel):
    format: Literal[
        "full", "firstLast", "lastFirst", "lastFirstMI", "firstMI",
        "first", "last", "middle", "initial", "custom"
    ]
    custom_template: Optional[str] = None
    separator: Optional[str] = None


class ExtractConfig(CamelModel):
    part: Literal["firstName", "middleName", "lastName", "middleInitial", "suffix"]
    from_path: Optional[str] = Field(None, alias="from")
    fallback: Optional[str] = None


class FormatTransformation(CamelModel):
    type: Literal["format"] = "format"
    config: FormatConfig = Field(default_factory=FormatConfig)


class ConcatenateTransformation(CamelModel):
    type: Literal["concatenate"] = "concatenate"
    config: ConcatenateConfig = Field(default_factory=ConcatenateConfig)


class ConditionalTransformation(CamelModel):
    type: Literal["conditional"] = "conditional"
    config: ConditionalConfig


class LookupTransformation(CamelModel):
    type: Literal["lookup"] = "lookup"
    config: LookupConfig = Field(default_factory=LookupConfig)


class BooleanTransformation(CamelModel):
    type: Literal["boolean"] = "boolean"
    config: BooleanConfig = Field(default_factory=BooleanConfig)


class NameFormatTransformation(CamelModel):
    type: Literal["nameFormat"] = "nameFormat"
    config: NameFormatConfig


class ExtractTransformation(CamelModel):
    type: Literal["extract"] = "extract"
    config: ExtractConfig


TransformationConfig = Annotated[
    Union[
        FormatTransformation,
        ConcatenateTransformation,
        ConditionalTransformation,
        LookupTransformation,
        BooleanTransformation,
        NameFormatTransformation,
        ExtractTransformation,
    ],
    Field(discriminator="type"),
]


# ==============================================================================
# MAPPINGS AND DATA CONTEXT
# ==============================================================================

class FieldMapping(CamelModel):
    """
    Binds one document field to a value-producing rule.

    sourceType decides which of sourcePath / staticValue /
    (providerSlot, slotField) is authoritative.
    """
    document_field_id: str
    document_field_name: str = ""
    document_field_type: FieldType = "text"
    source_type: SourceType = "provider"
    source_path: Optional[str] = None
    provider_slot: Optional[int] = None
    slot_field: Optional[str] = None
    static_value: Any = None
    default_value: Any = None
    transformation: Optional[TransformationConfig] = None
    is_required: bool = False

    @property
    def display_name(self) -> str:
        return self.document_field_name or self.document_field_id


class DataContext(CamelModel):
    """Bundle of source records supplied to a fill operation."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    provider: Optional[Dict[str, Any]] = None
    providers: Optional[List[Dict[str, Any]]] = None
    office: Optional[Dict[str, Any]] = None
    mailing_address: Optional[Dict[str, Any]] = None
    custom: Optional[Dict[str, Any]] = None

    def as_lookup(self) -> Dict[str, Any]:
        """Plain dictionary view used for dot-path lookups."""
        return self.model_dump(by_alias=True)

    @classmethod
    def coerce(cls, data: Union["DataContext", Dict[str, Any], None]) -> "DataContext":
        if isinstance(data, DataContext):
            return data
        return cls.model_validate(data or {})


def parse_mappings(mappings: Optional[List[Union[FieldMapping, Dict[str, Any]]]]) -> List[FieldMapping]:
    """Parse a mapping set given as models or interchange dictionaries."""
    return [
        m if isinstance(m, FieldMapping) else FieldMapping.model_validate(m)
        for m in (mappings or [])
    ]


def _mapping_label(raw: Any, index: int) -> str:
    if isinstance(raw, dict):
        return str(raw.get("documentFieldName") or raw.get("documentFieldId") or f"mapping {index}")
    return f"mapping {index}"


def _validation_summary(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in detail['loc'])}: {detail['msg']}" if detail["loc"] else detail["msg"]
        for detail in error.errors()
    )


def parse_mapping_set(
    mappings: Optional[List[Union[FieldMapping, Dict[str, Any]]]]
) -> Tuple[List[FieldMapping], List[str]]:
    """
    Parse a mapping set for a fill pass, one mapping at a time.

    A mapping that does not parse (unknown transformation type, bad config
    value) is dropped with a warning; the others are still filled.

    Raises:
        ValueError: If the mapping set is not a list
    """
    if mappings is None:
        return [], []
    if not isinstance(mappings, (list, tuple)):
        raise ValueError(f"Mappings must be a list, got {type(mappings).__name__}")

    parsed: List[FieldMapping] = []
    warnings: List[str] = []

    for index, raw in enumerate(mappings, start=1):
        if isinstance(raw, FieldMapping):
            parsed.append(raw)
            continue
        try:
            parsed.append(FieldMapping.model_validate(raw))
        except ValidationError as e:
            warnings.append(f'Failed to fill field "{_mapping_label(raw, index)}": {_validation_summary(e)}')

    return parsed, warnings


# ==============================================================================
# SPREADSHEET CONFIGURATION
# ==============================================================================

class ColumnMapping(CamelModel):
    column_letter: str
    header_text: str = ""
    provider_field_path: Optional[str] = None


class SpreadsheetConfig(CamelModel):
    """
    Header-row / data-row configuration for roster spreadsheets.

    Produced by an external configuration step; the engine only consumes
    data_start_row and the column-letter to field-path list.
    """
    header_row: Optional[int] = None
    data_start_row: Optional[int] = None
    column_mappings: Optional[List[ColumnMapping]] = None

    @classmethod
    def coerce(cls, options: Union["SpreadsheetConfig", Dict[str, Any], None]) -> "SpreadsheetConfig":
        if isinstance(options, SpreadsheetConfig):
            return options
        return cls.model_validate(options or {})


# ==============================================================================
# TEMPLATES AND BATCH JOBS
# ==============================================================================

class ConditionalRule(CamelModel):
    id: Optional[str] = None
    condition: str = ""
    action: str = ""
    target_field_id: Optional[str] = None
    value: Any = None


class Template(CamelModel):
    """Persisted, versioned set of field mappings."""
    id: Optional[str] = None
    name: str
    description: str = ""
    document_type: DocumentType
    document_hash: Optional[str] = None
    mappings: List[FieldMapping] = Field(default_factory=list)
    conditional_rules: Optional[List[ConditionalRule]] = None
    version: int = 1
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class BatchJob(CamelModel):
    file_path: str
    # Parsed per mapping at fill time
    mappings: List[Union[FieldMapping, Dict[str, Any]]] = Field(default_factory=list)
    data: DataContext = Field(default_factory=DataContext)
    output_path: str
    document_type: Optional[DocumentType] = None
    format_options: Optional[SpreadsheetConfig] = None
