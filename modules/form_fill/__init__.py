"""
Form Fill Module

Field-mapping and template-fill engine.
Fills PDF forms and roster spreadsheets from provider, office and
mailing-address records through reusable field mappings.
"""

__version__ = "1.0.0"

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

from modules.form_fill.core.types import (
    DocumentField,
    FieldMapping,
    TransformationConfig,
    DataContext,
    SpreadsheetConfig,
    ColumnMapping,
    ConditionalRule,
    Template,
    BatchJob,
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

# Import implementations to trigger registration
import modules.form_fill.adapters

from modules.form_fill.config import (
    FormFillConfig,
    get_form_fill_config,
    set_form_fill_config,
)
from modules.form_fill.transformations import apply_transformation, create_transformation
from modules.form_fill.mappers import ValueResolver, resolve_value
from modules.form_fill.orchestrator import FillOrchestrator
from modules.form_fill.templates import (
    TemplateStore,
    ValidationReport,
    validate_template,
    load_mappings,
)
from modules.form_fill.engine import FormFillEngine

__all__ = [
    # Engine
    "FormFillEngine",
    "FillOrchestrator",
    "ValueResolver",
    "resolve_value",
    # Interfaces
    "IDocumentAdapter",
    "IFormTarget",
    "IRosterTarget",
    # Results
    "AnalysisResult",
    "FillResult",
    "BatchJobResult",
    "BatchResult",
    "ValidationReport",
    # Registry
    "AdapterRegistry",
    "register_adapter",
    "create_adapter",
    "detect_document_type",
    "get_supported_extensions",
    "get_file_type_category",
    "get_file_type_name",
    "is_supported",
    # Types
    "DocumentField",
    "FieldMapping",
    "TransformationConfig",
    "DataContext",
    "SpreadsheetConfig",
    "ColumnMapping",
    "ConditionalRule",
    "Template",
    "BatchJob",
    # Transformations
    "apply_transformation",
    "create_transformation",
    # Templates
    "TemplateStore",
    "validate_template",
    "load_mappings",
    # Configuration
    "FormFillConfig",
    "get_form_fill_config",
    "set_form_fill_config",
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
