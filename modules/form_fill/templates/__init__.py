"""
Template model validation and persistence.
"""

from modules.form_fill.templates.store import TemplateStore
from modules.form_fill.templates.validator import (
    ValidationReport,
    ensure_valid,
    load_mappings,
    validate_template,
)

__all__ = [
    "TemplateStore",
    "ValidationReport",
    "validate_template",
    "ensure_valid",
    "load_mappings",
]
