"""
Transformation library for mapped values.
"""

from modules.form_fill.transformations.builders import create_transformation
from modules.form_fill.transformations.library import (
    DEFAULT_FALSE_VALUES,
    DEFAULT_TRUE_VALUES,
    apply_boolean,
    apply_concatenate,
    apply_conditional,
    apply_extract,
    apply_format,
    apply_lookup,
    apply_name_format,
    apply_transformation,
    is_truthy,
    split_full_name,
    stringify,
)
from modules.form_fill.transformations.lookup_tables import COMMON_LOOKUP_TABLES

__all__ = [
    "apply_transformation",
    "apply_format",
    "apply_concatenate",
    "apply_conditional",
    "apply_lookup",
    "apply_boolean",
    "apply_name_format",
    "apply_extract",
    "split_full_name",
    "stringify",
    "is_truthy",
    "create_transformation",
    "COMMON_LOOKUP_TABLES",
    "DEFAULT_TRUE_VALUES",
    "DEFAULT_FALSE_VALUES",
]
