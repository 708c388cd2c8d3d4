"""
Mapping resolution.
"""

from modules.form_fill.mappers.value_resolver import ValueResolver, resolve_value

__all__ = ["ValueResolver", "resolve_value"]
