"""
Value Resolver.

Resolves one field mapping against a data context: static value, provider
slot, or a dot path into the record selected by the source type, then the
mapping's transformation, then late default-value substitution.
"""

from typing import Any, Dict, Optional, Union

from modules.form_fill.core.types import DataContext, FieldMapping
from modules.form_fill.transformations.library import apply_transformation
from shared.utils.helpers import get_path_value, locale_date_string
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


# Source type -> key of the record in the data context
SOURCE_RECORDS = {
    "provider": "provider",
    "office": "office",
    "mailing": "mailingAddress",
    "custom": "custom",
}

# Leading segments stripped from a source path before walking the record
SOURCE_PREFIXES = ("provider.", "office.", "mailing.", "custom.")

CURRENT_DATE_PATHS = ("static.currentDate", "static.applicationDate")


def is_empty(value: Any) -> bool:
    return value is None or value == ""


class ValueResolver:
    """
    Resolve mapping values from a data context.

    Precedence:
        1. static_value, used verbatim
        2. provider-slot: providers[provider_slot - 1][slot_field]
        3. source_path inside the record selected by source_type
        4. default_value

    The transformation runs on the resolved value, then an empty result is
    replaced by default_value when one is set.

    Example:
        >>> resolver = ValueResolver()
        >>> mapping = FieldMapping(document_field_id="FirstName", source_path="provider.firstName")
        >>> resolver.resolve(mapping, {"provider": {"firstName": "Ann"}})
        'Ann'
    """

    def resolve(
        self,
        mapping: FieldMapping,
        data: Union[DataContext, Dict[str, Any]]
    ) -> Any:
        """
        Resolve the final value for a mapping.

        Args:
            mapping: Field mapping
            data: Data context (model or plain dictionary)

        Returns:
            Resolved value (None when nothing resolves)
        """
        context = data.as_lookup() if isinstance(data, DataContext) else (data or {})

        value = self._resolve_raw(mapping, context)

        if mapping.transformation is not None:
            value = apply_transformation(value, mapping.transformation, context)

        if is_empty(value) and mapping.default_value is not None:
            value = mapping.default_value

        return value

    def _resolve_raw(self, mapping: FieldMapping, context: Dict[str, Any]) -> Any:
        if mapping.static_value is not None:
            return mapping.static_value

        if mapping.source_type == "provider-slot":
            return self._resolve_slot(mapping, context)

        if mapping.source_path:
            return self._resolve_path(mapping, context)

        return mapping.default_value

    def _resolve_slot(self, mapping: FieldMapping, context: Dict[str, Any]) -> Any:
        providers = context.get("providers") or []
        slot = mapping.provider_slot

        if not slot or slot < 1 or slot > len(providers):
            logger.debug(
                f"Provider slot {slot} empty for '{mapping.document_field_id}' "
                f"({len(providers)} providers)"
            )
            return None

        return get_path_value(providers[slot - 1], mapping.slot_field)

    def _resolve_path(self, mapping: FieldMapping, context: Dict[str, Any]) -> Any:
        path = mapping.source_path
        source_type = mapping.source_type

        if source_type == "static":
            if path in CURRENT_DATE_PATHS:
                return locale_date_string()
            return mapping.default_value

        record_key = SOURCE_RECORDS.get(source_type)
        if record_key is None:
            return get_path_value(context, path)

        return get_path_value(context.get(record_key), strip_source_prefix(path))


def strip_source_prefix(path: str) -> str:
    """
    Drop a leading record segment from a source path.

    Example:
        >>> strip_source_prefix("provider.firstName")
        'firstName'
    """
    for prefix in SOURCE_PREFIXES:
        if path.startswith(prefix):
            return path[len(prefix):]
    return path


_default_resolver: Optional[ValueResolver] = None


def resolve_value(mapping: FieldMapping, data: Union[DataContext, Dict[str, Any]]) -> Any:
    """Resolve with a module-level resolver instance."""
    global _default_resolver
    if _default_resolver is None:
        _default_resolver = ValueResolver()
    return _default_resolver.resolve(mapping, data)
