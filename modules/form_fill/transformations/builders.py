"""
Convenience constructors for transformation configs.

Usage:
    mapping = FieldMapping(
        document_field_id="Phone",
        source_path="provider.phone",
        transformation=create_transformation.format_phone("(xxx) xxx-xxxx"),
    )
"""

from typing import Any, Dict, List, Optional

from modules.form_fill.core.types import (
    BooleanConfig,
    BooleanTransformation,
    ConcatenateConfig,
    ConcatenateTransformation,
    Condition,
    ConditionalConfig,
    ConditionalTransformation,
    ExtractConfig,
    ExtractTransformation,
    FormatConfig,
    FormatTransformation,
    LookupConfig,
    LookupTransformation,
    NameFormatConfig,
    NameFormatTransformation,
)


class create_transformation:
    """Namespace of transformation builders."""

    @staticmethod
    def format_date(date_format: str) -> FormatTransformation:
        return FormatTransformation(config=FormatConfig(date_format=date_format))

    @staticmethod
    def format_phone(phone_format: str = "(xxx) xxx-xxxx") -> FormatTransformation:
        return FormatTransformation(config=FormatConfig(phone_format=phone_format))

    @staticmethod
    def format_ssn(ssn_format: str = "xxx-xx-xxxx") -> FormatTransformation:
        return FormatTransformation(config=FormatConfig(ssn_format=ssn_format))

    @staticmethod
    def concatenate(
        sources: List[str],
        separator: str = " ",
        skip_empty: bool = True
    ) -> ConcatenateTransformation:
        return ConcatenateTransformation(
            config=ConcatenateConfig(sources=sources, separator=separator, skip_empty=skip_empty)
        )

    @staticmethod
    def lookup(
        lookup_table: Optional[Dict[str, Any]] = None,
        default_value: Any = None,
        common_table: Optional[str] = None
    ) -> LookupTransformation:
        return LookupTransformation(
            config=LookupConfig(
                lookup_table=lookup_table or {},
                default_value=default_value,
                common_table=common_table,
            )
        )

    @staticmethod
    def conditional(
        field: str,
        operator: str,
        value: Any,
        true_value: Any,
        false_value: Any = ""
    ) -> ConditionalTransformation:
        return ConditionalTransformation(
            config=ConditionalConfig(
                condition=Condition(field=field, operator=operator, value=value),
                true_value=true_value,
                false_value=false_value,
            )
        )

    @staticmethod
    def boolean(
        true_values: Optional[List[str]] = None,
        false_values: Optional[List[str]] = None,
        default_value: Optional[bool] = None
    ) -> BooleanTransformation:
        return BooleanTransformation(
            config=BooleanConfig(
                true_values=true_values,
                false_values=false_values,
                default_value=default_value,
            )
        )

    @staticmethod
    def name_format(
        format: str,
        custom_template: Optional[str] = None,
        separator: Optional[str] = None
    ) -> NameFormatTransformation:
        return NameFormatTransformation(
            config=NameFormatConfig(format=format, custom_template=custom_template, separator=separator)
        )

    @staticmethod
    def extract(
        part: str,
        from_path: str = "provider",
        fallback: Optional[str] = None
    ) -> ExtractTransformation:
        return ExtractTransformation(
            config=ExtractConfig(part=part, from_path=from_path, fallback=fallback)
        )
