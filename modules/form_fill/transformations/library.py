"""
Transformation library.

Each transformation is a pure function (value, config, data) -> value.
apply_transformation dispatches on the transformation type and returns the
original value whenever a transformation raises: transformations enrich a
value, they never block a fill.
"""

import math
import re
from typing import Any, Dict, List, Optional

from modules.form_fill.core.exceptions import TransformationError
from modules.form_fill.core.types import (
    BooleanConfig,
    BooleanTransformation,
    ConcatenateConfig,
    ConcatenateTransformation,
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
    TransformationConfig,
)
from modules.form_fill.transformations.dates import format_date_pattern, parse_date
from modules.form_fill.transformations.lookup_tables import COMMON_LOOKUP_TABLES
from shared.utils.helpers import get_path_value
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


DEFAULT_TRUE_VALUES = ["true", "yes", "y", "1", "on", "checked", "active"]
DEFAULT_FALSE_VALUES = ["false", "no", "n", "0", "off", "", "inactive"]
CHECKED_VALUES = ("true", "yes", "1", "on", "checked", "x")

_TITLE_TOKEN = re.compile(r"\w\S*")
_NON_DIGIT = re.compile(r"\D")


def stringify(value: Any) -> str:
    """String form of a value as it should appear in a document."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def is_truthy(value: Any) -> bool:
    """Checkbox truthiness: booleans as is, a small vocabulary for strings."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.lower().strip() in CHECKED_VALUES
    if isinstance(value, (int, float)):
        return value != 0
    return bool(value)


def to_number(value: Any) -> float:
    """Numeric coercion for comparisons; NaN when the value is not a number."""
    if value is None:
        return math.nan
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    if not text:
        return 0.0
    try:
        return float(text)
    except ValueError:
        return math.nan


# ==============================================================================
# FORMAT
# ==============================================================================

def apply_format(value: Any, config: FormatConfig) -> str:
    """
    Apply date, phone/SSN, case and prefix/suffix formatting in that order.

    Phone and SSN formats only apply when the digit count is exactly 10 / 9;
    anything else passes through unformatted.
    """
    if value is None:
        return ""

    result = stringify(value)

    if config.date_format and value:
        parsed = parse_date(value)
        if parsed is not None:
            result = format_date_pattern(parsed, config.date_format)
        else:
            logger.debug(f"Date format skipped, not a date: {result!r}")

    if config.phone_format and result:
        digits = _NON_DIGIT.sub("", result)
        if len(digits) == 10:
            if config.phone_format == "xxx-xxx-xxxx":
                result = f"{digits[:3]}-{digits[3:6]}-{digits[6:]}"
            elif config.phone_format == "(xxx) xxx-xxxx":
                result = f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"
            elif config.phone_format == "xxxxxxxxxx":
                result = digits

    if config.ssn_format and result:
        digits = _NON_DIGIT.sub("", result)
        if len(digits) == 9:
            if config.ssn_format == "xxx-xx-xxxx":
                result = f"{digits[:3]}-{digits[3:5]}-{digits[5:]}"
            elif config.ssn_format == "xxxxxxxxx":
                result = digits

    if config.case_transform == "upper":
        result = result.upper()
    elif config.case_transform == "lower":
        result = result.lower()
    elif config.case_transform == "title":
        result = _TITLE_TOKEN.sub(lambda m: m.group(0)[0].upper() + m.group(0)[1:].lower(), result)
    elif config.case_transform == "sentence":
        result = result[:1].upper() + result[1:].lower()

    if config.prefix:
        result = config.prefix + result
    if config.suffix:
        result = result + config.suffix

    return result


# ==============================================================================
# CONCATENATE / CONDITIONAL / LOOKUP / BOOLEAN
# ==============================================================================

def apply_concatenate(data: Dict[str, Any], config: ConcatenateConfig) -> str:
    """Join values found at config.sources, dropping blank ones when skip_empty."""
    values: List[str] = []

    for source_path in config.sources:
        value = get_path_value(data, source_path)
        text = stringify(value) if value else ""
        if not config.skip_empty or text.strip():
            values.append(text)

    return config.separator.join(values)


def apply_conditional(data: Dict[str, Any], config: ConditionalConfig) -> Any:
    """Return true_value or false_value depending on one field comparison."""
    condition = config.condition
    field_value = get_path_value(data, condition.field)
    operator = condition.operator
    expected = condition.value

    if operator == "equals":
        met = field_value == expected
    elif operator == "notEquals":
        met = field_value != expected
    elif operator == "contains":
        met = stringify(expected) in stringify(field_value)
    elif operator == "startsWith":
        met = stringify(field_value).startswith(stringify(expected))
    elif operator == "endsWith":
        met = stringify(field_value).endswith(stringify(expected))
    elif operator == "greaterThan":
        met = to_number(field_value) > to_number(expected)
    elif operator == "lessThan":
        met = to_number(field_value) < to_number(expected)
    else:
        raise TransformationError(f"Unknown condition operator: {operator}")

    if met:
        return config.true_value
    return config.false_value if config.false_value is not None else ""


def apply_lookup(value: Any, config: LookupConfig) -> Any:
    """Map the stringified value through a table, then default, then original."""
    table = config.lookup_table
    if config.common_table:
        if config.common_table not in COMMON_LOOKUP_TABLES:
            raise TransformationError(f"Unknown lookup table: {config.common_table}")
        table = {**COMMON_LOOKUP_TABLES[config.common_table], **table}

    found = table.get(stringify(value))
    if found is not None:
        return found
    if config.default_value is not None:
        return config.default_value
    return value


def apply_boolean(value: Any, config: BooleanConfig) -> bool:
    """Coerce a value to a boolean through configurable true/false vocabularies."""
    true_values = DEFAULT_TRUE_VALUES if config.true_values is None else config.true_values
    false_values = DEFAULT_FALSE_VALUES if config.false_values is None else config.false_values

    text = (stringify(value) if value else "").lower().strip()

    if text in true_values:
        return True
    if text in false_values:
        return False

    if config.default_value is not None:
        return config.default_value
    return bool(value)


# ==============================================================================
# NAMES
# ==============================================================================

def _middle_initial(middle_name: str) -> str:
    return middle_name[0].upper() + "." if middle_name else ""


def _join(parts: List[str], separator: str) -> str:
    return separator.join(p for p in parts if p)


def apply_name_format(data: Dict[str, Any], config: NameFormatConfig) -> str:
    """
    Render the provider's name.

    Name parts always come from the provider record in the data context,
    not from the mapped value.
    """
    first = stringify(get_path_value(data, "provider.firstName") or "")
    middle = stringify(get_path_value(data, "provider.middleName") or "")
    last = stringify(get_path_value(data, "provider.lastName") or "")
    suffix = stringify(get_path_value(data, "provider.suffix") or "")

    mi = _middle_initial(middle)
    separator = config.separator or " "
    fmt = config.format

    if fmt == "full":
        return _join([first, middle, last, suffix], separator)
    if fmt == "firstLast":
        return _join([first, last], separator)
    if fmt == "lastFirst":
        if last and first:
            return f"{last}, {first}"
        return _join([last, first], separator)
    if fmt == "lastFirstMI":
        first_mi = f"{first} {mi}" if mi else first
        if last and first_mi:
            return f"{last}, {first_mi}"
        return _join([last, first_mi], separator)
    if fmt == "firstMI":
        return _join([first, mi], " ")
    if fmt == "first":
        return first
    if fmt == "last":
        return last
    if fmt == "middle":
        return middle
    if fmt == "initial":
        return first[0].upper() if first else ""
    if fmt == "custom":
        if not config.custom_template:
            return ""
        return (
            config.custom_template
            .replace("{first}", first)
            .replace("{middle}", middle)
            .replace("{last}", last)
            .replace("{mi}", mi)
            .replace("{suffix}", suffix)
            .strip()
        )
    return first


def split_full_name(full_name: str) -> Dict[str, str]:
    """
    Naive whitespace split of a full name.

    1 token -> first; 2 -> first, last; 3 -> first, middle, last;
    more -> first, joined middle tokens, last.
    """
    tokens = full_name.split()
    parts = {"firstName": "", "middleName": "", "lastName": "", "suffix": ""}

    if not tokens:
        return parts

    parts["firstName"] = tokens[0]
    if len(tokens) >= 2:
        parts["lastName"] = tokens[-1]
    if len(tokens) >= 3:
        parts["middleName"] = " ".join(tokens[1:-1])

    return parts


def apply_extract(data: Dict[str, Any], config: ExtractConfig) -> str:
    """Pull one name part from a record, or from a full-name string."""
    from_path = config.from_path or "provider"
    source = get_path_value(data, from_path)
    fallback = config.fallback or ""

    if isinstance(source, str):
        record: Dict[str, Any] = split_full_name(source)
    elif isinstance(source, dict):
        record = source
    else:
        record = {}

    if config.part == "middleInitial":
        middle = stringify(record.get("middleName") or "")
        return _middle_initial(middle) or fallback

    return stringify(record.get(config.part) or "") or fallback


# ==============================================================================
# DISPATCH
# ==============================================================================

def apply_transformation(
    value: Any,
    transformation: Optional[TransformationConfig],
    data: Optional[Dict[str, Any]] = None
) -> Any:
    """
    Apply a transformation to a resolved value.

    Args:
        value: Value resolved for the mapping
        transformation: Transformation config (tagged by type)
        data: Full data context, used by multi-field transformations

    Returns:
        Transformed value, or the original value if the transformation fails
    """
    if transformation is None:
        return value

    data = data or {}

    try:
        if isinstance(transformation, FormatTransformation):
            return apply_format(value, transformation.config)
        elif isinstance(transformation, ConcatenateTransformation):
            return apply_concatenate(data, transformation.config)
        elif isinstance(transformation, ConditionalTransformation):
            return apply_conditional(data, transformation.config)
        elif isinstance(transformation, LookupTransformation):
            return apply_lookup(value, transformation.config)
        elif isinstance(transformation, BooleanTransformation):
            return apply_boolean(value, transformation.config)
        elif isinstance(transformation, NameFormatTransformation):
            return apply_name_format(data, transformation.config)
        elif isinstance(transformation, ExtractTransformation):
            return apply_extract(data, transformation.config)

        raise TransformationError(f"Unknown transformation type: {type(transformation).__name__}")

    except Exception as e:
        logger.warning(
            f"Transformation '{getattr(transformation, 'type', '?')}' failed: {e}, returning original value"
        )
        return value
