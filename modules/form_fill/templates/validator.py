"""
Template validation and mapping-file loading.

Validation runs on the interchange shape (camelCase dictionaries) so that
records which would not even parse into a Template still get a full list
of human-readable errors.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml

from modules.form_fill.core.exceptions import TemplateValidationException
from modules.form_fill.core.types import (
    DOCUMENT_TYPES,
    FIELD_TYPES,
    RULE_ACTIONS,
    SOURCE_TYPES,
    FieldMapping,
    Template,
    parse_mappings,
)
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


@dataclass
class ValidationReport:
    """Outcome of validating a template."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "isValid": self.is_valid,
            "errors": self.errors,
        }


def _blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def _as_record(template: Union[Template, Dict[str, Any]]) -> Dict[str, Any]:
    if isinstance(template, Template):
        return template.model_dump(by_alias=True, mode="json")
    return template or {}


def _validate_mapping(index: int, mapping: Any, errors: List[str]) -> None:
    prefix = f"Mapping {index}"

    if isinstance(mapping, FieldMapping):
        mapping = mapping.model_dump(by_alias=True, mode="json")
    if not isinstance(mapping, dict):
        errors.append(f"{prefix}: Mapping must be an object")
        return

    if _blank(mapping.get("documentFieldId")):
        errors.append(f"{prefix}: Document field ID is required")

    if _blank(mapping.get("documentFieldName")):
        errors.append(f"{prefix}: Document field name is required")

    if mapping.get("documentFieldType") not in FIELD_TYPES:
        errors.append(f"{prefix}: Valid field type is required")

    source_type = mapping.get("sourceType")
    if source_type not in SOURCE_TYPES:
        errors.append(f"{prefix}: Valid source type is required")

    if source_type == "provider-slot":
        slot = mapping.get("providerSlot")
        if not isinstance(slot, int) or isinstance(slot, bool) or slot < 1:
            errors.append(f"{prefix}: Provider slot number is required (must be >= 1)")
        if _blank(mapping.get("slotField")):
            errors.append(f"{prefix}: Slot field is required for provider-slot mappings")
    elif source_type == "static":
        if mapping.get("staticValue") is None:
            errors.append(f"{prefix}: Static value is required for static mappings")
    elif _blank(mapping.get("sourcePath")):
        errors.append(f"{prefix}: Source path is required")


def validate_template(template: Union[Template, Dict[str, Any]]) -> ValidationReport:
    """
    Validate a template's structure.

    Args:
        template: Template model or interchange dictionary

    Returns:
        ValidationReport with every problem found, one message each
    """
    record = _as_record(template)
    errors: List[str] = []

    if _blank(record.get("name")):
        errors.append("Template name is required")

    if record.get("documentType") not in DOCUMENT_TYPES:
        errors.append("Valid document type is required (pdf, docx, xlsx)")

    mappings = record.get("mappings")
    if not isinstance(mappings, list) or not mappings:
        errors.append("Template must have at least one field mapping")
        mappings = mappings if isinstance(mappings, list) else []

    seen: Dict[str, int] = {}
    for index, mapping in enumerate(mappings, start=1):
        _validate_mapping(index, mapping, errors)

        field_id = mapping.get("documentFieldId") if isinstance(mapping, dict) else None
        if isinstance(mapping, FieldMapping):
            field_id = mapping.document_field_id
        if isinstance(field_id, str) and field_id.strip():
            if field_id in seen:
                errors.append(
                    f'Mapping {index}: Document field "{field_id}" is already mapped by mapping {seen[field_id]}'
                )
            else:
                seen[field_id] = index

    for index, rule in enumerate(record.get("conditionalRules") or [], start=1):
        rule = rule if isinstance(rule, dict) else {}
        if _blank(rule.get("condition")):
            errors.append(f"Conditional rule {index}: Condition is required")
        if rule.get("action") not in RULE_ACTIONS:
            errors.append(f"Conditional rule {index}: Valid action is required")

    if errors:
        logger.debug(f"Template validation found {len(errors)} errors")

    return ValidationReport(is_valid=not errors, errors=errors)


def ensure_valid(template: Union[Template, Dict[str, Any]]) -> None:
    """
    Raises:
        TemplateValidationException: If the template is invalid
    """
    report = validate_template(template)
    if not report.is_valid:
        raise TemplateValidationException(report.errors)


def load_mappings(path: Union[str, Path]) -> List[FieldMapping]:
    """
    Load a mapping set from a YAML or JSON file.

    The file holds either a bare list of mappings or a record with a
    "mappings" key (for example an exported template).
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        if path.suffix.lower() == ".json":
            data = json.load(f)
        else:
            data = yaml.safe_load(f)

    if isinstance(data, dict):
        data = data.get("mappings")
    if not isinstance(data, list):
        raise ValueError(f"No mapping list found in {path}")

    mappings = parse_mappings(data)
    logger.info(f"Loaded {len(mappings)} mappings from {path}")
    return mappings
