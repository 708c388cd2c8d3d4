"""
Fill Orchestrator.

Drives one document's fill pass through an adapter's fill seam:
- fill_form: single-record documents with named controls (PDF, Word)
- fill_roster: roster spreadsheets, one provider record per row
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from modules.form_fill.core.interfaces import IFormTarget, IRosterTarget
from modules.form_fill.core.types import DataContext, FieldMapping, SpreadsheetConfig
from modules.form_fill.mappers.value_resolver import ValueResolver
from shared.utils.helpers import get_path_value
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


COLUMN_FIELD_ID = re.compile(r"^(.*)!([A-Za-z]+)$")
DEFAULT_DATA_START_ROW = 2


def parse_column_letter(field_id: str) -> Optional[str]:
    """
    Column letter from a spreadsheet field id, upper-cased.

    Example:
        >>> parse_column_letter("Sheet1!b")
        'B'
    """
    match = COLUMN_FIELD_ID.match(field_id or "")
    return match.group(2).upper() if match else None


def parse_sheet_name(field_id: str) -> Optional[str]:
    """
    Sheet part of a spreadsheet field id, without quotes.

    Example:
        >>> parse_sheet_name("'Q1 Roster'!C")
        'Q1 Roster'
    """
    match = COLUMN_FIELD_ID.match(field_id or "")
    if not match:
        return None
    sheet = match.group(1).strip()
    if len(sheet) >= 2 and sheet[0] == sheet[-1] == "'":
        sheet = sheet[1:-1].replace("''", "'")
    return sheet or None


@dataclass
class RosterOutcome:
    """Result of writing provider rows into a roster sheet."""
    warnings: List[str] = field(default_factory=list)
    rows_written: int = 0
    preserved_formulas: List[str] = field(default_factory=list)


class FillOrchestrator:
    """
    Run a fill pass: resolve each mapping and hand the value to the target.

    Per-field problems become warnings; the pass never aborts on one field.
    Serialization of the filled document stays with the adapter.
    """

    def __init__(self, resolver: Optional[ValueResolver] = None):
        self.resolver = resolver or ValueResolver()

    def fill_form(
        self,
        target: IFormTarget,
        mappings: List[FieldMapping],
        context: DataContext
    ) -> List[str]:
        """
        Fill named controls from a single data context.

        Args:
            target: Adapter exposing live controls
            mappings: Field mappings
            context: Data context

        Returns:
            Warnings collected during the pass
        """
        warnings: List[str] = []
        live_fields = target.live_fields()
        data = context.as_lookup()

        if not mappings:
            logger.warning("No field mappings provided, document will be saved without changes")

        for mapping in mappings:
            field_ = live_fields.get(mapping.document_field_id)

            if field_ is None:
                warnings.append(f'Field "{mapping.display_name}" not found in document')
                continue

            try:
                value = self.resolver.resolve(mapping, data)
                target.write_field(field_, value)
                logger.debug(f"Filled '{field_.id}' = {str(value)[:50]!r}")
            except Exception as e:
                logger.warning(f"Failed to fill field '{mapping.display_name}': {e}")
                warnings.append(f'Failed to fill field "{mapping.display_name}": {e}')

        logger.info(f"Form fill pass: {len(mappings)} mappings, {len(warnings)} warnings")
        return warnings

    def fill_roster(
        self,
        target: IRosterTarget,
        mappings: List[FieldMapping],
        context: DataContext,
        sheet_config: Optional[SpreadsheetConfig] = None,
        default_start_row: int = DEFAULT_DATA_START_ROW
    ) -> RosterOutcome:
        """
        Write one row per provider record.

        Columns come from the sheet configuration's column mappings when
        present, otherwise from the "!<Column>" suffix of each mapping's
        document field id. Cells carrying a formula are left untouched and
        reported in preserved_formulas.

        Args:
            target: Adapter exposing the roster sheet
            mappings: Field mappings
            context: Data context; providers (or a single provider) become rows
            sheet_config: Header-row / data-row configuration
            default_start_row: First data row when the configuration sets none

        Returns:
            RosterOutcome
        """
        outcome = RosterOutcome()
        sheet_config = sheet_config or SpreadsheetConfig()

        providers = context.providers or ([context.provider] if context.provider else [])
        if not providers:
            outcome.warnings.append("No provider data found")
            logger.info("No providers to fill")
        else:
            start_row = sheet_config.data_start_row or default_start_row
            logger.info(f"Filling {len(providers)} provider(s) starting at row {start_row}")

            if sheet_config.column_mappings:
                columns = [
                    (cm.column_letter, cm.header_text or cm.column_letter, cm.provider_field_path)
                    for cm in sheet_config.column_mappings
                    if cm.provider_field_path
                ]
                for index, provider in enumerate(providers):
                    self._fill_configured_row(target, start_row + index, provider, columns, outcome)
            else:
                columns = self._mapping_columns(target, mappings, outcome)
                for index, provider in enumerate(providers):
                    row_context = context.model_copy(
                        update={"provider": provider, "providers": [provider]}
                    )
                    self._fill_mapped_row(target, start_row + index, row_context, columns, outcome)

            outcome.rows_written = len(providers)

        target.mark_for_recalculation()
        logger.info(
            f"Roster fill pass: {outcome.rows_written} rows, "
            f"{len(outcome.preserved_formulas)} formulas preserved, {len(outcome.warnings)} warnings"
        )
        return outcome

    def _mapping_columns(
        self,
        target: IRosterTarget,
        mappings: List[FieldMapping],
        outcome: RosterOutcome
    ) -> List[Tuple[str, FieldMapping]]:
        roster_sheet = target.sheet_name()
        columns = []
        for mapping in mappings:
            letter = parse_column_letter(mapping.document_field_id)
            if letter is None:
                logger.warning(f"Could not parse column from field ID: {mapping.document_field_id}")
                outcome.warnings.append(
                    f'Could not parse column from field "{mapping.display_name}" ({mapping.document_field_id})'
                )
                continue

            sheet = parse_sheet_name(mapping.document_field_id)
            if sheet is not None and sheet.casefold() != roster_sheet.casefold():
                logger.warning(f"Skipping {mapping.document_field_id}: roster sheet is {roster_sheet}")
                outcome.warnings.append(
                    f'Field "{mapping.display_name}" refers to sheet "{sheet}", '
                    f'not the roster sheet "{roster_sheet}"'
                )
                continue

            columns.append((letter, mapping))
        return columns

    def _fill_mapped_row(
        self,
        target: IRosterTarget,
        row: int,
        row_context: DataContext,
        columns: List[Tuple[str, FieldMapping]],
        outcome: RosterOutcome
    ) -> None:
        data = row_context.as_lookup()
        for letter, mapping in columns:
            try:
                value = self.resolver.resolve(mapping, data)
                self._write(target, row, letter, value, outcome)
            except Exception as e:
                logger.warning(f"Failed to fill {letter}{row}: {e}")
                outcome.warnings.append(f'Failed to fill field "{mapping.display_name}": {e}')

    def _fill_configured_row(
        self,
        target: IRosterTarget,
        row: int,
        provider: Dict[str, Any],
        columns: List[Tuple[str, str, str]],
        outcome: RosterOutcome
    ) -> None:
        for letter, label, path in columns:
            try:
                self._write(target, row, letter, get_path_value(provider, path), outcome)
            except Exception as e:
                logger.warning(f"Failed to fill {letter}{row}: {e}")
                outcome.warnings.append(f'Failed to fill column "{label}": {e}')

    def _write(
        self,
        target: IRosterTarget,
        row: int,
        letter: str,
        value: Any,
        outcome: RosterOutcome
    ) -> None:
        if value is None:
            return
        formula = target.write_cell(row, letter, value)
        if formula is not None:
            outcome.preserved_formulas.append(f"{letter}{row}: {formula}")
