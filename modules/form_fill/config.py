"""
Form fill module configuration.

Centralizes all configuration for standalone usage.
"""

from pathlib import Path
from typing import List, Optional
from dataclasses import dataclass, field

from shared.utils.config import settings


@dataclass
class FormFillConfig:
    """
    Configuration for form fill module.

    Seeded from application settings; pass an instance explicitly to run
    the engine with different limits or directories.
    """

    # Path configuration
    output_dir: Path = field(default_factory=lambda: Path(settings.OUTPUT_DIR))
    templates_dir: Path = field(default_factory=lambda: Path(settings.TEMPLATES_DIR))

    # Spreadsheet field model
    spreadsheet_default_columns: int = settings.SPREADSHEET_DEFAULT_COLUMNS
    spreadsheet_max_columns: int = settings.SPREADSHEET_MAX_COLUMNS
    data_start_row: int = settings.SPREADSHEET_DATA_START_ROW

    # Preview grid bounds
    preview_max_rows: int = settings.PREVIEW_MAX_ROWS
    preview_max_columns: int = settings.PREVIEW_MAX_COLUMNS

    # PDF required-field heuristic
    required_field_keywords: List[str] = field(
        default_factory=lambda: list(settings.required_field_keywords_list)
    )

    def __post_init__(self):
        """Ensure paths are Path objects."""
        self.output_dir = Path(self.output_dir)
        self.templates_dir = Path(self.templates_dir)
        if self.spreadsheet_max_columns < 1:
            raise ValueError("spreadsheet_max_columns must be at least 1")


# Global configuration instance
_config_instance: Optional[FormFillConfig] = None


def get_form_fill_config() -> FormFillConfig:
    """
    Get global form fill config instance.

    Returns:
        FormFillConfig instance
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = FormFillConfig()
    return _config_instance


def set_form_fill_config(config: FormFillConfig) -> None:
    """
    Set global form fill config instance.

    Args:
        config: FormFillConfig instance
    """
    global _config_instance
    _config_instance = config
