"""
Helper utility functions.
"""

from datetime import date, datetime
from typing import Any, Optional
import hashlib
import re


def generate_file_hash(file_bytes: bytes) -> str:
    """
    Generate SHA256 hash of file content.

    Args:
        file_bytes: File content as bytes

    Returns:
        Hexadecimal hash string
    """
    return hashlib.sha256(file_bytes).hexdigest()


def get_path_value(data: Any, path: Optional[str]) -> Any:
    """
    Get a nested value using dot notation.

    Walks mappings by key and sequences by integer index. Any missing or
    null intermediate short-circuits to None.

    Example:
        get_path_value({"provider": {"firstName": "Ann"}}, "provider.firstName")  # "Ann"
        get_path_value({"providers": [{"npi": "1"}]}, "providers.0.npi")  # "1"
        get_path_value({"provider": None}, "provider.firstName")  # None
    """
    if data is None or not path:
        return None

    current = data
    for key in path.split("."):
        if current is None:
            return None
        if isinstance(current, dict):
            current = current.get(key)
        elif isinstance(current, (list, tuple)):
            try:
                current = current[int(key)]
            except (ValueError, IndexError):
                return None
        else:
            current = getattr(current, key, None)

    return current


def locale_date_string(value: Optional[date] = None) -> str:
    """
    Format a date the way a US-locale date string reads (M/D/YYYY).

    Args:
        value: Date to format, defaults to today

    Returns:
        Date string without zero padding, e.g. "3/7/2024"
    """
    value = value or datetime.now()
    return f"{value.month}/{value.day}/{value.year}"


def sanitize_filename(name: str, replacement: str = "_") -> str:
    """
    Replace every character outside [A-Za-z0-9] so the result is safe as a file name.

    Args:
        name: Raw name
        replacement: Character used for disallowed characters

    Returns:
        Sanitized name
    """
    return re.sub(r"[^a-zA-Z0-9]", replacement, name or "")
