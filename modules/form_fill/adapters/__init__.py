"""
Document adapters.

Importing this package registers every adapter with the AdapterRegistry.
"""

from modules.form_fill.adapters.pdf_adapter import PdfAdapter
from modules.form_fill.adapters.spreadsheet_adapter import SpreadsheetAdapter
from modules.form_fill.adapters.word_adapter import WordAdapter

__all__ = ["PdfAdapter", "SpreadsheetAdapter", "WordAdapter"]
