"""Export formats."""
from .html_format import RichHtmlFormat, PlainHtmlFormat
from .leap2a import Leap2AFormat, Leap2AWriter, Leap2AEntry
from .spreadsheet import SpreadsheetFormat, generate_export_spreadsheet
from .registry import FormatRegistry, get_format_registry

__all__ = [
    "RichHtmlFormat", "PlainHtmlFormat",
    "Leap2AFormat", "Leap2AWriter", "Leap2AEntry",
    "SpreadsheetFormat", "generate_export_spreadsheet",
    "FormatRegistry", "get_format_registry",
]
