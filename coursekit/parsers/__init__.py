"""Backup document and spreadsheet export parsers."""
from .backup_parser import BackupDocument, BackupNode
from .spreadsheet_reader import SpreadsheetRow, read_export_spreadsheet

__all__ = ["BackupDocument", "BackupNode", "SpreadsheetRow", "read_export_spreadsheet"]
