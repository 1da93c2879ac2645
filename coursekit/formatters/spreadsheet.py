"""
Spreadsheet export format.

Writes one worksheet with a header row followed by one row per glossary
entry: concept, definition, then as many alias columns as the entry with
the most aliases needs and as many category columns as the entry with the
most categories needs. Shorter rows are padded with empty cells.
"""
from io import BytesIO
from typing import Dict, List, Sequence
import logging

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Font, Alignment
from openpyxl.utils import get_column_letter

from ..core.exceptions import OutputError
from ..core.interfaces import IExportFormat
from ..core.models import ExportFormat, GlossaryEntry
from ..utils.strings import get_string


logger = logging.getLogger(__name__)

SHEET_TITLE = "Glossary"
MAX_COLUMN_WIDTH = 60


class SpreadsheetFormat(IExportFormat):
    """XLSX workbook export."""

    extension = ".xlsx"

    @property
    def format_class(self) -> ExportFormat:
        return ExportFormat.SPREADSHEET


def build_export_rows(
    entries: Sequence[GlossaryEntry],
    aliases: Dict[int, List[str]],
    categories: Dict[int, List[str]]
) -> List[List[str]]:
    """
    Lay out the export table, header row first.

    Args:
        entries: Entries in export order
        aliases: Alias terms keyed by entry id
        categories: Category names keyed by entry id

    Returns:
        Rows of cell values, all of equal length. Control characters a
        worksheet cannot hold are removed.
    """
    alias_count = max((len(aliases.get(e.id, [])) for e in entries), default=0)
    category_count = max((len(categories.get(e.id, [])) for e in entries), default=0)

    header = [get_string('concept'), get_string('definition')]
    header += [get_string('alias')] * alias_count
    header += [get_string('category')] * category_count
    rows = [header]

    for entry in entries:
        entry_aliases = [a.strip() for a in aliases.get(entry.id, [])]
        entry_categories = [c.strip() for c in categories.get(entry.id, [])]
        row = [entry.concept, entry.definition]
        row += entry_aliases + [""] * (alias_count - len(entry_aliases))
        row += entry_categories + [""] * (category_count - len(entry_categories))
        rows.append([ILLEGAL_CHARACTERS_RE.sub('', value) for value in row])

    return rows


def generate_export_spreadsheet(
    entries: Sequence[GlossaryEntry],
    aliases: Dict[int, List[str]],
    categories: Dict[int, List[str]]
) -> bytes:
    """
    Render the export table as an XLSX workbook.

    Returns:
        Workbook bytes

    Raises:
        OutputError: If the workbook cannot be serialized
    """
    rows = build_export_rows(entries, aliases, categories)

    wb = Workbook()
    try:
        ws = wb.active
        ws.title = SHEET_TITLE

        for row in rows:
            ws.append(row)

        # Text that starts with "=" must stay text, not become a formula.
        for row in ws.iter_rows():
            for cell in row:
                if isinstance(cell.value, str) and cell.value.startswith('='):
                    cell.data_type = 's'

        for cell in ws[1]:
            cell.font = Font(bold=True)
        for row in ws.iter_rows(min_row=2, min_col=2, max_col=2):
            for cell in row:
                cell.alignment = Alignment(wrap_text=True, vertical='top')

        for index in range(1, len(rows[0]) + 1):
            longest = max(len(str(row[index - 1])) for row in rows)
            ws.column_dimensions[get_column_letter(index)].width = min(longest + 2, MAX_COLUMN_WIDTH)

        ws.freeze_panes = "A2"

        buffer = BytesIO()
        wb.save(buffer)
    except Exception as e:
        raise OutputError(f"Failed to build spreadsheet: {e}") from e
    finally:
        wb.close()

    logger.info(f"Spreadsheet built: {len(rows) - 1} entries, {len(rows[0])} columns")
    return buffer.getvalue()
