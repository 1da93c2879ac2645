"""
Spreadsheet export reader.

Reads a workbook written by ``generate_export_spreadsheet`` back into
glossary rows. Columns are located by their header labels, so alias and
category columns may repeat any number of times.
"""
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import List, Union
import logging

from openpyxl import load_workbook

from ..core.exceptions import ExportError
from ..utils.strings import get_string


logger = logging.getLogger(__name__)


@dataclass
class SpreadsheetRow:
    """One exported glossary entry as read back from the workbook."""
    concept: str
    definition: str
    aliases: List[str] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)


def _cell_text(value) -> str:
    if value is None:
        return ""
    return str(value)


def read_export_spreadsheet(source: Union[bytes, str, Path]) -> List[SpreadsheetRow]:
    """
    Read the rows of a spreadsheet export.

    Args:
        source: Workbook bytes or a path to an .xlsx file

    Returns:
        One row per exported entry, in sheet order

    Raises:
        ExportError: If the workbook cannot be opened or has no header row
    """
    handle = BytesIO(source) if isinstance(source, bytes) else Path(source)

    wb = None
    try:
        wb = load_workbook(handle, read_only=True, data_only=True)
        ws = wb.worksheets[0]
        rows = [list(row) for row in ws.iter_rows(values_only=True)]
    except Exception as e:
        logger.error(f"Failed to read spreadsheet: {e}")
        raise ExportError(f"Cannot read spreadsheet export: {e}") from e
    finally:
        if wb:
            wb.close()

    if not rows:
        raise ExportError("Spreadsheet export has no header row")

    header = [_cell_text(value) for value in rows[0]]
    concept_label = get_string('concept')
    definition_label = get_string('definition')
    if concept_label not in header or definition_label not in header:
        raise ExportError(
            "Spreadsheet export header is missing the concept or definition column",
            header=header
        )

    concept_col = header.index(concept_label)
    definition_col = header.index(definition_label)
    alias_cols = [i for i, label in enumerate(header) if label == get_string('alias')]
    category_cols = [i for i, label in enumerate(header) if label == get_string('category')]

    result = []
    for values in rows[1:]:
        values = values + [None] * (len(header) - len(values))
        if all(_cell_text(value) == "" for value in values):
            continue
        result.append(SpreadsheetRow(
            concept=_cell_text(values[concept_col]),
            definition=_cell_text(values[definition_col]),
            aliases=[_cell_text(values[i]) for i in alias_cols if _cell_text(values[i])],
            categories=[_cell_text(values[i]) for i in category_cols if _cell_text(values[i])],
        ))

    logger.info(f"Read {len(result)} entries from spreadsheet export")
    return result
