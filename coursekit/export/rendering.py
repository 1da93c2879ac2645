"""
Entry rendering shared by the whole-glossary and single-entry exports.

Produces the HTML fragment for one glossary entry: concept heading,
formatted definition with embedded file URLs pointed into the package,
aliases row and attachment listing.
"""
from typing import List, Optional, Sequence
import logging

from ..core.exceptions import UnresolvedSourceContextError
from ..core.interfaces import IExportFormat, IFileStorage, IRecordStore
from ..core.models import (
    GLOSSARY_COMPONENT,
    CourseModule,
    Glossary,
    GlossaryEntry,
    StoredFile,
)
from ..utils.strings import get_string
from ..utils.text import format_text, rewrite_pluginfile_urls, s


logger = logging.getLogger(__name__)

GLOSSARY_MODULE = "glossary"


# ============================================================================
# MODULE LOOKUPS
# ============================================================================

def get_coursemodule_from_id(store: IRecordStore, cmid: int) -> Optional[CourseModule]:
    row = store.get_record('course_modules', id=cmid, modulename=GLOSSARY_MODULE)
    return CourseModule.from_row(row) if row else None


def get_coursemodule_from_instance(store: IRecordStore, instance: int) -> Optional[CourseModule]:
    row = store.get_record('course_modules', instance=instance, modulename=GLOSSARY_MODULE)
    return CourseModule.from_row(row) if row else None


def resolve_file_contextid(store: IRecordStore, cm: CourseModule, entry: GlossaryEntry) -> int:
    """
    Context whose file areas hold the entry's files.

    An entry whose ``sourceglossaryid`` is this module's glossary was
    exported here from the glossary it lives in; its files stay in that
    glossary's module context.

    Raises:
        UnresolvedSourceContextError: If that glossary has no module any more
    """
    if entry.sourceglossaryid != cm.instance:
        return cm.contextid

    source_cm = get_coursemodule_from_instance(store, entry.glossaryid)
    if source_cm is None:
        raise UnresolvedSourceContextError(
            f"No course module for glossary {entry.glossaryid}",
            glossary_id=entry.glossaryid,
            entry_id=entry.id
        )
    return source_cm.contextid


# ============================================================================
# RENDERING
# ============================================================================

def _aliases_row(aliases: Sequence[str]) -> str:
    key = 'alias' if len(aliases) == 1 else 'aliases'
    values = ",".join(s(alias) for alias in aliases)
    return (
        '<tr valign="top"><td class="entrylowersection">'
        f'{get_string(key)}: {values}'
        '</td></tr>\n'
    )


def _files_block(files: Sequence[StoredFile], fmt: IExportFormat) -> str:
    listing = "".join(fmt.file_output(file) for file in files)
    return f'<table border="0" width="100%"><tr><td>\n{listing}</td></tr></table>\n'


def entry_content(
    store: IRecordStore,
    file_storage: IFileStorage,
    cm: CourseModule,
    glossary: Glossary,
    entry: GlossaryEntry,
    aliases: Sequence[str],
    fmt: IExportFormat
) -> str:
    """
    Render one entry as an HTML fragment.

    Args:
        store: Record store used to resolve the source glossary module
        file_storage: File storage holding the entry's attachments
        cm: Course module the export runs in
        glossary: Glossary of ``cm``
        entry: Entry to render
        aliases: Alias terms of the entry
        fmt: Export format; decides file URLs and file listing markup

    Returns:
        HTML fragment, or an empty string when the entry's source glossary
        module cannot be resolved
    """
    try:
        file_contextid = resolve_file_contextid(store, cm, entry)
    except UnresolvedSourceContextError as e:
        logger.warning(f"Skipping entry {entry.id} of glossary {glossary.id}: {e}")
        return ""

    definition = format_text(entry.definition, entry.definitionformat, entry.definitiontrust)
    definition = rewrite_pluginfile_urls(definition, fmt.item_directory(entry.id))

    parts: List[str] = [
        '<table class="glossarypost dictionary" cellspacing="0">\n',
        '<tr valign="top">\n',
        '<td class="entry">\n',
        f'<div class="concept"><h3>{s(entry.concept)}</h3></div> \n',
        definition,
        '</td></tr>\n',
    ]

    if aliases:
        parts.append(_aliases_row(aliases))

    files = file_storage.get_area_files(
        file_contextid, GLOSSARY_COMPONENT, 'attachment', entry.id,
        sort="timemodified", include_dirs=False
    )
    if files:
        parts.append(_files_block(files, fmt))

    parts.append('</table>\n')
    return "".join(parts)
