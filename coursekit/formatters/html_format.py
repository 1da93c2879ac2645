"""Standalone HTML export formats for a single entry."""
from ..core.interfaces import IExportFormat
from ..core.models import ExportFormat, StoredFile
from ..utils.text import s


class RichHtmlFormat(IExportFormat):
    """HTML page with attached files bundled next to it."""

    @property
    def format_class(self) -> ExportFormat:
        return ExportFormat.RICHHTML

    @property
    def file_directory(self) -> str:
        return "site_files/"

    def file_output(self, file: StoredFile) -> str:
        path = self.package_path(file)
        if file.is_image:
            return f'<img src="{s(path)}" alt="{s(file.filename)}" />'
        return f'<a href="{s(path)}">{s(file.filename)}</a>'


class PlainHtmlFormat(IExportFormat):
    """HTML page without bundled files; attachments are listed by name only."""

    @property
    def format_class(self) -> ExportFormat:
        return ExportFormat.PLAINHTML

    def file_output(self, file: StoredFile) -> str:
        return f'<span class="filename">{s(file.filename)}</span>'
