"""
Directory-backed export target.

Assembles a portfolio package as a plain directory: generated files at the
top level, copied files under the format's file directory. Every write goes
through a temp file and an atomic rename so a failed export never leaves a
half-written file behind.
"""
from pathlib import Path
from typing import List, Optional, Union
import logging
import uuid

from ..core.exceptions import OutputError
from ..core.interfaces import IExportFormat, IPortfolioExporter
from ..core.models import StoredFile
from ..utils.config_manager import get_config
from ..utils.text import clean_filename


logger = logging.getLogger(__name__)


class DirectoryExporter(IPortfolioExporter):
    """Writes one export package into ``base_dir``."""

    def __init__(self, fmt: IExportFormat, base_dir: Optional[Union[str, Path]] = None):
        self._format = fmt
        self.base_dir = Path(base_dir) if base_dir else Path(get_config().export.export_dir)
        self.written: List[Path] = []

    @property
    def format(self) -> IExportFormat:
        return self._format

    def write_new_file(
        self,
        content: Union[str, bytes],
        filename: str,
        binary: bool = True
    ) -> Path:
        """
        Write generated content into the package root.

        Args:
            content: File body; text is encoded as UTF-8
            filename: Target name, cleaned before use
            binary: False marks ``content`` as text; bytes are written as-is
                    either way

        Returns:
            Path of the written file
        """
        data = content.encode('utf-8') if isinstance(content, str) else bytes(content)

        output_path = self.base_dir / clean_filename(filename)
        self._save_atomic(data, output_path)
        logger.debug(f"Wrote {output_path} ({len(data)} bytes)")
        return output_path

    def copy_existing_file(self, file: StoredFile) -> Path:
        """
        Copy a stored file to its package path.

        Raises:
            OutputError: The filename is not a plain name, or another file
                         was already copied to the same path
        """
        if file.filename in ('', '.', '..') or Path(file.filename).name != file.filename or '\\' in file.filename:
            raise OutputError(f"Unsafe filename in package: {file.filename!r}", file_id=file.id)

        output_path = self.base_dir / self._format.package_path(file)
        if output_path in self.written:
            raise OutputError(
                f"File already exists in package: {self._format.package_path(file)}",
                output_path=str(output_path), file_id=file.id
            )
        self._save_atomic(file.get_content(), output_path)
        logger.debug(f"Copied file {file.id} to {output_path}")
        return output_path

    def _save_atomic(self, data: bytes, output_path: Path) -> None:
        """
        Atomic save using temp file to prevent corruption.

        Raises:
            OutputError: If save fails
        """
        output_path.parent.mkdir(parents=True, exist_ok=True)

        # Create temp file in same directory
        temp_path = output_path.with_name(f'.tmp_{uuid.uuid4().hex[:8]}_{output_path.name}')

        try:
            temp_path.write_bytes(data)
            # Atomic rename - after this, temp_path no longer exists
            temp_path.replace(output_path)
        except OSError as e:
            if temp_path.exists():
                try:
                    temp_path.unlink()
                except OSError as cleanup_error:
                    logger.warning(f"Failed to cleanup temp file {temp_path}: {cleanup_error}")
            raise OutputError(f"Failed to write {output_path.name}: {e}", output_path=str(output_path)) from e

        self.written.append(output_path)
