"""
Format registry: maps a format class to the factory that builds it.

The host selects one format per export run; callers only ever see the
resulting ``IExportFormat`` instance.
"""
import threading
from typing import Any, Callable, Dict, List, Optional
import logging

from ..core.exceptions import UnsupportedFormatError
from ..core.interfaces import IExportFormat
from ..core.models import ExportFormat
from .html_format import RichHtmlFormat, PlainHtmlFormat
from .leap2a import Leap2AFormat
from .spreadsheet import SpreadsheetFormat
from ..utils.config_manager import get_config


logger = logging.getLogger(__name__)

FormatFactory = Callable[..., IExportFormat]


class FormatRegistry:
    """Thread-safe registry of export format factories."""

    def __init__(self):
        self._registry: Dict[ExportFormat, FormatFactory] = {}
        self._lock = threading.RLock()

    def register(self, format_class: ExportFormat, factory: FormatFactory) -> None:
        with self._lock:
            self._registry[format_class] = factory
        logger.debug(f"Registered export format: {format_class.value}")

    def has(self, format_class: ExportFormat) -> bool:
        with self._lock:
            return format_class in self._registry

    def list_formats(self) -> List[ExportFormat]:
        with self._lock:
            return list(self._registry)

    def create(self, format_class: Any, **options: Any) -> IExportFormat:
        """
        Build the format registered for ``format_class``.

        Args:
            format_class: ExportFormat or its string value
            **options: Passed to the factory (e.g. wwwroot for Leap2A)

        Raises:
            UnsupportedFormatError: Unknown format class
        """
        try:
            key = ExportFormat(format_class)
        except ValueError:
            raise UnsupportedFormatError(
                f"Unknown export format: {format_class}", format_class=str(format_class)
            )

        with self._lock:
            factory = self._registry.get(key)

        if factory is None:
            raise UnsupportedFormatError(
                f"No format registered for {key.value}", format_class=key.value
            )

        return factory(**options)


def _leap2a_factory(wwwroot: Optional[str] = None, manifest: Optional[str] = None, export_id: str = "", **_: Any) -> Leap2AFormat:
    export_config = get_config().export
    return Leap2AFormat(
        wwwroot=wwwroot or export_config.wwwroot,
        manifest=manifest or export_config.leap2a_manifest,
        export_id=export_id,
    )


def create_default_registry() -> FormatRegistry:
    registry = FormatRegistry()
    registry.register(ExportFormat.SPREADSHEET, lambda **_: SpreadsheetFormat())
    registry.register(ExportFormat.LEAP2A, _leap2a_factory)
    registry.register(ExportFormat.RICHHTML, lambda **_: RichHtmlFormat())
    registry.register(ExportFormat.PLAINHTML, lambda **_: PlainHtmlFormat())
    return registry


_default_registry: Optional[FormatRegistry] = None


def get_format_registry() -> FormatRegistry:
    global _default_registry
    if _default_registry is None:
        _default_registry = create_default_registry()
    return _default_registry
