"""
Logging setup.

Every module logs through ``logging.getLogger(__name__)``, so configuring
the ``coursekit`` logger covers the export callers and the restore step.
"""
import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Optional

from .config_manager import LoggingConfig


FILE_FORMAT = '[%(asctime)s] %(levelname)-8s %(name)s - %(message)s'
CONSOLE_FORMAT = '[%(levelname)s] %(message)s'


class ColoredFormatter(logging.Formatter):
    """Console formatter that colours the level name."""

    COLORS = {
        logging.DEBUG: '\033[36m',
        logging.INFO: '\033[32m',
        logging.WARNING: '\033[33m',
        logging.ERROR: '\033[31m',
        logging.CRITICAL: '\033[35m',
    }
    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        color = self.COLORS.get(record.levelno)
        if color is None:
            return line
        return line.replace(record.levelname, f"{color}{record.levelname}{self.RESET}", 1)


def _level(name: str) -> int:
    return getattr(logging, str(name).upper(), logging.INFO)


def setup_logging(
    name: str = "coursekit",
    log_dir: Path = Path("logs"),
    log_level: str = "INFO",
    console_level: str = "INFO",
    use_colors: bool = True,
    max_bytes: int = 10_000_000,
    backup_count: int = 5
) -> logging.Logger:
    """
    Attach a rotating file handler and a console handler to ``name``.

    Calling it again for a logger that already has handlers is a no-op.

    Args:
        name: Logger name; ``coursekit`` covers every module logger
        log_dir: Directory for ``<name>.log``
        log_level: File log level
        console_level: Console log level
        use_colors: Colour level names when stdout is a terminal
        max_bytes: Size at which the log file rotates
        backup_count: Rotated files kept

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(min(_level(log_level), _level(console_level)))

    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    file_handler = RotatingFileHandler(
        log_dir / f"{name}.log",
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8"
    )
    file_handler.setLevel(_level(log_level))
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
    logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(_level(console_level))
    formatter_class = ColoredFormatter if use_colors and sys.stdout.isatty() else logging.Formatter
    console_handler.setFormatter(formatter_class(CONSOLE_FORMAT))
    logger.addHandler(console_handler)

    logger.debug(f"Logging to {log_dir / f'{name}.log'}")
    return logger


def setup_logging_from_config(config: Optional[LoggingConfig] = None, name: str = "coursekit") -> logging.Logger:
    """Setup logging from the ``logging`` config section."""
    config = config or LoggingConfig()
    return setup_logging(
        name=name,
        log_dir=Path(config.log_dir),
        log_level=config.log_level,
        console_level=config.console_level,
        use_colors=config.use_colors,
        max_bytes=config.max_bytes,
        backup_count=config.backup_count,
    )


def get_logger(name: str) -> logging.Logger:
    """Get or create logger."""
    return logging.getLogger(name)
