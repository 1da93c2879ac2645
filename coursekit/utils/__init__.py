"""Utility functions."""
from .config_manager import ConfigManager, AppConfig, get_config_manager, get_config
from .logger import setup_logging, setup_logging_from_config, get_logger
from .strings import get_string
from .text import format_text, rewrite_pluginfile_urls, clean_filename, s

__all__ = [
    "ConfigManager", "AppConfig", "get_config_manager", "get_config",
    "setup_logging", "setup_logging_from_config", "get_logger",
    "get_string",
    "format_text", "rewrite_pluginfile_urls", "clean_filename", "s",
]
