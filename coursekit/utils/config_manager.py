"""
Configuration manager for loading and saving settings from YAML/JSON files.
"""
import yaml
import json
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass, field, asdict
import os
from dotenv import load_dotenv

from ..core.exceptions import ConfigurationError


@dataclass
class ExportConfig:
    """Configuration for glossary export."""
    wwwroot: str = "http://localhost"
    export_dir: str = "exports"
    leap2a_manifest: str = "leap2a.xml"

    # Total attached-file bytes below which an export is LOW / MODERATE
    file_size_low: int = 1_048_576
    file_size_moderate: int = 5_242_880

    # Record counts below which an export is LOW / MODERATE
    db_records_low: int = 10
    db_records_moderate: int = 100


@dataclass
class RestoreConfig:
    """Configuration for backup restore."""
    include_userinfo: bool = True


@dataclass
class StorageConfig:
    """Configuration for the reference SQLite store."""
    db_path: str = "data/coursekit.db"


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    log_dir: str = "logs"
    log_level: str = "INFO"
    console_level: str = "INFO"
    max_bytes: int = 10_000_000
    backup_count: int = 5
    use_colors: bool = True


@dataclass
class AppConfig:
    """Main application configuration."""
    export: ExportConfig = field(default_factory=ExportConfig)
    restore: RestoreConfig = field(default_factory=RestoreConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


_SECTIONS = {
    'export': ExportConfig,
    'restore': RestoreConfig,
    'storage': StorageConfig,
    'logging': LoggingConfig,
}


class ConfigManager:
    """
    Configuration manager for loading/saving settings.
    Supports YAML and JSON formats, environment variables, and defaults.
    """

    def __init__(self, config_path: Optional[Path] = None, create_default: bool = False):
        """
        Initialize config manager.

        Args:
            config_path: Path to config file (YAML or JSON)
            create_default: Write a default config file when none exists
        """
        self.config_path = Path(config_path) if config_path else Path("coursekit.yaml")
        self.config: AppConfig = AppConfig()

        # Load environment variables
        load_dotenv()

        if self.config_path.exists():
            self.load()
        else:
            if create_default:
                self.save()
            self._apply_env_vars()

    def load(self) -> AppConfig:
        """
        Load configuration from file.

        Returns:
            AppConfig instance

        Raises:
            ConfigurationError: Unsupported format or invalid section
        """
        if not self.config_path.exists():
            return self.config

        if self.config_path.suffix in ['.yaml', '.yml']:
            data = self._load_yaml()
        elif self.config_path.suffix == '.json':
            data = self._load_json()
        else:
            raise ConfigurationError(
                f"Unsupported config format: {self.config_path.suffix}",
                component=str(self.config_path)
            )

        self.config = self._parse_config(data)
        self._apply_env_vars()

        return self.config

    def save(self, config: Optional[AppConfig] = None):
        """
        Save configuration to file.

        Args:
            config: Config to save (uses current if None)
        """
        if config:
            self.config = config

        data = asdict(self.config)

        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        if self.config_path.suffix in ['.yaml', '.yml']:
            self._save_yaml(data)
        elif self.config_path.suffix == '.json':
            self._save_json(data)
        else:
            raise ConfigurationError(
                f"Unsupported config format: {self.config_path.suffix}",
                component=str(self.config_path)
            )

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by dot notation key.

        Args:
            key: Configuration key (e.g., 'export.wwwroot')
            default: Default value if key not found

        Returns:
            Configuration value
        """
        value = self.config

        for part in key.split('.'):
            if hasattr(value, part):
                value = getattr(value, part)
            else:
                return default

        return value

    def set(self, key: str, value: Any):
        """Set configuration value by dot notation key."""
        parts = key.split('.')
        obj = self.config

        for part in parts[:-1]:
            if hasattr(obj, part):
                obj = getattr(obj, part)
            else:
                raise KeyError(f"Invalid config key: {key}")

        if not hasattr(obj, parts[-1]):
            raise KeyError(f"Invalid config key: {key}")

        setattr(obj, parts[-1], value)

    def _load_yaml(self) -> Dict[str, Any]:
        with open(self.config_path, 'r', encoding='utf-8') as f:
            try:
                return yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(
                    f"Invalid YAML: {e}", component=str(self.config_path)
                ) from e

    def _load_json(self) -> Dict[str, Any]:
        with open(self.config_path, 'r', encoding='utf-8') as f:
            try:
                return json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigurationError(
                    f"Invalid JSON: {e}", component=str(self.config_path)
                ) from e

    def _save_yaml(self, data: Dict[str, Any]):
        with open(self.config_path, 'w', encoding='utf-8') as f:
            yaml.dump(data, f, default_flow_style=False, allow_unicode=True, indent=2)

    def _save_json(self, data: Dict[str, Any]):
        with open(self.config_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

    def _parse_config(self, data: Dict[str, Any]) -> AppConfig:
        """Parse dictionary to AppConfig."""
        if not isinstance(data, dict):
            raise ConfigurationError("Config root must be a mapping", component=str(self.config_path))

        config = AppConfig()

        for name, section_cls in _SECTIONS.items():
            if name not in data:
                continue
            try:
                setattr(config, name, section_cls(**(data[name] or {})))
            except TypeError as e:
                raise ConfigurationError(
                    f"Invalid '{name}' section: {e}", component=name
                ) from e

        return config

    def _apply_env_vars(self):
        """Override config with environment variables."""
        if os.getenv('COURSEKIT_WWWROOT'):
            self.config.export.wwwroot = os.getenv('COURSEKIT_WWWROOT')

        if os.getenv('COURSEKIT_EXPORT_DIR'):
            self.config.export.export_dir = os.getenv('COURSEKIT_EXPORT_DIR')

        if os.getenv('COURSEKIT_DB_PATH'):
            self.config.storage.db_path = os.getenv('COURSEKIT_DB_PATH')

        if os.getenv('LOG_LEVEL'):
            self.config.logging.log_level = os.getenv('LOG_LEVEL')


# ===== Global Config Instance =====

_config_manager: Optional[ConfigManager] = None


def get_config_manager(config_path: Optional[Path] = None) -> ConfigManager:
    """
    Get global config manager instance.

    Args:
        config_path: Path to config file

    Returns:
        ConfigManager instance
    """
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager(config_path)
    return _config_manager


def get_config() -> AppConfig:
    """Get current application configuration."""
    return get_config_manager().config


def reset_config_manager() -> None:
    """Drop the global instance so the next access reloads."""
    global _config_manager
    _config_manager = None
