"""
Tests for configuration loading and logging setup.
"""
import json
import logging

import pytest
import yaml

from coursekit.core.exceptions import ConfigurationError
from coursekit.utils.config_manager import ConfigManager, LoggingConfig, get_config, get_config_manager
from coursekit.utils.logger import setup_logging, setup_logging_from_config


class TestConfigManager:

    def test_defaults_without_file(self, temp_dir):
        manager = ConfigManager(temp_dir / "missing.yaml")

        assert manager.config.export.wwwroot == "http://localhost"
        assert manager.config.export.file_size_low == 1048576
        assert manager.config.export.db_records_moderate == 100
        assert manager.config.restore.include_userinfo is True
        assert not (temp_dir / "missing.yaml").exists()

    def test_create_default_writes_file(self, temp_dir):
        path = temp_dir / "coursekit.yaml"
        ConfigManager(path, create_default=True)

        data = yaml.safe_load(path.read_text(encoding='utf-8'))
        assert data['export']['leap2a_manifest'] == "leap2a.xml"

    def test_load_yaml(self, temp_dir):
        path = temp_dir / "coursekit.yaml"
        path.write_text(
            "export:\n  wwwroot: https://lms.example\n  db_records_low: 5\n"
            "restore:\n  include_userinfo: false\n",
            encoding='utf-8'
        )

        config = ConfigManager(path).config

        assert config.export.wwwroot == "https://lms.example"
        assert config.export.db_records_low == 5
        assert config.export.db_records_moderate == 100
        assert config.restore.include_userinfo is False

    def test_load_json(self, temp_dir):
        path = temp_dir / "coursekit.json"
        path.write_text(json.dumps({'storage': {'db_path': 'x.db'}}), encoding='utf-8')

        assert ConfigManager(path).config.storage.db_path == "x.db"

    def test_unknown_key_in_section(self, temp_dir):
        path = temp_dir / "coursekit.yaml"
        path.write_text("export:\n  colour: blue\n", encoding='utf-8')

        with pytest.raises(ConfigurationError) as exc_info:
            ConfigManager(path)
        assert exc_info.value.component == "export"

    def test_invalid_yaml(self, temp_dir):
        path = temp_dir / "coursekit.yaml"
        path.write_text("export: [unclosed\n", encoding='utf-8')

        with pytest.raises(ConfigurationError):
            ConfigManager(path)

    def test_unsupported_format(self, temp_dir):
        path = temp_dir / "coursekit.ini"
        path.write_text("[export]\n", encoding='utf-8')

        with pytest.raises(ConfigurationError):
            ConfigManager(path)

    def test_env_overrides(self, temp_dir, monkeypatch):
        monkeypatch.setenv("COURSEKIT_WWWROOT", "https://env.example")
        monkeypatch.setenv("COURSEKIT_DB_PATH", "env.db")

        config = ConfigManager(temp_dir / "missing.yaml").config

        assert config.export.wwwroot == "https://env.example"
        assert config.storage.db_path == "env.db"
        assert config.logging.log_level == "WARNING"

    def test_get_and_set(self, temp_dir):
        manager = ConfigManager(temp_dir / "missing.yaml")

        manager.set('export.db_records_low', 3)

        assert manager.get('export.db_records_low') == 3
        assert manager.get('export.nothing', 'fallback') == 'fallback'
        with pytest.raises(KeyError):
            manager.set('export.nothing', 1)

    def test_global_instance(self):
        assert get_config_manager() is get_config_manager()
        assert get_config() is get_config_manager().config


class TestLogging:

    def test_setup_logging_writes_file(self, temp_dir):
        logger = setup_logging(name="coursekit.test", log_dir=temp_dir, use_colors=False)

        logger.info("restore finished")
        for handler in logger.handlers:
            handler.flush()

        log_files = list(temp_dir.glob("*.log"))
        assert log_files
        assert "restore finished" in log_files[0].read_text(encoding='utf-8')

        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)

    def test_setup_from_config_section(self, temp_dir):
        config = LoggingConfig(log_dir=str(temp_dir), log_level="DEBUG", console_level="ERROR", use_colors=False)

        logger = setup_logging_from_config(config, name="coursekit.configured")

        assert logger.level == logging.DEBUG
        file_handler, console_handler = logger.handlers
        assert file_handler.level == logging.DEBUG
        assert console_handler.level == logging.ERROR
        assert (temp_dir / "coursekit.configured.log").exists()

        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)

    def test_module_loggers_propagate(self, caplog):
        with caplog.at_level(logging.WARNING, logger="coursekit"):
            logging.getLogger("coursekit.export.rendering").warning("degraded")
        assert "degraded" in caplog.text
