"""Tests for workbench config module."""

from pathlib import Path
from unittest.mock import patch

import pytest

from workbench.config import get_backup_dir, get_db_path
from workbench.config.settings import (
    backup_compression_enabled,
    get_env_var,
    validate_all_env_vars,
    validate_env_var,
)
from workbench.exceptions import ConfigurationError


def test_get_db_path_honours_env(tmp_path):
    assert get_db_path() == tmp_path / "workbench.db"


def test_get_db_path_default_creates_directory(tmp_path, monkeypatch):
    monkeypatch.delenv("WORKBENCH_DB")
    fake_config = tmp_path / "home" / ".config" / "workbench"
    with patch("workbench.config.settings.WORKBENCH_CONFIG_DIR", fake_config):
        db_path = get_db_path()
    assert db_path == fake_config / "workbench.db"
    assert db_path.parent.is_dir()


def test_get_backup_dir_honours_env(tmp_path):
    assert get_backup_dir() == tmp_path / "backups"


def test_get_backup_dir_default(monkeypatch):
    monkeypatch.delenv("WORKBENCH_BACKUP_DIR")
    assert get_backup_dir() == Path.home() / ".config" / "workbench" / "backups"


class TestEnvValidation:
    def test_valid_values(self):
        assert validate_env_var("WORKBENCH_LOG_LEVEL", "debug") == (True, None)
        assert validate_env_var("WORKBENCH_LOG_LEVEL", None) == (True, None)
        assert validate_env_var("SOMETHING_ELSE", "x") == (True, None)

    def test_invalid_value(self):
        ok, error = validate_env_var("WORKBENCH_LOG_LEVEL", "LOUD")
        assert not ok
        assert "LOUD" in error

    def test_validate_all(self, monkeypatch):
        monkeypatch.setenv("WORKBENCH_BACKUP_COMPRESS", "maybe")
        errors = validate_all_env_vars()
        assert len(errors) == 1
        assert "WORKBENCH_BACKUP_COMPRESS" in errors[0]

    def test_get_env_var_raises_on_invalid(self, monkeypatch):
        monkeypatch.setenv("WORKBENCH_LOG_LEVEL", "LOUD")
        with pytest.raises(ConfigurationError):
            get_env_var("WORKBENCH_LOG_LEVEL")
        assert get_env_var("WORKBENCH_LOG_LEVEL", validate=False) == "LOUD"

    def test_get_env_var_default(self, monkeypatch):
        monkeypatch.delenv("WORKBENCH_LOG_LEVEL", raising=False)
        assert get_env_var("WORKBENCH_LOG_LEVEL") == "WARNING"

    def test_compression_flag(self, monkeypatch):
        monkeypatch.setenv("WORKBENCH_BACKUP_COMPRESS", "1")
        assert backup_compression_enabled()
        monkeypatch.setenv("WORKBENCH_BACKUP_COMPRESS", "false")
        assert not backup_compression_enabled()
