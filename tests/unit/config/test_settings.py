"""Unit tests for Settings class and get_settings function."""

from pathlib import Path

import pytest

from chronicle.config import get_settings, reload_settings
from chronicle.config.settings import Settings, set_toml_config


class TestSettings:
    """Tests for Settings model."""

    def test_default_values(self) -> None:
        """Settings has sensible defaults."""
        settings = Settings()
        assert settings.app_name == "chronicle"
        assert settings.observability.logging.level == "INFO"

    def test_audit_defaults(self) -> None:
        """Audit configuration has defaults."""
        audit = Settings().audit
        assert audit.enabled is True
        assert audit.record_exceptions is True
        assert audit.skip_insert_data is True
        assert audit.excluded_types == []
        assert audit.excluded_fields == []
        assert audit.unloggable_exception_types == [
            "chronicle.audit.errors.PersistenceUnavailableError"
        ]

    def test_observability_defaults(self) -> None:
        """Observability configuration has defaults."""
        settings = Settings()
        assert settings.observability.logging.format == "json"
        assert settings.observability.metrics.enabled is True

    def test_toml_values(self) -> None:
        """Loaded TOML values override code defaults."""
        set_toml_config({"audit": {"skip_insert_data": False}})
        assert Settings().audit.skip_insert_data is False

    def test_env_overrides_toml(self, env_override) -> None:
        """CHRONICLE_* variables win over TOML."""
        set_toml_config({"audit": {"record_exceptions": True}})
        with env_override({"CHRONICLE_AUDIT__RECORD_EXCEPTIONS": "false"}):
            assert Settings().audit.record_exceptions is False

    def test_invalid_log_level(self) -> None:
        """Unknown log levels are rejected."""
        set_toml_config({"observability": {"logging": {"level": "VERBOSE"}}})
        with pytest.raises(ValueError):
            Settings()

    def test_unknown_top_level_keys_ignored(self) -> None:
        """Stray keys in TOML do not break loading."""
        set_toml_config({"debug": True})
        assert not hasattr(Settings(), "debug")


class TestGetSettings:
    """Tests for get_settings function."""

    @pytest.fixture
    def configured(self, test_config_dir: Path, mock_toml_files, monkeypatch: pytest.MonkeyPatch) -> Path:
        mock_toml_files({
            "default.toml": "app_name = 'ledger'\n[audit]\nskip_insert_data = true\n",
            "testing.toml": "[audit]\nskip_insert_data = false\n",
        })
        monkeypatch.setenv("CHRONICLE_CONFIG_DIR", str(test_config_dir))
        monkeypatch.setenv("CHRONICLE_ENV", "testing")
        return test_config_dir

    def test_loads_files(self, configured: Path) -> None:
        """get_settings merges the default and environment files."""
        settings = get_settings()
        assert settings.app_name == "ledger"
        assert settings.audit.skip_insert_data is False

    def test_settings_cached(self, configured: Path) -> None:
        """get_settings returns the cached instance."""
        assert get_settings() is get_settings()

    def test_reload_settings(self, configured: Path, mock_toml_files) -> None:
        """reload_settings picks up changed files."""
        first = get_settings()
        mock_toml_files({"testing.toml": "[audit]\nenabled = false\n"})

        reloaded = reload_settings()

        assert reloaded is not first
        assert reloaded.audit.enabled is False
