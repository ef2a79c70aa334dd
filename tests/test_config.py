"""
Tests for Config — layered project configuration

These tests validate:
- Config hierarchy (env > project > user > defaults)
- Section validation
- set/get round trips through YAML files

User config paths are redirected to tmp_path by the autouse fixture.
"""

import logging

import pytest

from protolens.config import (
    Config,
    BundlerConfig,
    DocumentsConfig,
    LoggingConfig,
    ConfigManager,
    DEFAULT_EXTERNALS,
)


class TestSections:
    """Per-section validation."""

    def test_defaults_valid(self):
        """Default config validates."""
        assert Config().validate() is None

    def test_default_externals_keep_frameworks_outside(self):
        """React and the component library are never bundled."""
        config = BundlerConfig()
        assert "react" in config.externals
        assert "@mui/*" in config.externals
        assert config.externals is not DEFAULT_EXTERNALS

    def test_timeout_must_be_positive(self):
        error = BundlerConfig(timeout=0).validate()
        assert "timeout" in error

    def test_overlay_file_is_a_name(self):
        error = DocumentsConfig(overlay_file="sub/overlay.json").validate()
        assert "Invalid overlay file name" in error

    def test_unknown_log_level(self):
        error = LoggingConfig(level="LOUD").validate()
        assert "Unknown log level" in error

    def test_round_trip_dict(self):
        config = Config(bundler=BundlerConfig(executable="/bin/esbuild", timeout=5))
        assert Config.from_dict(config.to_dict()) == config


class TestConfigManager:
    """Configuration loading and saving."""

    def test_load_defaults(self, tmp_path):
        """Loads defaults when no config files exist."""
        config = ConfigManager(tmp_path).load()

        assert config.documents.root == "prototypes"
        assert config.bundler.executable == "esbuild"

    def test_save_and_load_project(self, tmp_path):
        """Saves and loads project config."""
        ConfigManager(tmp_path).save_project(Config(documents=DocumentsConfig(root="designs")))

        loaded = ConfigManager(tmp_path).load()

        assert loaded.documents.root == "designs"

    def test_project_overrides_user(self, tmp_path, isolated_config):
        """Project config takes priority over user config."""
        isolated_config.mkdir(parents=True)
        (isolated_config / "config.yaml").write_text("bundler:\n  executable: user-esbuild\n  timeout: 9\n")

        project = tmp_path / "project"
        (project / ".protolens").mkdir(parents=True)
        (project / ".protolens" / "config.yaml").write_text("bundler:\n  executable: project-esbuild\n")

        config = ConfigManager(project).load()

        # Project wins, user values for other settings survive the merge
        assert config.bundler.executable == "project-esbuild"
        assert config.bundler.timeout == 9.0

    def test_environment_overrides_files(self, tmp_path, monkeypatch):
        """Environment variables override config files."""
        (tmp_path / ".protolens").mkdir()
        (tmp_path / ".protolens" / "config.yaml").write_text("documents:\n  root: designs\n")
        monkeypatch.setenv("PROTOLENS_DOCUMENTS_DIR", "/srv/prototypes")
        monkeypatch.setenv("PROTOLENS_BUNDLE_TIMEOUT", "12.5")
        monkeypatch.setenv("PROTOLENS_LOG_LEVEL", "DEBUG")

        config = ConfigManager(tmp_path).load()

        assert config.documents.root == "/srv/prototypes"
        assert config.bundler.timeout == 12.5
        assert config.logging.level == "DEBUG"

    def test_bad_timeout_env_ignored(self, tmp_path, monkeypatch, caplog):
        monkeypatch.setenv("PROTOLENS_BUNDLE_TIMEOUT", "soon")

        with caplog.at_level(logging.WARNING, logger="protolens.config"):
            config = ConfigManager(tmp_path).load()

        assert config.bundler.timeout == 30.0
        assert "PROTOLENS_BUNDLE_TIMEOUT" in caplog.text

    def test_unreadable_yaml_ignored(self, tmp_path, caplog):
        (tmp_path / ".protolens").mkdir()
        (tmp_path / ".protolens" / "config.yaml").write_text("documents: [unclosed\n")

        with caplog.at_level(logging.WARNING, logger="protolens.config"):
            config = ConfigManager(tmp_path).load()

        assert config.documents.root == "prototypes"
        assert "Ignoring unreadable config" in caplog.text

    def test_documents_root_resolved(self, tmp_path, monkeypatch):
        manager = ConfigManager(tmp_path)
        assert manager.documents_root == tmp_path / "prototypes"

        monkeypatch.setenv("PROTOLENS_DOCUMENTS_DIR", str(tmp_path / "elsewhere"))
        assert ConfigManager(tmp_path).documents_root == tmp_path / "elsewhere"

    def test_set_valid_config(self, tmp_path):
        """Can set valid configuration values."""
        manager = ConfigManager(tmp_path)

        assert manager.set("bundler.timeout", "45") is None
        assert manager.set("bundler.externals", "react, preact") is None

        config = ConfigManager(tmp_path).load()
        assert config.bundler.timeout == 45.0
        assert config.bundler.externals == ["react", "preact"]

    def test_set_user_scope(self, tmp_path, isolated_config):
        manager = ConfigManager(tmp_path)

        assert manager.set("logging.level", "info", scope="user") is None

        assert (isolated_config / "config.yaml").exists()
        assert ConfigManager(tmp_path).load().logging.level == "INFO"

    @pytest.mark.parametrize("key,value,message", [
        ("invalid", "value", "Invalid key format"),
        ("bundler.timeout", "soon", "must be a number"),
        ("bundler.timeout", "-1", "must be > 0"),
        ("bundler.speed", "fast", "Unknown bundler setting"),
        ("llm.provider", "x", "Unknown section"),
    ])
    def test_set_errors(self, tmp_path, key, value, message):
        """Set returns error messages instead of raising."""
        error = ConfigManager(tmp_path).set(key, value)

        assert message in error
        assert not (tmp_path / ".protolens" / "config.yaml").exists()

    def test_get_config_value(self, tmp_path):
        """Can get configuration values."""
        manager = ConfigManager(tmp_path)
        manager.set("documents.root", "designs")

        assert manager.get("documents.root") == "designs"
        assert manager.get("bundler.externals") == ",".join(DEFAULT_EXTERNALS)
        assert manager.get("bundler.unknown") is None
