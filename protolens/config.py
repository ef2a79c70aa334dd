"""
Configuration — Centralized settings management

Config hierarchy (highest to lowest priority):
  1. Environment variables (PROTOLENS_*)
  2. Project config (.protolens/config.yaml)
  3. User config (~/.protolens/config.yaml)
  4. Defaults
"""

import logging
import os
import yaml
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List

from .core.overlay import OVERLAY_FILE_NAME


DEFAULT_EXTERNALS = [
    "react",
    "react-dom",
    "react/jsx-runtime",
    "@mui/*",
    "@emotion/*",
]

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class DocumentsConfig:
    """Where documents live."""
    root: str = "prototypes"
    overlay_file: str = OVERLAY_FILE_NAME

    def validate(self) -> Optional[str]:
        """Validate config. Returns error message or None if valid."""
        if not self.root:
            return "documents.root must not be empty"
        if not self.overlay_file or "/" in self.overlay_file:
            return f"Invalid overlay file name '{self.overlay_file}'"
        return None


@dataclass
class BundlerConfig:
    """esbuild invocation settings."""
    executable: str = "esbuild"
    externals: List[str] = field(default_factory=lambda: list(DEFAULT_EXTERNALS))
    timeout: float = 30.0
    jsx_import_source: str = "react"

    def validate(self) -> Optional[str]:
        """Validate config. Returns error message or None if valid."""
        if self.timeout <= 0:
            return "bundler.timeout must be > 0"
        if not self.executable:
            return "bundler.executable must not be empty"
        return None


@dataclass
class LoggingConfig:
    level: str = "WARNING"

    def validate(self) -> Optional[str]:
        if self.level.upper() not in LOG_LEVELS:
            return f"Unknown log level '{self.level}'. Valid: {', '.join(LOG_LEVELS)}"
        return None


@dataclass
class Config:
    """Application configuration."""
    documents: DocumentsConfig = field(default_factory=DocumentsConfig)
    bundler: BundlerConfig = field(default_factory=BundlerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> Optional[str]:
        for section in (self.documents, self.bundler, self.logging):
            error = section.validate()
            if error:
                return error
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "documents": {
                "root": self.documents.root,
                "overlay_file": self.documents.overlay_file,
            },
            "bundler": {
                "executable": self.bundler.executable,
                "externals": list(self.bundler.externals),
                "timeout": self.bundler.timeout,
                "jsx_import_source": self.bundler.jsx_import_source,
            },
            "logging": {
                "level": self.logging.level,
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Config':
        """Create from dictionary."""
        documents_data = data.get("documents", {})
        bundler_data = data.get("bundler", {})
        logging_data = data.get("logging", {})

        return cls(
            documents=DocumentsConfig(
                root=documents_data.get("root", "prototypes"),
                overlay_file=documents_data.get("overlay_file", OVERLAY_FILE_NAME),
            ),
            bundler=BundlerConfig(
                executable=bundler_data.get("executable", "esbuild"),
                externals=list(bundler_data.get("externals", DEFAULT_EXTERNALS)),
                timeout=float(bundler_data.get("timeout", 30.0)),
                jsx_import_source=bundler_data.get("jsx_import_source", "react"),
            ),
            logging=LoggingConfig(
                level=str(logging_data.get("level", "WARNING")),
            ),
        )


class ConfigManager:
    """
    Manages configuration loading and persistence.

    Hierarchy:
      1. Environment variables
      2. Project config (.protolens/config.yaml)
      3. User config (~/.protolens/config.yaml)
      4. Defaults
    """

    USER_CONFIG_DIR = Path.home() / ".protolens"
    USER_CONFIG_FILE = USER_CONFIG_DIR / "config.yaml"
    PROJECT_CONFIG_DIR = ".protolens"
    PROJECT_CONFIG_FILE = "config.yaml"

    def __init__(self, project_dir: Optional[Path] = None):
        self.project_dir = Path(project_dir) if project_dir else Path.cwd()
        self._config: Optional[Config] = None

    @property
    def project_config_path(self) -> Path:
        return self.project_dir / self.PROJECT_CONFIG_DIR / self.PROJECT_CONFIG_FILE

    @property
    def user_config_path(self) -> Path:
        return self.USER_CONFIG_FILE

    def load(self) -> Config:
        """Load configuration from all sources."""
        if self._config is not None:
            return self._config

        config_data: Dict[str, Any] = {}

        # Layer 1: User config
        config_data = self._merge(config_data, self._read_yaml(self.user_config_path))

        # Layer 2: Project config (higher priority)
        config_data = self._merge(config_data, self._read_yaml(self.project_config_path))

        # Layer 3: Environment overrides
        if os.environ.get("PROTOLENS_DOCUMENTS_DIR"):
            config_data.setdefault("documents", {})["root"] = os.environ["PROTOLENS_DOCUMENTS_DIR"]
        if os.environ.get("PROTOLENS_ESBUILD"):
            config_data.setdefault("bundler", {})["executable"] = os.environ["PROTOLENS_ESBUILD"]
        if os.environ.get("PROTOLENS_BUNDLE_TIMEOUT"):
            try:
                timeout = float(os.environ["PROTOLENS_BUNDLE_TIMEOUT"])
                config_data.setdefault("bundler", {})["timeout"] = timeout
            except ValueError:
                logging.getLogger(__name__).warning(
                    "Ignoring non-numeric PROTOLENS_BUNDLE_TIMEOUT=%s",
                    os.environ["PROTOLENS_BUNDLE_TIMEOUT"],
                )
        if os.environ.get("PROTOLENS_LOG_LEVEL"):
            config_data.setdefault("logging", {})["level"] = os.environ["PROTOLENS_LOG_LEVEL"]

        self._config = Config.from_dict(config_data)
        return self._config

    def _read_yaml(self, path: Path) -> Dict[str, Any]:
        if not path.exists():
            return {}
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logging.getLogger(__name__).warning("Ignoring unreadable config %s: %s", path, e)
            return {}
        return data if isinstance(data, dict) else {}

    @property
    def documents_root(self) -> Path:
        """Documents root resolved against the project directory."""
        root = Path(self.load().documents.root).expanduser()
        return root if root.is_absolute() else self.project_dir / root

    def save_project(self, config: Config):
        """Save configuration to project config file."""
        self.project_config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.project_config_path, 'w') as f:
            yaml.dump(config.to_dict(), f, default_flow_style=False)

        self._config = config

    def save_user(self, config: Config):
        """Save configuration to user config file."""
        self.USER_CONFIG_DIR.mkdir(parents=True, exist_ok=True)

        with open(self.user_config_path, 'w') as f:
            yaml.dump(config.to_dict(), f, default_flow_style=False)

        self._config = config

    def set(self, key: str, value: str, scope: str = "project") -> Optional[str]:
        """
        Set a configuration value.

        Args:
            key: Dot-separated key (e.g., "bundler.timeout")
            value: Value to set
            scope: "project" or "user"

        Returns:
            Error message or None if successful
        """
        config = self.load()

        parts = key.split(".")
        if len(parts) != 2:
            return f"Invalid key format: {key}. Use 'section.setting' (e.g., 'bundler.timeout')"

        section, setting = parts

        if section == "documents":
            if setting == "root":
                config.documents.root = value
            elif setting == "overlay_file":
                config.documents.overlay_file = value
            else:
                return f"Unknown documents setting: {setting}. Valid: root, overlay_file"
        elif section == "bundler":
            if setting == "executable":
                config.bundler.executable = value
            elif setting == "timeout":
                try:
                    config.bundler.timeout = float(value)
                except ValueError:
                    return f"bundler.timeout must be a number, got '{value}'"
            elif setting == "externals":
                config.bundler.externals = [item.strip() for item in value.split(",") if item.strip()]
            elif setting == "jsx_import_source":
                config.bundler.jsx_import_source = value
            else:
                return (
                    f"Unknown bundler setting: {setting}. "
                    "Valid: executable, timeout, externals, jsx_import_source"
                )
        elif section == "logging":
            if setting == "level":
                config.logging.level = value.upper()
            else:
                return f"Unknown logging setting: {setting}. Valid: level"
        else:
            return f"Unknown section: {section}. Valid: documents, bundler, logging"

        error = config.validate()
        if error:
            return error

        if scope == "project":
            self.save_project(config)
        else:
            self.save_user(config)

        return None

    def get(self, key: str) -> Optional[str]:
        """Get a configuration value."""
        parts = key.split(".")
        if len(parts) != 2:
            return None

        section, setting = parts
        data = self.load().to_dict().get(section, {})
        if setting not in data:
            return None
        value = data[setting]
        if isinstance(value, list):
            return ",".join(value)
        return str(value)

    def _merge(self, base: Dict, override: Dict) -> Dict:
        """Deep merge two dicts, override wins."""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge(result[key], value)
            else:
                result[key] = value
        return result


def configure_logging(level: str = "WARNING") -> None:
    """Root logging setup for command-line use."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )


# Convenience function
def get_config(project_dir: Optional[Path] = None) -> Config:
    """Load configuration for a project."""
    return ConfigManager(project_dir).load()
