"""
Shared pytest fixtures for the protolens test suite.

Every test runs with a private user config directory and without
PROTOLENS_* environment variables, so a developer's own settings never
leak into results.

Usage in tests:
    def test_something(docs):
        docs.create("checkout")
        result = docs.pipeline().copy("checkout")
"""

import pytest

from protolens.config import ConfigManager
from tests.factories import DocumentFactory

ENV_VARS = (
    "PROTOLENS_DOCUMENTS_DIR",
    "PROTOLENS_ESBUILD",
    "PROTOLENS_BUNDLE_TIMEOUT",
    "PROTOLENS_LOG_LEVEL",
    "PROTOLENS_PROJECT_PATH",
)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the user config at tmp_path and clear PROTOLENS_* variables."""
    user_dir = tmp_path / "home" / ".protolens"
    monkeypatch.setattr(ConfigManager, "USER_CONFIG_DIR", user_dir)
    monkeypatch.setattr(ConfigManager, "USER_CONFIG_FILE", user_dir / "config.yaml")
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return user_dir


@pytest.fixture
def project_dir(tmp_path):
    """Project directory whose documents live in the default ``prototypes``."""
    directory = tmp_path / "project"
    directory.mkdir()
    return directory


@pytest.fixture
def docs(project_dir):
    """Empty DocumentFactory rooted at <project>/prototypes."""
    return DocumentFactory(project_dir / "prototypes")


@pytest.fixture
def checkout(docs):
    """DocumentFactory holding the sample ``checkout`` document."""
    docs.create("checkout")
    return docs
