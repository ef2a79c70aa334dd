"""
Dialect Registry — picks the dialect a component source is parsed with.

Extensions map to dialects; anything unknown, including in-memory sources
with no path at all, falls back to the registry's default dialect.

Usage:
    registry = DialectRegistry(default=TSX_DIALECT)
    registry.register(JSX_DIALECT)

    registry.resolve(Path("prototypes/demo/index.jsx"))  # JSX_DIALECT
    registry.resolve(None)                               # TSX_DIALECT
"""

from pathlib import Path
from typing import Dict, Optional

from .config import DialectConfig


class DialectRegistry:

    def __init__(self, default: Optional[DialectConfig] = None):
        self.default = default
        self._by_extension: Dict[str, DialectConfig] = {}

    def register(self, config: DialectConfig) -> None:
        """
        Route the dialect's extensions to it.

        Raises:
            ValueError: If an extension already belongs to another dialect
        """
        for ext in config.extensions:
            existing = self._by_extension.get(ext.lower())
            if existing is not None and existing.name != config.name:
                raise ValueError(
                    f"Extension {ext} already registered to {existing.name}, "
                    f"cannot register to {config.name}"
                )
        for ext in config.extensions:
            self._by_extension[ext.lower()] = config

    def get_config(self, file_path: Path) -> Optional[DialectConfig]:
        """Dialect registered for the file's extension, or None."""
        return self._by_extension.get(Path(file_path).suffix.lower())

    def resolve(self, file_path: Optional[Path] = None) -> DialectConfig:
        """
        Dialect for a source, falling back to the default.

        Raises:
            ValueError: Nothing matches and no default is set
        """
        config = self.get_config(file_path) if file_path is not None else None
        if config is None:
            config = self.default
        if config is None:
            raise ValueError(f"No dialect for {file_path or 'in-memory source'}")
        return config
