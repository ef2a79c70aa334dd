"""
Built-in dialects for component source files.

- JSX: plain JavaScript with JSX (.jsx, .js)
- TSX: TypeScript with JSX (.tsx), also the default for in-memory sources
- TypeScript: JSX-free TypeScript (.ts)
"""

from .config import DialectConfig
from .registry import DialectRegistry


JSX_DIALECT = DialectConfig(
    name="JSX",
    tree_sitter_name="javascript",
    extensions={'.jsx', '.js', '.mjs'},
    bundle_loader="jsx",
)

TSX_DIALECT = DialectConfig(
    name="TSX",
    tree_sitter_name="tsx",
    extensions={'.tsx'},
    bundle_loader="tsx",
)

TYPESCRIPT_DIALECT = DialectConfig(
    name="TypeScript",
    tree_sitter_name="typescript",
    extensions={'.ts'},
    bundle_loader="ts",
)

DEFAULT_DIALECT = TSX_DIALECT


def default_registry() -> DialectRegistry:
    """Registry holding every built-in dialect."""
    registry = DialectRegistry(default=DEFAULT_DIALECT)
    registry.register(JSX_DIALECT)
    registry.register(TSX_DIALECT)
    registry.register(TYPESCRIPT_DIALECT)
    return registry
