"""
Parsing module — tree-sitter access for component sources.

This module provides the foundation every pipeline stage builds on:
- DialectConfig: Per-dialect grammar and bundler loader
- DialectRegistry: Extension-based routing
- SourceParser / ParsedSource: Parsing with byte-offset and position mapping

Usage:
    from protolens.core.parsing import SourceParser

    parsed = SourceParser().parse(source, file_path=Path("index.jsx"))
    if parsed.has_errors:
        ...
"""

from .config import DialectConfig
from .registry import DialectRegistry
from .dialects import JSX_DIALECT, TSX_DIALECT, TYPESCRIPT_DIALECT, DEFAULT_DIALECT, default_registry
from .parser import SourceParser, ParsedSource, get_parser

__all__ = [
    'DialectConfig',
    'DialectRegistry',
    'JSX_DIALECT',
    'TSX_DIALECT',
    'TYPESCRIPT_DIALECT',
    'DEFAULT_DIALECT',
    'default_registry',
    'SourceParser',
    'ParsedSource',
    'get_parser',
]
