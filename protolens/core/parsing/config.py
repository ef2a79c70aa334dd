"""
Dialect configuration data structures.

Defines DialectConfig — the per-dialect parsing rules used to route a
component source file to the right tree-sitter grammar and bundler loader.

Design principle: New dialects are added via config, not code changes.
"""

from dataclasses import dataclass
from typing import Set


@dataclass
class DialectConfig:
    """
    Configuration for parsing one flavour of component source.

    Attributes:
        name: Human-readable name (e.g., "JSX", "TSX")
        tree_sitter_name: Grammar name for tree-sitter (e.g., "javascript", "tsx")
        extensions: File extensions this config handles (e.g., {'.jsx'})
        bundle_loader: esbuild loader used when the source is piped on stdin
        max_file_size: Refuse sources larger than this (bytes, default 300KB)
    """
    name: str
    tree_sitter_name: str
    extensions: Set[str]
    bundle_loader: str = "jsx"
    max_file_size: int = 300_000  # 300KB default
