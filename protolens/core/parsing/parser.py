"""
SourceParser — tree-sitter parsing for component sources.

Uses tree-sitter-language-pack for the javascript/tsx/typescript grammars.
tree-sitter always produces a tree; syntax errors show up as ERROR or
MISSING nodes and are reported through ParsedSource.has_errors so callers
can decide between salvaging (read paths) and refusing (rewrite paths).

Usage:
    from protolens.core.parsing import SourceParser

    parsed = SourceParser().parse(source)
    line, col = parsed.position(node.start_byte)
"""

from bisect import bisect_right
from pathlib import Path
from typing import Dict, List, Optional, Tuple, TYPE_CHECKING

from ...errors import ParseError
from .config import DialectConfig
from .dialects import default_registry
from .registry import DialectRegistry

if TYPE_CHECKING:
    from tree_sitter import Parser, Node, Tree

# Lazy import for the language pack; checked once per process
_language_pack_available = None


def _check_language_pack() -> bool:
    """Check if tree-sitter-language-pack is available."""
    global _language_pack_available
    if _language_pack_available is None:
        try:
            import tree_sitter_language_pack  # noqa: F401
            _language_pack_available = True
        except ImportError:
            _language_pack_available = False
    return _language_pack_available


class ParsedSource:
    """
    A parsed source text.

    Keeps the UTF-8 bytes tree-sitter worked on so byte offsets from the
    tree can be used directly for slicing and rewriting. Line numbers are
    1-based, columns 0-based and counted in characters.
    """

    def __init__(self, text: str, tree: 'Tree', dialect: DialectConfig):
        self.text = text
        self.data = text.encode('utf-8')
        self.tree = tree
        self.dialect = dialect
        self._line_starts: List[int] = [0]
        for index, byte in enumerate(self.data):
            if byte == 0x0A:
                self._line_starts.append(index + 1)

    @property
    def root(self) -> 'Node':
        return self.tree.root_node

    @property
    def has_errors(self) -> bool:
        return self.root.has_error

    def position(self, offset: int) -> Tuple[int, int]:
        """Map a byte offset to (line, column)."""
        line_index = bisect_right(self._line_starts, offset) - 1
        line_start = self._line_starts[line_index]
        column = len(self.data[line_start:offset].decode('utf-8', errors='replace'))
        return line_index + 1, column

    def node_position(self, node: 'Node') -> Tuple[int, int]:
        return self.position(node.start_byte)

    def slice(self, start: int, end: int) -> str:
        return self.data[start:end].decode('utf-8', errors='replace')

    def node_text(self, node: Optional['Node']) -> str:
        if node is None:
            return ""
        return self.slice(node.start_byte, node.end_byte)

    def first_error(self) -> Optional['Node']:
        """First ERROR or MISSING node in document order."""
        stack = [self.root]
        while stack:
            node = stack.pop()
            if node.type == 'ERROR' or node.is_missing:
                return node
            if node.has_error:
                stack.extend(reversed(node.children))
        return None

    def require_clean(self, purpose: str) -> None:
        """
        Raise ParseError if the tree contains syntax errors.

        Args:
            purpose: What the caller was about to do, for the message
        """
        if not self.has_errors:
            return
        error = self.first_error()
        if error is None:
            raise ParseError(f"Cannot {purpose}: source has syntax errors")
        line, column = self.node_position(error)
        raise ParseError(f"Cannot {purpose}: syntax error", line=line, column=column)


class SourceParser:
    """
    Parses component sources, caching one tree-sitter parser per grammar.

    The dialect comes from the registry: by file extension when a path is
    known, the registry default (TSX) otherwise.
    """

    def __init__(self, registry: Optional[DialectRegistry] = None):
        self.registry = registry or default_registry()
        self._parsers: Dict[str, 'Parser'] = {}  # Lazy-loaded parsers

    def dialect_for(self, file_path: Optional[Path] = None) -> DialectConfig:
        return self.registry.resolve(Path(file_path) if file_path is not None else None)

    def _get_parser(self, tree_sitter_name: str) -> 'Parser':
        if tree_sitter_name in self._parsers:
            return self._parsers[tree_sitter_name]

        if not _check_language_pack():
            raise ParseError(
                "tree-sitter-language-pack not installed. "
                "Install with: pip install tree-sitter-language-pack"
            )

        from tree_sitter_language_pack import get_parser
        parser = get_parser(tree_sitter_name)
        self._parsers[tree_sitter_name] = parser
        return parser

    def parse(
        self,
        text: str,
        file_path: Optional[Path] = None,
        dialect: Optional[DialectConfig] = None,
    ) -> ParsedSource:
        """
        Parse source text.

        Args:
            text: Source code
            file_path: Optional path used to pick the dialect
            dialect: Explicit dialect, overrides file_path

        Returns:
            ParsedSource (possibly containing error nodes)
        """
        config = dialect or self.dialect_for(file_path)
        if len(text) > config.max_file_size:
            raise ParseError(
                f"Source is {len(text)} characters, limit for {config.name} "
                f"is {config.max_file_size}"
            )
        tree = self._get_parser(config.tree_sitter_name).parse(text.encode('utf-8'))
        return ParsedSource(text, tree, config)


_default_parser: Optional[SourceParser] = None


def get_parser() -> SourceParser:
    """Shared SourceParser for module-level convenience functions."""
    global _default_parser
    if _default_parser is None:
        _default_parser = SourceParser()
    return _default_parser
