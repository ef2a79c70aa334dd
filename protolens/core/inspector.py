"""
Inspector-ID Injector — tag every component with ``data-inspector-id``.

Runs before bundling so the attribute survives into the compiled module;
React passes ``data-*`` props through to the DOM, where the sandbox reads
them back for hover/select and text overrides.

Only component opening tags change. The attribute is appended after the
last existing attribute, and tags already carrying one are left alone, so
running the injector on its own output changes nothing.
"""

from pathlib import Path
from typing import List, Optional, Tuple, TYPE_CHECKING

from .parsing import ParsedSource, get_parser
from .parsing import jsx

if TYPE_CHECKING:
    from tree_sitter import Node

CLOSING_TOKENS = ('>', '/', '/>')


def _insertion_offset(opening: 'Node') -> int:
    """End of the last attribute (or of the tag name / type arguments)."""
    offset = opening.start_byte + 1
    for child in opening.children:
        if child.type in CLOSING_TOKENS:
            break
        offset = child.end_byte
    return offset


def collect_insertions(source: ParsedSource) -> List[Tuple[int, str]]:
    """(offset, text) pairs for every component that lacks an inspector id."""
    insertions = []
    stack = [source.root]
    while stack:
        node = stack.pop()
        stack.extend(reversed(node.children))
        if not jsx.is_element(node):
            continue

        opening = jsx.opening_tag(node)
        name_node = jsx.tag_name_node(opening)
        name = jsx.resolve_tag_name(source, name_node)
        if not jsx.is_component_tag(name_node, name):
            continue
        if jsx.has_attribute(source, opening, jsx.INSPECTOR_ATTRIBUTE):
            continue

        line, column = source.node_position(node)
        identifier = jsx.element_id(name, line, column)
        insertions.append((
            _insertion_offset(opening),
            f' {jsx.INSPECTOR_ATTRIBUTE}="{identifier}"',
        ))
    return insertions


def inject_inspector_ids(source: str, file_path: Optional[str] = None) -> str:
    """
    Return source with ``data-inspector-id`` on every component tag.

    Raises:
        ParseError: If the source has syntax errors
    """
    parsed = get_parser().parse(source, file_path=Path(file_path) if file_path else None)
    parsed.require_clean("inject inspector ids")

    insertions = collect_insertions(parsed)
    if not insertions:
        return source

    data = parsed.data
    # Offsets refer to the original text, so apply back to front
    for offset, text in sorted(insertions, key=lambda item: item[0], reverse=True):
        data = data[:offset] + text.encode('utf-8') + data[offset:]
    return data.decode('utf-8')
