"""
JSX node helpers shared by the tree extractor, the inspector-id injector,
the text extractor and the source patcher.

All four walks must agree on what a component is and where it sits, so the
rules live here:

- An element is a *component* when its tag is a dotted member tag
  (``List.Item``) or an identifier starting with an uppercase letter.
- Everything else (``div``, ``span``, fragments) is *structural*.
- An element's identity is ``Name_line_col`` using the position of its ``<``.
"""

import html
import re
from typing import Iterator, List, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from tree_sitter import Node
    from .parser import ParsedSource


ELEMENT_TYPES = ('jsx_element', 'jsx_self_closing_element')
MEMBER_TAG_TYPES = ('member_expression', 'nested_identifier')
IDENTIFIER_TYPES = ('identifier', 'jsx_identifier', 'property_identifier', 'type_identifier')
TEXT_RUN_TYPES = ('jsx_text', 'html_character_reference')
WRAPPER_EXPRESSION_TYPES = (
    'parenthesized_expression',
    'as_expression',
    'satisfies_expression',
    'non_null_expression',
)

INSPECTOR_ATTRIBUTE = 'data-inspector-id'


def element_id(name: str, line: int, column: int) -> str:
    """Identity of an element: ``Name_line_col``."""
    return f"{name}_{line}_{column}"


# =============================================================================
# Elements and tags
# =============================================================================

def is_element(node: 'Node') -> bool:
    return node.type in ELEMENT_TYPES


def opening_tag(element: 'Node') -> 'Node':
    """The node holding an element's name and attributes."""
    if element.type == 'jsx_self_closing_element':
        return element
    tag = element.child_by_field_name('open_tag')
    if tag is not None:
        return tag
    for child in element.children:
        if child.type == 'jsx_opening_element':
            return child
    return element


def tag_name_node(opening: 'Node') -> Optional['Node']:
    """Name node of an opening tag; None for fragments."""
    name = opening.child_by_field_name('name')
    if name is not None:
        return name
    for child in opening.named_children:
        if child.type in IDENTIFIER_TYPES or child.type in MEMBER_TAG_TYPES or child.type == 'jsx_namespace_name':
            return child
    return None


def resolve_tag_name(source: 'ParsedSource', name_node: Optional['Node']) -> str:
    """Resolve a tag name; member tags are resolved recursively to ``A.B.C``."""
    if name_node is None:
        return 'Unknown'
    if name_node.type in IDENTIFIER_TYPES or name_node.type == 'jsx_namespace_name':
        return source.node_text(name_node)
    if name_node.type in MEMBER_TAG_TYPES:
        parts = name_node.named_children
        if len(parts) >= 2:
            return f"{resolve_tag_name(source, parts[0])}.{source.node_text(parts[-1])}"
    return 'Unknown'


def is_component_tag(name_node: Optional['Node'], name: str) -> bool:
    if name_node is None:
        return False
    if name_node.type in MEMBER_TAG_TYPES:
        return True
    return name_node.type in IDENTIFIER_TYPES and name[:1].isupper()


def element_children(element: 'Node') -> List['Node']:
    """Children between the opening and closing tag (none for self-closing)."""
    if element.type == 'jsx_self_closing_element':
        return []
    return [
        child for child in element.children
        if child.type not in ('jsx_opening_element', 'jsx_closing_element')
    ]


# =============================================================================
# Attributes
# =============================================================================

def attributes(opening: 'Node') -> List['Node']:
    """Attribute nodes in source order; spreads are ``jsx_expression`` nodes."""
    return [
        child for child in opening.named_children
        if child.type in ('jsx_attribute', 'jsx_expression')
    ]


def is_spread_attribute(attribute: 'Node') -> bool:
    return attribute.type == 'jsx_expression'


def attribute_name(source: 'ParsedSource', attribute: 'Node') -> str:
    named = attribute.named_children
    return source.node_text(named[0]) if named else ''


def attribute_value(attribute: 'Node') -> Optional['Node']:
    """Value node following ``=``; None for valueless shorthand."""
    seen_equals = False
    for child in attribute.children:
        if seen_equals:
            return child
        if child.type == '=':
            seen_equals = True
    return None


def has_attribute(source: 'ParsedSource', opening: 'Node', name: str) -> bool:
    return any(
        not is_spread_attribute(attr) and attribute_name(source, attr) == name
        for attr in attributes(opening)
    )


def expression_of(container: 'Node') -> Optional['Node']:
    """The expression inside ``{...}``, ignoring comments."""
    for child in container.named_children:
        if child.type != 'comment':
            return child
    return None


def unwrap_expression(node: Optional['Node']) -> Optional['Node']:
    """Strip parentheses and TypeScript ``as``/``satisfies``/``!`` wrappers."""
    while node is not None and node.type in WRAPPER_EXPRESSION_TYPES:
        inner = [child for child in node.named_children if child.type != 'comment']
        node = inner[0] if inner else None
    return node


# =============================================================================
# Literals
# =============================================================================

_JS_ESCAPE = re.compile(
    r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|\r\n|.)",
    re.DOTALL,
)
_SIMPLE_ESCAPES = {
    'n': '\n', 't': '\t', 'r': '\r', 'b': '\b',
    'f': '\f', 'v': '\v', '0': '\0',
    '\n': '', '\r\n': '', '\r': '', '\u2028': '', '\u2029': '',
}
_ENTITY_LIKE = re.compile(r"&(?=#?[A-Za-z0-9]+;)")


def _decode_escape(match: 're.Match') -> str:
    body = match.group(1)
    if body.startswith('u{'):
        return chr(int(body[2:-1], 16))
    if body.startswith('u') and len(body) == 5:
        return chr(int(body[1:], 16))
    if body.startswith('x') and len(body) == 3:
        return chr(int(body[1:], 16))
    return _SIMPLE_ESCAPES.get(body, body)


def decode_js_string(raw: str) -> str:
    """Decode the escape sequences of a JavaScript string literal body."""
    return _JS_ESCAPE.sub(_decode_escape, raw)


def string_content_range(string_node: 'Node') -> Tuple[int, int]:
    """Byte range of a string literal without its quote characters."""
    return string_node.start_byte + 1, string_node.end_byte - 1


def string_quote(source: 'ParsedSource', string_node: 'Node') -> str:
    return source.slice(string_node.start_byte, string_node.start_byte + 1)


def jsx_attribute_string_value(source: 'ParsedSource', string_node: 'Node') -> str:
    """JSX attribute strings have no escapes, only character references."""
    start, end = string_content_range(string_node)
    return html.unescape(source.slice(start, end))


def js_string_value(source: 'ParsedSource', string_node: 'Node') -> str:
    start, end = string_content_range(string_node)
    return decode_js_string(source.slice(start, end))


def escape_js_string(value: str, quote: str) -> str:
    escaped = value.replace('\\', '\\\\').replace(quote, '\\' + quote)
    return escaped.replace('\n', '\\n').replace('\r', '\\r')


def escape_jsx_attribute(value: str, quote: str) -> str:
    escaped = _ENTITY_LIKE.sub('&amp;', value)
    return escaped.replace(quote, '&quot;' if quote == '"' else '&#39;')


def escape_jsx_text(value: str) -> str:
    escaped = _ENTITY_LIKE.sub('&amp;', value)
    return (
        escaped.replace('{', '&#123;')
        .replace('}', '&#125;')
        .replace('<', '&lt;')
        .replace('>', '&gt;')
    )


# =============================================================================
# Text runs
# =============================================================================

def text_runs(children: List['Node']) -> Iterator[List['Node']]:
    """
    Group adjacent literal text children.

    Text and character references next to each other form one literal even
    when the grammar splits them (per line, or around ``&amp;``).
    """
    run: List['Node'] = []
    for child in children:
        if child.type in TEXT_RUN_TYPES:
            run.append(child)
            continue
        if run:
            yield run
            run = []
    if run:
        yield run


def trimmed_text_range(source: 'ParsedSource', run: List['Node']) -> Optional[Tuple[int, int]]:
    """Byte range of a text run without surrounding whitespace; None if blank."""
    start, end = run[0].start_byte, run[-1].end_byte
    raw = source.data[start:end]
    stripped = raw.strip()
    if not stripped:
        return None
    leading = len(raw) - len(raw.lstrip())
    return start + leading, start + leading + len(stripped)


def jsx_text_value(source: 'ParsedSource', start: int, end: int) -> str:
    return html.unescape(source.slice(start, end))
