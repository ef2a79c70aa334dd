"""
Text Entry Extractor — every piece of user-facing text as an addressable entry.

Three strategies, all run over the clean normalized source (never the
instrumented one) so positions match the component tree:

1. Text props (``label="Save"``) on components and text-bearing tags.
   Key: ``Name_line_col_prop`` with the element's position.
2. Literal text children (``<Button>Save</Button>``).
   Key: ``Name_line_col_children`` with the position of the trimmed text.
3. Text fields of object literals in top-level arrays
   (``const ITEMS = [{ label: "One" }]``).
   Key: ``ITEMS_0_label``. The entry is reported at the line where the
   array is rendered with ``ITEMS.map(...)`` when there is one.

Each entry remembers the byte range of its literal so the source patcher
can rewrite exactly that range.

Usage:
    entries = extract_text_entries(source, "index.jsx")
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Any, TYPE_CHECKING

from .parsing import ParsedSource, get_parser
from .parsing import jsx

if TYPE_CHECKING:
    from tree_sitter import Node


class TextCategory(Enum):
    VISIBLE = "visible"
    PLACEHOLDER = "placeholder"
    ACCESSIBILITY = "accessibility"


TEXT_PROP_CATEGORIES: Dict[str, TextCategory] = {
    'children': TextCategory.VISIBLE,
    'label': TextCategory.VISIBLE,
    'helperText': TextCategory.VISIBLE,
    'title': TextCategory.VISIBLE,
    'placeholder': TextCategory.PLACEHOLDER,
    'aria-label': TextCategory.ACCESSIBILITY,
}

# Lowercase tags whose literal text is user-facing
TEXT_BEARING_TAGS = frozenset({
    'span', 'p', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6',
    'strong', 'em', 'b', 'i', 'small', 'label', 'a', 'li',
    'th', 'td', 'dt', 'dd', 'caption', 'figcaption',
})

# Object fields treated as text inside top-level data arrays
DATA_ARRAY_TEXT_FIELDS = frozenset({
    'label', 'title', 'text', 'description', 'heading', 'content',
    'placeholder', 'tooltip', 'caption', 'subtitle', 'name',
})


class KeyScheme(Enum):
    POSITION = "position"
    ARRAY_INDEX = "array_index"


class LiteralKind(Enum):
    JSX_TEXT = "jsx_text"
    JSX_ATTRIBUTE = "jsx_attribute"
    JS_STRING = "js_string"


@dataclass(frozen=True)
class LiteralSpan:
    """Where an entry's text lives: byte range without quotes."""
    start: int
    end: int
    kind: LiteralKind
    quote: str = ""

    def escape(self, value: str) -> str:
        if self.kind == LiteralKind.JSX_TEXT:
            return jsx.escape_jsx_text(value)
        if self.kind == LiteralKind.JSX_ATTRIBUTE:
            return jsx.escape_jsx_attribute(value, self.quote)
        return jsx.escape_js_string(value, self.quote)


@dataclass
class TextEntry:
    key: str
    component_name: str
    component_path: str
    prop_name: str
    category: TextCategory
    source_value: str
    current_value: str
    source_line: int
    inspector_id: str
    scheme: KeyScheme = KeyScheme.POSITION
    span: Optional[LiteralSpan] = field(default=None, repr=False, compare=False)

    @property
    def is_modified(self) -> bool:
        return self.current_value != self.source_value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "componentName": self.component_name,
            "componentPath": self.component_path,
            "propName": self.prop_name,
            "category": self.category.value,
            "sourceValue": self.source_value,
            "currentValue": self.current_value,
            "sourceLine": self.source_line,
            "inspectorId": self.inspector_id,
        }


# =============================================================================
# Keys
# =============================================================================

def position_key(name: str, line: int, column: int, prop_name: Optional[str] = None) -> str:
    base = jsx.element_id(name, line, column)
    return f"{base}_{prop_name}" if prop_name else base


def array_key(variable: str, index: int, field_name: str) -> str:
    return f"{variable}_{index}_{field_name}"


@dataclass
class ParsedKey:
    scheme: KeyScheme
    name: str
    prop_name: str
    line: Optional[int] = None
    column: Optional[int] = None
    index: Optional[int] = None


def _as_int(segment: str) -> Optional[int]:
    try:
        return int(segment)
    except ValueError:
        return None


def parse_entry_key(key: str) -> Optional[ParsedKey]:
    """
    Split a serialized key back into its parts.

    A key is position-scheme when the segment three from the end is an
    integer, array-scheme otherwise. Array variables whose names end in
    ``_<digits>`` are misread by this rule; in-process code uses
    ``TextEntry.scheme`` instead.
    """
    parts = key.split('_')
    if len(parts) >= 4:
        line, column = _as_int(parts[-3]), _as_int(parts[-2])
        if line is not None and column is not None:
            return ParsedKey(
                scheme=KeyScheme.POSITION,
                name='_'.join(parts[:-3]),
                prop_name=parts[-1],
                line=line,
                column=column,
            )
    if len(parts) >= 3:
        index = _as_int(parts[-2])
        if index is not None:
            return ParsedKey(
                scheme=KeyScheme.ARRAY_INDEX,
                name='_'.join(parts[:-2]),
                prop_name=parts[-1],
                index=index,
            )
    return None


# =============================================================================
# Extraction
# =============================================================================

class TextEntryExtractor:
    """Runs the three strategies over one parsed source."""

    def __init__(self, source: ParsedSource):
        self.source = source
        self.entries: List[TextEntry] = []

    def extract(self) -> List[TextEntry]:
        self.entries = []
        self._walk_elements(self.source.root, [])
        self._extract_data_arrays()
        self._apply_render_lines()
        # Stable: entries on one line keep document order
        self.entries.sort(key=lambda entry: entry.source_line)
        return self.entries

    # -- strategies 1 and 2 ---------------------------------------------------

    def _walk_elements(self, node: 'Node', path: List[str]) -> None:
        if not jsx.is_element(node):
            for child in node.children:
                self._walk_elements(child, path)
            return

        opening = jsx.opening_tag(node)
        name_node = jsx.tag_name_node(opening)
        name = jsx.resolve_tag_name(self.source, name_node)
        tracked = jsx.is_component_tag(name_node, name) or (
            name_node is not None and name in TEXT_BEARING_TAGS
        )

        if tracked:
            path = path + [name]
            line, column = self.source.node_position(node)
            inspector_id = jsx.element_id(name, line, column)
            component_path = ' > '.join(path)
            self._extract_attributes(opening, name, line, column, component_path, inspector_id)
            self._extract_text_children(node, name, line, component_path, inspector_id)

        for child in node.children:
            self._walk_elements(child, path)

    def _extract_attributes(self, opening, name, line, column, component_path, inspector_id) -> None:
        for attribute in jsx.attributes(opening):
            if jsx.is_spread_attribute(attribute):
                continue
            prop_name = jsx.attribute_name(self.source, attribute)
            category = TEXT_PROP_CATEGORIES.get(prop_name)
            if category is None:
                continue
            value = jsx.attribute_value(attribute)
            if value is None or value.type != 'string':
                continue

            start, end = jsx.string_content_range(value)
            source_value = jsx.jsx_attribute_string_value(self.source, value)
            self.entries.append(TextEntry(
                key=position_key(name, line, column, prop_name),
                component_name=name,
                component_path=component_path,
                prop_name=prop_name,
                category=category,
                source_value=source_value,
                current_value=source_value,
                source_line=line,
                inspector_id=inspector_id,
                span=LiteralSpan(start, end, LiteralKind.JSX_ATTRIBUTE,
                                 jsx.string_quote(self.source, value)),
            ))

    def _extract_text_children(self, element, name, line, component_path, inspector_id) -> None:
        for run in jsx.text_runs(jsx.element_children(element)):
            trimmed = jsx.trimmed_text_range(self.source, run)
            if trimmed is None:
                continue
            start, end = trimmed
            text_line, text_column = self.source.position(start)
            source_value = jsx.jsx_text_value(self.source, start, end)
            self.entries.append(TextEntry(
                key=position_key(name, text_line, text_column, 'children'),
                component_name=name,
                component_path=component_path,
                prop_name='children',
                category=TextCategory.VISIBLE,
                source_value=source_value,
                current_value=source_value,
                source_line=text_line,
                inspector_id=inspector_id,
                span=LiteralSpan(start, end, LiteralKind.JSX_TEXT),
            ))

    # -- strategy 3 -------------------------------------------------------------

    def _top_level_declarators(self):
        for statement in self.source.root.named_children:
            if statement.type == 'export_statement':
                statement = statement.child_by_field_name('declaration')
                if statement is None:
                    continue
            if statement.type not in ('lexical_declaration', 'variable_declaration'):
                continue
            for declarator in statement.named_children:
                if declarator.type == 'variable_declarator':
                    yield declarator

    def _extract_data_arrays(self) -> None:
        for declarator in self._top_level_declarators():
            name_node = declarator.child_by_field_name('name')
            value = jsx.unwrap_expression(declarator.child_by_field_name('value'))
            if name_node is None or name_node.type != 'identifier':
                continue
            if value is None or value.type != 'array':
                continue

            variable = self.source.node_text(name_node)
            index = 0
            for child in value.children:
                if child.type == ',':
                    index += 1
                    continue
                element = jsx.unwrap_expression(child) if child.is_named else None
                if element is not None and element.type == 'object':
                    self._extract_object_fields(variable, index, element)

    def _extract_object_fields(self, variable: str, index: int, obj: 'Node') -> None:
        for pair in obj.named_children:
            if pair.type != 'pair':
                continue
            field_name = self._property_name(pair.child_by_field_name('key'))
            if field_name not in DATA_ARRAY_TEXT_FIELDS:
                continue
            value = pair.child_by_field_name('value')
            if value is None or value.type != 'string':
                continue

            source_value = jsx.js_string_value(self.source, value)
            if not source_value.strip():
                continue
            start, end = jsx.string_content_range(value)
            line, _ = self.source.node_position(value)
            self.entries.append(TextEntry(
                key=array_key(variable, index, field_name),
                component_name=variable,
                component_path=variable,
                prop_name=field_name,
                category=TextCategory.VISIBLE,
                source_value=source_value,
                current_value=source_value,
                source_line=line,
                inspector_id='',  # not tied to a single DOM element
                scheme=KeyScheme.ARRAY_INDEX,
                span=LiteralSpan(start, end, LiteralKind.JS_STRING,
                                 jsx.string_quote(self.source, value)),
            ))

    def _property_name(self, key: Optional['Node']) -> Optional[str]:
        if key is None:
            return None
        if key.type in ('property_identifier', 'identifier'):
            return self.source.node_text(key)
        if key.type == 'string':
            return jsx.js_string_value(self.source, key)
        return None

    # -- render lines -------------------------------------------------------

    def render_lines(self) -> Dict[str, int]:
        """First line where ``{VAR.map(...)}`` renders each array variable."""
        lines: Dict[str, int] = {}
        stack = [self.source.root]
        while stack:
            node = stack.pop()
            stack.extend(reversed(node.children))
            if node.type != 'jsx_expression':
                continue
            variable = self._mapped_variable(jsx.expression_of(node))
            if variable and variable not in lines:
                lines[variable] = self.source.node_position(node)[0]
        return lines

    def _mapped_variable(self, expression: Optional['Node']) -> Optional[str]:
        if expression is None or expression.type != 'call_expression':
            return None
        callee = expression.child_by_field_name('function')
        if callee is None or callee.type != 'member_expression':
            return None
        target = callee.child_by_field_name('object')
        prop = callee.child_by_field_name('property')
        if target is None or prop is None or target.type != 'identifier':
            return None
        if self.source.node_text(prop) != 'map':
            return None
        return self.source.node_text(target)

    def _apply_render_lines(self) -> None:
        lines = self.render_lines()
        for entry in self.entries:
            if entry.scheme == KeyScheme.ARRAY_INDEX and entry.component_name in lines:
                entry.source_line = lines[entry.component_name]


def extract_text_entries(source: str, file_path: Optional[str] = None) -> List[TextEntry]:
    """
    Parse source and extract its text entries with ``currentValue == sourceValue``.

    Syntax errors are tolerated; entries recovered by the parser are returned.
    """
    parsed = get_parser().parse(source, file_path=Path(file_path) if file_path else None)
    return TextEntryExtractor(parsed).extract()
