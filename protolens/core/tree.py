"""
Component Tree Extractor — source to an ordered forest of component nodes.

Only components (uppercase or dotted member tags) are materialized.
Structural elements (``div``, ``span``, fragments) are walked through: their
component descendants attach to the nearest component ancestor.

Ids use the same ``Name_line_col`` scheme as the injected inspector ids so
the sandbox can report a DOM element and the host can find its node.

Usage:
    forest = extract_component_tree(source, "index.jsx")
    [node.to_dict() for node in forest]
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Dict, Any, TYPE_CHECKING

from .parsing import ParsedSource, get_parser
from .parsing import jsx

if TYPE_CHECKING:
    from tree_sitter import Node


class PropType(Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    EXPRESSION = "expression"
    SPREAD = "spread"


@dataclass
class PropEntry:
    """
    One attribute of a component, summarized.

    ``value`` is a display summary; non-literal values are never evaluated.
    """
    name: str
    value: str
    raw_type: PropType

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "value": self.value, "rawType": self.raw_type.value}


@dataclass
class ComponentNode:
    id: str
    component_name: str
    props: List[PropEntry] = field(default_factory=list)
    source_file: str = ""
    source_line: int = 0
    children: List['ComponentNode'] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "componentName": self.component_name,
            "props": [prop.to_dict() for prop in self.props],
            "sourceFile": self.source_file,
            "sourceLine": self.source_line,
            "children": [child.to_dict() for child in self.children],
        }

    def walk(self):
        """Yield this node and its descendants depth-first."""
        yield self
        for child in self.children:
            yield from child.walk()


class TreeCursor:
    """
    Tracks which node owns newly found components.

    Entering a component makes it the owner of what follows; entering a
    structural element re-enters the current owner, so its component
    descendants land one level up. ``None`` is the forest root.
    """

    def __init__(self):
        self.roots: List[ComponentNode] = []
        self._owners: List[Optional[ComponentNode]] = [None]

    @property
    def owner(self) -> Optional[ComponentNode]:
        return self._owners[-1]

    def _attach(self, node: ComponentNode) -> None:
        if self.owner is None:
            self.roots.append(node)
        else:
            self.owner.children.append(node)

    def enter_component(self, node: ComponentNode) -> None:
        self._attach(node)
        self._owners.append(node)

    def enter_structural(self) -> None:
        self._owners.append(self.owner)

    def exit(self) -> None:
        if len(self._owners) == 1:
            raise RuntimeError("TreeCursor.exit() without matching enter")
        self._owners.pop()


# =============================================================================
# Prop classification
# =============================================================================

FUNCTION_TYPES = ('arrow_function', 'function_expression', 'function')


def summarize_prop_value(source: ParsedSource, value: Optional['Node']) -> PropEntry:
    """Classify an attribute value. The returned entry has no name yet."""
    if value is None:
        # Boolean shorthand: <Button disabled />
        return PropEntry("", "true", PropType.BOOLEAN)

    if value.type == 'string':
        return PropEntry("", f'"{jsx.jsx_attribute_string_value(source, value)}"', PropType.STRING)

    if value.type != 'jsx_expression':
        # JSX element used directly as a value: icon=<Icon />
        return PropEntry("", "{...}", PropType.EXPRESSION)

    expression = jsx.unwrap_expression(jsx.expression_of(value))
    if expression is None:
        return PropEntry("", "{...}", PropType.EXPRESSION)

    if expression.type == 'number':
        return PropEntry("", source.node_text(expression), PropType.NUMBER)
    if expression.type in ('true', 'false'):
        return PropEntry("", expression.type, PropType.BOOLEAN)
    if expression.type == 'string':
        return PropEntry("", f'"{jsx.js_string_value(source, expression)}"', PropType.STRING)
    if expression.type == 'array':
        count = sum(
            1 for child in expression.named_children if child.type != 'comment'
        )
        return PropEntry("", f"[{count} items]", PropType.EXPRESSION)
    if expression.type in FUNCTION_TYPES:
        return PropEntry("", "() => ...", PropType.EXPRESSION)
    return PropEntry("", "{...}", PropType.EXPRESSION)


def extract_props(source: ParsedSource, opening: 'Node') -> List[PropEntry]:
    props = []
    for attribute in jsx.attributes(opening):
        if jsx.is_spread_attribute(attribute):
            props.append(PropEntry("...spread", "{...}", PropType.SPREAD))
            continue
        entry = summarize_prop_value(source, jsx.attribute_value(attribute))
        entry.name = jsx.attribute_name(source, attribute)
        props.append(entry)
    return props


# =============================================================================
# Extraction
# =============================================================================

class ComponentTreeExtractor:
    """Builds the component forest from a parsed source."""

    def __init__(self, source: ParsedSource, source_file: str = ""):
        self.source = source
        self.source_file = source_file

    def extract(self) -> List[ComponentNode]:
        cursor = TreeCursor()
        self._walk(self.source.root, cursor)
        return cursor.roots

    def _walk(self, node: 'Node', cursor: TreeCursor) -> None:
        if not jsx.is_element(node):
            for child in node.children:
                self._walk(child, cursor)
            return

        opening = jsx.opening_tag(node)
        name_node = jsx.tag_name_node(opening)
        name = jsx.resolve_tag_name(self.source, name_node)

        if jsx.is_component_tag(name_node, name):
            line, column = self.source.node_position(node)
            cursor.enter_component(ComponentNode(
                id=jsx.element_id(name, line, column),
                component_name=name,
                props=extract_props(self.source, opening),
                source_file=self.source_file,
                source_line=line,
            ))
        else:
            cursor.enter_structural()

        # Attribute values come first in document order, then children
        for child in node.children:
            self._walk(child, cursor)
        cursor.exit()


def extract_component_tree(source: str, file_path: Optional[str] = None) -> List[ComponentNode]:
    """
    Parse source and extract its component forest.

    Syntax errors are tolerated; whatever tree-sitter recovered is returned.
    """
    parsed = get_parser().parse(source, file_path=Path(file_path) if file_path else None)
    return ComponentTreeExtractor(parsed, str(file_path or "")).extract()
