"""
Source Normalizer — guarantee a default-exported component.

Generated prototypes sometimes only use named exports. The sandbox imports
``module.default``, so when no default export exists the last top-level
uppercase function or const declaration is exported as default.

With several candidates "last one wins" is a convention, not a guarantee.
"""

import logging
from pathlib import Path
from typing import List, Optional, TYPE_CHECKING

from .parsing import ParsedSource, get_parser

if TYPE_CHECKING:
    from tree_sitter import Node

logger = logging.getLogger(__name__)

DECLARATION_TYPES = ('function_declaration', 'generator_function_declaration')
VARIABLE_TYPES = ('lexical_declaration', 'variable_declaration')


def _top_level_statements(parsed: ParsedSource) -> List['Node']:
    """Program statements with ``export`` wrappers unwrapped."""
    statements = []
    for child in parsed.root.named_children:
        if child.type == 'export_statement':
            declaration = child.child_by_field_name('declaration')
            if declaration is not None:
                statements.append(declaration)
            continue
        statements.append(child)
    return statements


def has_default_export(parsed: ParsedSource) -> bool:
    """True for ``export default ...`` or ``export { X as default }``."""
    for child in parsed.root.named_children:
        if child.type != 'export_statement':
            continue
        if any(token.type == 'default' for token in child.children):
            return True
        for clause in child.named_children:
            if clause.type != 'export_clause':
                continue
            for specifier in clause.named_children:
                alias = specifier.child_by_field_name('alias')
                if alias is not None and parsed.node_text(alias) == 'default':
                    return True
    return False


def _is_const(parsed: ParsedSource, declaration: 'Node') -> bool:
    return declaration.type == 'lexical_declaration' and parsed.node_text(declaration).startswith('const')


def component_candidates(parsed: ParsedSource) -> List[str]:
    """Uppercase top-level function/const names in source order."""
    names = []
    for statement in _top_level_statements(parsed):
        if statement.type in DECLARATION_TYPES:
            name = parsed.node_text(statement.child_by_field_name('name'))
            if name[:1].isupper():
                names.append(name)
        elif statement.type in VARIABLE_TYPES and _is_const(parsed, statement):
            for declarator in statement.named_children:
                if declarator.type != 'variable_declarator':
                    continue
                name_node = declarator.child_by_field_name('name')
                if name_node is None or name_node.type != 'identifier':
                    continue
                name = parsed.node_text(name_node)
                if name[:1].isupper():
                    names.append(name)
    return names


def ensure_default_export(source: str, file_path: Optional[Path] = None) -> str:
    """
    Return source with exactly one default-exported component.

    Unchanged when a default export already exists or when no candidate
    declaration is found (the bundler reports that failure).
    """
    parsed = get_parser().parse(source, file_path=file_path)
    if has_default_export(parsed):
        return source

    candidates = component_candidates(parsed)
    if not candidates:
        return source

    name = candidates[-1]
    logger.warning(
        "No default export found in %s. Appending: export default %s",
        file_path or "<source>", name,
    )
    return f"{source}\nexport default {name};\n"
