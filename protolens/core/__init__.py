"""
Core — source analysis and rewriting for component files.

Leaves first:
- normalizer: guarantee a default-exported component
- tree: component forest with typed prop summaries
- inspector: inject data-inspector-id attributes
- text: addressable text entries
- overlay: persisted copy edits
- merge: overlay + entries -> merged entries and conflicts
- patcher: commit edits into the original source
"""

from .normalizer import ensure_default_export
from .tree import ComponentNode, PropEntry, PropType, TreeCursor, extract_component_tree
from .inspector import inject_inspector_ids
from .text import (
    TextEntry, TextCategory, KeyScheme, ParsedKey,
    extract_text_entries, parse_entry_key, position_key, array_key,
)
from .overlay import Overlay, OverlayEntry, EditRecord, OverlayStore
from .merge import ConflictEntry, MergeResult, merge_overlay
from .patcher import TextEdit, PatchResult, SourcePatcher, apply_text_edits

__all__ = [
    'ensure_default_export',
    'ComponentNode', 'PropEntry', 'PropType', 'TreeCursor', 'extract_component_tree',
    'inject_inspector_ids',
    'TextEntry', 'TextCategory', 'KeyScheme', 'ParsedKey',
    'extract_text_entries', 'parse_entry_key', 'position_key', 'array_key',
    'Overlay', 'OverlayEntry', 'EditRecord', 'OverlayStore',
    'ConflictEntry', 'MergeResult', 'merge_overlay',
    'TextEdit', 'PatchResult', 'SourcePatcher', 'apply_text_edits',
]
