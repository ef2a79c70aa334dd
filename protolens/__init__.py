"""
protolens — inspect, instrument and edit the copy of component prototypes

Source in, four views out:
- a component tree with prop summaries
- an instrumented module for the sandboxed preview
- addressable text entries merged with pending copy edits
- a minimally rewritten source once edits are approved

Usage:
    protolens tree checkout
    protolens copy checkout --screen login
    protolens edit checkout Button_4_2_children "Save changes"
    protolens approve checkout --all
    protolens bundle checkout -o checkout.js
    protolens watch
"""

__version__ = "0.1.0"

# Errors
from .errors import ProtolensError, ParseError, CompileError, DocumentNotFoundError, ProtocolError

# Core layer
from .core.normalizer import ensure_default_export
from .core.tree import ComponentNode, PropEntry, PropType, extract_component_tree
from .core.inspector import inject_inspector_ids
from .core.text import TextEntry, TextCategory, extract_text_entries, parse_entry_key
from .core.overlay import Overlay, OverlayEntry, OverlayStore
from .core.merge import ConflictEntry, MergeResult, merge_overlay
from .core.patcher import TextEdit, PatchResult, SourcePatcher, apply_text_edits

# Services layer
from .services.bundler import EsbuildBundler, compile_document
from .services.documents import DocumentStore
from .services.watcher import ChangeWatcher
from .services.pipeline import PreviewPipeline

# Runtime
from .runtime.protocol import Message, MessageType, parse_message, build_override_map
from .runtime.surface import PreviewSurface, TextOverrideApplier, SurfaceState

# Config (stays at root)
from .config import Config, ConfigManager, get_config

__all__ = [
    # Errors
    'ProtolensError', 'ParseError', 'CompileError', 'DocumentNotFoundError', 'ProtocolError',
    # Core
    'ensure_default_export',
    'ComponentNode', 'PropEntry', 'PropType', 'extract_component_tree',
    'inject_inspector_ids',
    'TextEntry', 'TextCategory', 'extract_text_entries', 'parse_entry_key',
    'Overlay', 'OverlayEntry', 'OverlayStore',
    'ConflictEntry', 'MergeResult', 'merge_overlay',
    'TextEdit', 'PatchResult', 'SourcePatcher', 'apply_text_edits',
    # Services
    'EsbuildBundler', 'compile_document',
    'DocumentStore', 'ChangeWatcher', 'PreviewPipeline',
    # Runtime
    'Message', 'MessageType', 'parse_message', 'build_override_map',
    'PreviewSurface', 'TextOverrideApplier', 'SurfaceState',
    # Config
    'Config', 'ConfigManager', 'get_config',
]
