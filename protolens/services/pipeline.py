"""
Preview Pipeline — the operations a preview host calls per document.

    tree     normalized source -> component forest
    bundle   normalized + instrumented source -> ES module
    copy     text entries merged with the overlay, plus conflicts
    edit     record a copy edit in the overlay
    approve  write approved edits into the source, drop them from the overlay

Derived results are cached per (document, screen). The cache is dropped
when the pipeline writes a source and when the watcher reports a change,
and every reported change is forwarded to reload listeners as a RELOAD
message for the affected document.
"""

import logging
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from ..core.merge import merge_overlay
from ..core.normalizer import ensure_default_export
from ..core.overlay import OverlayEntry
from ..core.patcher import SourcePatcher, TextEdit
from ..core.text import TextEntry, extract_text_entries
from ..core.tree import ComponentNode, extract_component_tree
from ..runtime import protocol
from .bundler import EsbuildBundler, compile_document
from .documents import DocumentStore, screen_file_name
from .watcher import ChangeWatcher

logger = logging.getLogger(__name__)

ReloadListener = Callable[[Optional[str], protocol.Message], None]


class PreviewPipeline:
    """
    Usage:
        pipeline = PreviewPipeline(DocumentStore(Path("prototypes")))
        pipeline.copy("checkout")
        pipeline.edit("checkout", "Button_4_2_children", "Save changes", "Save")
        pipeline.approve("checkout", [{"key": "Button_4_2_children", "value": "Save changes"}])
    """

    def __init__(self, store: DocumentStore, bundler: Optional[EsbuildBundler] = None):
        self.store = store
        self.bundler = bundler or EsbuildBundler()
        self.patcher = SourcePatcher()
        self._cache: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self._generations: Dict[str, int] = {}  # bumped by invalidate()
        self._global_generation = 0
        self._listeners: List[ReloadListener] = []
        self._lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Cache
    # -------------------------------------------------------------------------

    def _generation(self, document_id: str) -> Tuple[int, int]:
        return self._global_generation, self._generations.get(document_id, 0)

    def _cached(self, document_id: str, screen: Optional[str], name: str, compute: Callable[[], Any]) -> Any:
        slot = (document_id, screen_file_name(screen))
        with self._lock:
            entry = self._cache.get(slot, {})
            if name in entry:
                return entry[name]
            generation = self._generation(document_id)

        value = compute()

        with self._lock:
            # Invalidated while computing: the value may come from the old source
            if self._generation(document_id) != generation:
                return value
            self._cache.setdefault(slot, {})[name] = value
        return value

    def invalidate(self, document_id: Optional[str] = None) -> None:
        """Drop cached results for one document, or for all of them."""
        with self._lock:
            if document_id is None:
                self._global_generation += 1
                self._cache.clear()
            else:
                self._generations[document_id] = self._generations.get(document_id, 0) + 1
                for slot in [slot for slot in self._cache if slot[0] == document_id]:
                    del self._cache[slot]
        logger.debug("Invalidated cache for %s", document_id or "all documents")

    def _normalized(self, document_id: str, screen: Optional[str]) -> str:
        def compute():
            source = self.store.read_source(document_id, screen)
            return ensure_default_export(source, file_path=self.store.source_path(document_id, screen))
        return self._cached(document_id, screen, "normalized", compute)

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def tree(self, document_id: str, screen: Optional[str] = None) -> List[ComponentNode]:
        path = self.store.source_path(document_id, screen)
        return self._cached(
            document_id, screen, "tree",
            lambda: extract_component_tree(self._normalized(document_id, screen), str(path)),
        )

    def bundle(self, document_id: str, screen: Optional[str] = None) -> str:
        """
        Raises:
            DocumentNotFoundError: Missing screen
            CompileError: Syntax error or bundler failure
        """
        path = self.store.source_path(document_id, screen)
        return self._cached(
            document_id, screen, "bundle",
            lambda: compile_document(self.store.read_source(document_id, screen), path, self.bundler),
        )

    def entries(self, document_id: str, screen: Optional[str] = None) -> List[TextEntry]:
        path = self.store.source_path(document_id, screen)
        return self._cached(
            document_id, screen, "entries",
            lambda: extract_text_entries(self._normalized(document_id, screen), str(path)),
        )

    def copy(self, document_id: str, screen: Optional[str] = None) -> Dict[str, Any]:
        """Merged text entries with their edit history, conflicts and counts."""
        overlay = self.store.overlay_store(document_id).read()
        result = merge_overlay(self.entries(document_id, screen), overlay)

        entries = []
        for entry in result.entries:
            data = entry.to_dict()
            record = overlay.get(entry.key)
            data["edits"] = [edit.to_dict() for edit in record.edits] if record else []
            entries.append(data)

        return {
            "entries": entries,
            "conflicts": [conflict.to_dict() for conflict in result.conflicts],
            "summary": {
                "total": len(result.entries),
                "modified": result.modified_count,
            },
        }

    def edit(self, document_id: str, key: str, value: str, source_value: str) -> OverlayEntry:
        """Persist one copy edit (last writer wins)."""
        self.store.document_dir(document_id)
        return self.store.overlay_store(document_id).patch(key, value, source_value)

    def approve(
        self,
        document_id: str,
        approvals: Iterable[Dict[str, str]],
        screen: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Write approved values into the raw source and drop them from the overlay.

        Keys that no longer match a source literal stay in the overlay.

        Args:
            approvals: [{"key": ..., "value": ...}]

        Raises:
            ParseError: Source has syntax errors; nothing is written or removed
        """
        source = self.store.read_source(document_id, screen)
        path = self.store.source_path(document_id, screen)

        # Property names come from the source itself, not from the caller
        known = {entry.key: entry for entry in extract_text_entries(source, str(path))}
        edits = []
        for approval in approvals:
            key = approval["key"]
            entry = known.get(key)
            edits.append(TextEdit(key, entry.prop_name if entry else "", approval["value"]))

        result = self.patcher.patch(source, edits, path)
        if result.changed:
            self.store.write_source(document_id, result.text, screen)
            self.invalidate(document_id)

        self.store.overlay_store(document_id).approve(result.folded)
        return {"ok": True, "applied": len(result.applied), "missing": result.missing}

    # -------------------------------------------------------------------------
    # Change notifications
    # -------------------------------------------------------------------------

    def add_reload_listener(self, listener: ReloadListener) -> Callable[[], None]:
        """Listener receives (document_id, RELOAD message); returns a remover."""
        with self._lock:
            self._listeners.append(listener)
        return lambda: self.remove_reload_listener(listener)

    def remove_reload_listener(self, listener: ReloadListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def on_change(self, path: str) -> None:
        """Watcher callback for a created or modified file."""
        document_id = self.store.document_for_path(Path(path))
        self.invalidate(document_id)

        message = protocol.reload()
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(document_id, message)

    def attach(self, watcher: ChangeWatcher) -> Callable[[], None]:
        """Subscribe to a watcher; returns the unsubscribe function."""
        return watcher.subscribe(self.on_change)
