"""
Overlay Store — persisted copy edits for one document.

The overlay lives next to the document as ``copy-overlay.json``:

    {"version": 1,
     "entries": {"Button_4_2_children": {
         "editedValue": "Save changes",
         "editedAt": "2026-01-01T10:00:00+00:00",
         "sourceValueAtEdit": "Save",
         "edits": [{"value": "Save changes", "timestamp": "..."}]}}}

Edits are last-writer-wins per key; the ``edits`` history only grows until
the key is approved into the source and removed. There is no locking:
concurrent writers to one document are not supported.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Any, Iterable

logger = logging.getLogger(__name__)

OVERLAY_VERSION = 1
OVERLAY_FILE_NAME = "copy-overlay.json"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class EditRecord:
    value: str
    timestamp: str

    def to_dict(self) -> Dict[str, str]:
        return {"value": self.value, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EditRecord':
        return cls(value=data["value"], timestamp=data["timestamp"])


@dataclass
class OverlayEntry:
    edited_value: str
    edited_at: str
    source_value_at_edit: str
    edits: List[EditRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "editedValue": self.edited_value,
            "editedAt": self.edited_at,
            "sourceValueAtEdit": self.source_value_at_edit,
            "edits": [edit.to_dict() for edit in self.edits],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'OverlayEntry':
        return cls(
            edited_value=data["editedValue"],
            edited_at=data["editedAt"],
            source_value_at_edit=data["sourceValueAtEdit"],
            edits=[EditRecord.from_dict(edit) for edit in data.get("edits", [])],
        )


@dataclass
class Overlay:
    version: int = OVERLAY_VERSION
    entries: Dict[str, OverlayEntry] = field(default_factory=dict)

    def get(self, key: str):
        return self.entries.get(key)

    def record(self, key: str, value: str, source_value: str, timestamp: str = "") -> OverlayEntry:
        """Set the current edit for key and append it to the key's history."""
        timestamp = timestamp or _now()
        existing = self.entries.get(key)
        history = list(existing.edits) if existing else []
        history.append(EditRecord(value=value, timestamp=timestamp))
        entry = OverlayEntry(
            edited_value=value,
            edited_at=timestamp,
            source_value_at_edit=source_value,
            edits=history,
        )
        self.entries[key] = entry
        return entry

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "entries": {key: entry.to_dict() for key, entry in self.entries.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Overlay':
        return cls(
            version=data.get("version", OVERLAY_VERSION),
            entries={
                key: OverlayEntry.from_dict(entry)
                for key, entry in data.get("entries", {}).items()
            },
        )


class OverlayStore:
    """File-backed overlay for one document directory."""

    def __init__(self, document_dir: Path, file_name: str = OVERLAY_FILE_NAME):
        self.document_dir = Path(document_dir)
        self.path = self.document_dir / file_name

    def read(self) -> Overlay:
        """Persisted overlay, or an empty one when missing or unreadable."""
        if not self.path.exists():
            return Overlay()
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                return Overlay.from_dict(json.load(f))
        except (json.JSONDecodeError, KeyError, TypeError, AttributeError) as e:
            logger.warning("Ignoring malformed overlay %s: %s", self.path, e)
            return Overlay()

    def write(self, overlay: Overlay) -> None:
        if not overlay.entries:
            if self.path.exists():
                self.path.unlink()
            return
        self.document_dir.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump(overlay.to_dict(), f, indent=2, ensure_ascii=False)

    def patch(self, key: str, value: str, source_value: str) -> OverlayEntry:
        """
        Persist an edit.

        Args:
            key: Text entry key
            value: New edited value
            source_value: The entry's source value when the edit was made

        Returns:
            The updated overlay entry
        """
        overlay = self.read()
        entry = overlay.record(key, value, source_value)
        self.write(overlay)
        return entry

    def approve(self, keys: Iterable[str]) -> List[str]:
        """
        Drop keys that were folded into the source.

        Returns:
            Keys that were present and removed
        """
        overlay = self.read()
        removed = []
        for key in keys:
            if overlay.entries.pop(key, None) is not None:
                removed.append(key)
        if removed:
            self.write(overlay)
        return removed
