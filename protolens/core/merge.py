"""
Merge & Conflict Resolver — fold overlay edits into fresh text entries.

For every entry with an overlay record:

    source unchanged since the edit      -> apply the edit
    source changed, edit still differs   -> conflict, keep the source value
    source changed, edit equals source   -> nothing to do

A conflict is data for the user to settle; it is never resolved here.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, List

from .overlay import Overlay
from .text import TextEntry


@dataclass
class ConflictEntry:
    key: str
    designer_value: str    # what the source says now
    copywriter_value: str  # what the overlay edit says

    def to_dict(self) -> Dict[str, str]:
        return {
            "key": self.key,
            "designerValue": self.designer_value,
            "copywriterValue": self.copywriter_value,
        }


@dataclass
class MergeResult:
    entries: List[TextEntry] = field(default_factory=list)
    conflicts: List[ConflictEntry] = field(default_factory=list)

    @property
    def modified_count(self) -> int:
        return sum(1 for entry in self.entries if entry.is_modified)


def merge_overlay(entries: List[TextEntry], overlay: Overlay) -> MergeResult:
    """
    Merge overlay edits into entries without mutating either input.

    Returns:
        MergeResult with one entry per input entry, in input order
    """
    result = MergeResult()

    for entry in entries:
        record = overlay.get(entry.key)
        if record is None:
            result.entries.append(entry)
            continue

        source_changed = record.source_value_at_edit != entry.source_value
        edit_differs = record.edited_value != entry.source_value

        if not source_changed:
            result.entries.append(replace(entry, current_value=record.edited_value))
        elif edit_differs:
            result.conflicts.append(ConflictEntry(
                key=entry.key,
                designer_value=entry.source_value,
                copywriter_value=record.edited_value,
            ))
            result.entries.append(replace(entry, current_value=entry.source_value))
        else:
            result.entries.append(replace(entry, current_value=entry.source_value))

    return result
