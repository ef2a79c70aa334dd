"""
Source Patcher — commit approved text edits into the original source.

The source is re-parsed and each edit key is located with the same
strategies the text extractor uses. Only the literal's own bytes are
replaced (quotes stay, surrounding whitespace of JSX text stays), and all
replacements are computed against the unmodified text, then applied from
the highest offset down so no replacement shifts another.

Edits whose value already equals the source are skipped without error.
A source with syntax errors is refused as a whole.

Usage:
    result = SourcePatcher().patch(source, [TextEdit("Button_4_2_children", "children", "Save changes")])
    result.text
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .parsing import SourceParser, get_parser
from .text import TextEntryExtractor

logger = logging.getLogger(__name__)


@dataclass
class TextEdit:
    key: str
    property_name: str
    new_value: str


@dataclass
class Replacement:
    start: int
    end: int
    new_text: str


@dataclass
class PatchResult:
    text: str
    applied: List[str] = field(default_factory=list)    # keys rewritten
    unchanged: List[str] = field(default_factory=list)  # already equal to source
    missing: List[str] = field(default_factory=list)    # key not found in source

    @property
    def folded(self) -> List[str]:
        """Keys whose edit is now reflected in the source."""
        return self.applied + self.unchanged

    @property
    def changed(self) -> bool:
        return bool(self.applied)


def apply_replacements(data: bytes, replacements: List[Replacement]) -> bytes:
    """Apply byte-range replacements computed against ``data``, back to front."""
    for rep in sorted(replacements, key=lambda r: r.start, reverse=True):
        data = data[:rep.start] + rep.new_text.encode('utf-8') + data[rep.end:]
    return data


class SourcePatcher:

    def __init__(self, parser: Optional[SourceParser] = None):
        self.parser = parser or get_parser()

    def plan(self, source: str, edits: List[TextEdit], file_path: Optional[Path] = None) -> Tuple[bytes, List[Replacement], PatchResult]:
        parsed = self.parser.parse(source, file_path=file_path)
        parsed.require_clean("apply text edits")

        entries = {entry.key: entry for entry in TextEntryExtractor(parsed).extract()}
        result = PatchResult(text=source)
        replacements: List[Replacement] = []

        # Last edit for a key wins
        latest: Dict[str, TextEdit] = {}
        for edit in edits:
            latest[edit.key] = edit

        for edit in latest.values():
            entry = entries.get(edit.key)
            if entry is None or entry.span is None:
                result.missing.append(edit.key)
                continue
            if edit.property_name and edit.property_name != entry.prop_name:
                logger.warning(
                    "Edit for %s names property %s, source has %s",
                    edit.key, edit.property_name, entry.prop_name,
                )
                result.missing.append(edit.key)
                continue
            if edit.new_value == entry.source_value:
                result.unchanged.append(edit.key)
                continue

            span = entry.span
            replacements.append(Replacement(span.start, span.end, span.escape(edit.new_value)))
            result.applied.append(edit.key)

        return parsed.data, replacements, result

    def patch(self, source: str, edits: List[TextEdit], file_path: Optional[Path] = None) -> PatchResult:
        """
        Rewrite the literals named by edits.

        Raises:
            ParseError: If the source has syntax errors (nothing is rewritten)
        """
        if not edits:
            return PatchResult(text=source)

        data, replacements, result = self.plan(source, edits, file_path)
        if result.missing:
            logger.warning("No source literal for keys: %s", ", ".join(result.missing))
        if replacements:
            result.text = apply_replacements(data, replacements).decode('utf-8')
        return result


def apply_text_edits(source: str, edits: List[TextEdit], file_path: Optional[str] = None) -> str:
    """Convenience wrapper returning only the rewritten source."""
    return SourcePatcher().patch(source, edits, Path(file_path) if file_path else None).text
