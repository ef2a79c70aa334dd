"""
Document Store — filesystem layout of prototype documents.

A document is a directory under the documents root:

    prototypes/
      checkout/
        index.jsx            # main screen
        screen-login.jsx     # screen "login"
        copy-overlay.json    # pending copy edits

Only source text and the overlay are handled here; listing, metadata,
cloning and sharing belong to the hosting application.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from ..core.overlay import OVERLAY_FILE_NAME, OverlayStore
from ..errors import DocumentNotFoundError

MAIN_SCREEN = "index"
SCREEN_PREFIX = "screen-"
SOURCE_SUFFIX = ".jsx"

_SAFE_NAME = re.compile(r'^[A-Za-z0-9][A-Za-z0-9_.-]*$')


@dataclass
class Screen:
    id: str
    name: str
    file: str

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "name": self.name, "file": self.file}


def screen_file_name(screen: Optional[str] = None) -> str:
    """``index.jsx`` for the main screen, ``screen-<name>.jsx`` otherwise."""
    if not screen or screen == MAIN_SCREEN:
        return f"{MAIN_SCREEN}{SOURCE_SUFFIX}"
    return f"{SCREEN_PREFIX}{screen}{SOURCE_SUFFIX}"


def _screen_title(screen_id: str) -> str:
    if screen_id == MAIN_SCREEN:
        return "Main"
    return screen_id[:1].upper() + screen_id[1:]


class DocumentStore:
    """Reads and writes document sources below one root directory."""

    def __init__(self, root: Path, overlay_file: str = OVERLAY_FILE_NAME):
        self.root = Path(root)
        self.overlay_file = overlay_file

    def document_dir(self, document_id: str) -> Path:
        if not _SAFE_NAME.match(document_id or "") or ".." in document_id:
            raise DocumentNotFoundError(document_id)
        return self.root / document_id

    def source_path(self, document_id: str, screen: Optional[str] = None) -> Path:
        if screen and screen != MAIN_SCREEN and not _SAFE_NAME.match(screen):
            raise DocumentNotFoundError(document_id, screen)
        return self.document_dir(document_id) / screen_file_name(screen)

    def exists(self, document_id: str, screen: Optional[str] = None) -> bool:
        try:
            return self.source_path(document_id, screen).is_file()
        except DocumentNotFoundError:
            return False

    def read_source(self, document_id: str, screen: Optional[str] = None) -> str:
        """
        Raw source text of a screen.

        Raises:
            DocumentNotFoundError: Missing or unreadable file
        """
        path = self.source_path(document_id, screen)
        try:
            return path.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            raise DocumentNotFoundError(document_id, screen) from e

    def write_source(self, document_id: str, text: str, screen: Optional[str] = None) -> Path:
        path = self.source_path(document_id, screen)
        if not path.parent.is_dir():
            raise DocumentNotFoundError(document_id, screen)
        path.write_text(text, encoding='utf-8')
        return path

    def list_screens(self, document_id: str) -> List[Screen]:
        """Main screen first, then ``screen-*`` files by name."""
        directory = self.document_dir(document_id)
        if not directory.is_dir():
            raise DocumentNotFoundError(document_id)

        screens = []
        main = screen_file_name(MAIN_SCREEN)
        if (directory / main).is_file():
            screens.append(Screen(MAIN_SCREEN, _screen_title(MAIN_SCREEN), main))

        for path in sorted(directory.glob(f"{SCREEN_PREFIX}*{SOURCE_SUFFIX}")):
            screen_id = path.name[len(SCREEN_PREFIX):-len(SOURCE_SUFFIX)]
            if screen_id:
                screens.append(Screen(screen_id, _screen_title(screen_id), path.name))
        return screens

    def overlay_store(self, document_id: str) -> OverlayStore:
        return OverlayStore(self.document_dir(document_id), self.overlay_file)

    def document_for_path(self, path: Path) -> Optional[str]:
        """Document id owning a path below the root, if any."""
        try:
            relative = Path(path).resolve().relative_to(self.root.resolve())
        except ValueError:
            return None
        parts = relative.parts
        return parts[0] if len(parts) > 1 else None
