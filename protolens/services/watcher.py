"""
Change Watcher — one long-lived watchdog observer over the documents root.

Subscribers receive the path of every created or modified file in delivery
order. Hidden files and directories are ignored, nothing is replayed to
late subscribers, and events before ``start()`` are not reported.
"""

import logging
import threading
from pathlib import Path
from typing import Callable, List, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)

Subscriber = Callable[[str], None]


def is_hidden(path: str, root: Optional[Path] = None) -> bool:
    """True if any path component below root starts with a dot."""
    candidate = Path(path)
    if root is not None:
        try:
            candidate = candidate.relative_to(root)
        except ValueError:
            pass
    return any(part.startswith('.') for part in candidate.parts if part not in ('.', '..'))


class _ChangeHandler(FileSystemEventHandler):

    def __init__(self, watcher: 'ChangeWatcher'):
        super().__init__()
        self._watcher = watcher

    def on_modified(self, event: FileSystemEvent):
        if not event.is_directory:
            self._watcher.notify(str(event.src_path))

    def on_created(self, event: FileSystemEvent):
        if not event.is_directory:
            self._watcher.notify(str(event.src_path))

    def on_moved(self, event: FileSystemEvent):
        # Editors that save through a temp file show up as a move onto the target
        if not event.is_directory:
            self._watcher.notify(str(event.dest_path))


class ChangeWatcher:
    """
    Explicit-lifecycle file watcher.

    Usage:
        watcher = ChangeWatcher(Path("prototypes"))
        watcher.subscribe(print)
        watcher.start()
        ...
        watcher.stop()
    """

    def __init__(self, root: Path, observer_factory: Callable[[], Observer] = Observer):
        self.root = Path(root)
        self._observer_factory = observer_factory
        self._observer = None
        self._subscribers: List[Subscriber] = []
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._observer is not None

    def start(self) -> None:
        if self._observer is not None:
            return
        observer = self._observer_factory()
        observer.schedule(_ChangeHandler(self), str(self.root), recursive=True)
        observer.start()
        self._observer = observer
        logger.debug("Watching %s", self.root)

    def stop(self) -> None:
        observer, self._observer = self._observer, None
        if observer is None:
            return
        observer.stop()
        observer.join()
        logger.debug("Stopped watching %s", self.root)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register callback; returns a function that unsubscribes it."""
        with self._lock:
            self._subscribers.append(callback)
        return lambda: self.unsubscribe(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    def notify(self, path: str) -> None:
        """Fan a changed path out to every current subscriber."""
        if is_hidden(path, self.root):
            return
        with self._lock:
            subscribers = list(self._subscribers)
        logger.debug("Change %s -> %d subscriber(s)", path, len(subscribers))
        for callback in subscribers:
            try:
                callback(path)
            except Exception:
                logger.exception("Watcher subscriber failed for %s", path)

    def __enter__(self) -> 'ChangeWatcher':
        self.start()
        return self

    def __exit__(self, *exc) -> None:
        self.stop()
