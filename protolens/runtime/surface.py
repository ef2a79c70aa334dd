"""
Preview Surface — the sandboxed side of the runtime protocol.

The surface loads the compiled module, reports READY or RENDER_ERROR, and
answers host messages. The page it renders into is reached through the
small SurfaceElement/SurfaceDocument interface, so the same logic drives a
real DOM bridge or an in-memory fake.

Text overrides are written straight into rendered elements. The UI
framework re-renders and overwrites those writes, so the owner calls
``rendered()`` after every render pass (a mutation observer in a browser)
and all active overrides are re-applied on the next frame.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

from ..errors import ProtocolError
from . import protocol
from .protocol import Message, MessageType, Rect, ThemeMode

logger = logging.getLogger(__name__)


class SurfaceState(Enum):
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class SurfaceElement(ABC):
    """One rendered element."""

    @property
    @abstractmethod
    def parent(self) -> Optional['SurfaceElement']:
        pass

    @abstractmethod
    def get_text(self) -> str:
        """Content of the element's own text node."""
        pass

    @abstractmethod
    def set_text(self, value: str) -> None:
        pass

    @abstractmethod
    def get_attribute(self, name: str) -> Optional[str]:
        pass

    @abstractmethod
    def set_attribute(self, name: str, value: str) -> None:
        pass

    @abstractmethod
    def query(self, selector: str) -> Optional['SurfaceElement']:
        """First descendant matching a CSS selector."""
        pass

    @abstractmethod
    def rect(self) -> Rect:
        pass

    @property
    def inspector_id(self) -> Optional[str]:
        return self.get_attribute("data-inspector-id")


class SurfaceDocument(ABC):

    @abstractmethod
    def find(self, inspector_id: str) -> Optional[SurfaceElement]:
        """Element carrying the given data-inspector-id."""
        pass


# =============================================================================
# Text slots
# =============================================================================

class TextSlot:
    """The element's direct text."""

    def __init__(self, element: SurfaceElement):
        self.element = element

    def read(self) -> str:
        return self.element.get_text()

    def write(self, value: str) -> None:
        self.element.set_text(value)


class AttributeSlot:

    def __init__(self, element: SurfaceElement, name: str):
        self.element = element
        self.name = name

    def read(self) -> str:
        return self.element.get_attribute(self.name) or ""

    def write(self, value: str) -> None:
        self.element.set_attribute(self.name, value)


def _descendant_text(selector: str):
    def locate(element: SurfaceElement):
        target = element.query(selector)
        return TextSlot(target) if target is not None else None
    return locate


def _descendant_attribute(selector: str, name: str):
    def locate(element: SurfaceElement):
        target = element.query(selector)
        return AttributeSlot(target, name) if target is not None else None
    return locate


def _own_attribute(name: str):
    return lambda element: AttributeSlot(element, name)


# Where a property's text ends up in the rendered output
PROPERTY_LOCATORS: Dict[str, Callable[[SurfaceElement], Any]] = {
    "children": TextSlot,
    "placeholder": _descendant_attribute("input, textarea", "placeholder"),
    "aria-label": _own_attribute("aria-label"),
    "title": _own_attribute("title"),
    "label": _descendant_text("label"),
    "helperText": _descendant_text(".MuiFormHelperText-root"),
}


def locate_slot(element: SurfaceElement, prop_name: str):
    locator = PROPERTY_LOCATORS.get(prop_name)
    return locator(element) if locator is not None else None


class TextOverrideApplier:
    """
    Applies host text overrides to rendered elements.

    The original value of each (element id, property) is snapshotted once,
    before the first write. Dropping an override restores that snapshot and
    forgets it.
    """

    def __init__(self, document: SurfaceDocument, request_frame: Callable[[Callable[[], None]], Any]):
        self.document = document
        self.request_frame = request_frame
        self.overrides: Dict[str, Dict[str, str]] = {}
        self.snapshots: Dict[Tuple[str, str], str] = {}
        self._frame_pending = False

    def set_overrides(self, overrides: Dict[str, Dict[str, str]]) -> None:
        active = {
            (element_id, prop)
            for element_id, props in overrides.items()
            for prop in props
        }
        for slot_key in [key for key in self.snapshots if key not in active]:
            self._restore(*slot_key)

        self.overrides = {element_id: dict(props) for element_id, props in overrides.items()}
        self.apply_all()

    def apply_all(self) -> int:
        """Write every active override; returns how many slots were found."""
        applied = 0
        for element_id, props in self.overrides.items():
            element = self.document.find(element_id)
            if element is None:
                continue
            for prop, value in props.items():
                slot = locate_slot(element, prop)
                if slot is None:
                    continue
                if (element_id, prop) not in self.snapshots:
                    self.snapshots[(element_id, prop)] = slot.read()
                if slot.read() != value:
                    slot.write(value)
                applied += 1
        return applied

    def _restore(self, element_id: str, prop: str) -> None:
        original = self.snapshots.pop((element_id, prop))
        element = self.document.find(element_id)
        if element is None:
            return
        slot = locate_slot(element, prop)
        if slot is not None:
            slot.write(original)

    def on_render(self) -> None:
        """Schedule a re-apply on the next frame; calls coalesce until it runs."""
        if self._frame_pending or not self.overrides:
            return
        self._frame_pending = True
        self.request_frame(self._on_frame)

    def _on_frame(self) -> None:
        self._frame_pending = False
        self.apply_all()


def bundle_url(base_url: str, version: int) -> str:
    """Module URL for a load attempt; later attempts bypass the module cache."""
    if version <= 0:
        return base_url
    separator = "&" if "?" in base_url else "?"
    return f"{base_url}{separator}v={version}"


class PreviewSurface:
    """
    Runtime state machine of one preview.

        loading -> ready   module loaded and exports a component
        loading -> error   import or evaluation failed
        retry / RELOAD     bump the bundle version, back to loading

    Args:
        document: Rendered page access
        send: Posts a Message to the host
        load_module: Returns the module's default export for a bundle version
        request_frame: Runs a callback on the next animation frame
    """

    def __init__(
        self,
        document: SurfaceDocument,
        send: Callable[[Message], None],
        load_module: Callable[[int], Any],
        request_frame: Callable[[Callable[[], None]], Any],
    ):
        self.document = document
        self.send = send
        self.load_module = load_module
        self.applier = TextOverrideApplier(document, request_frame)

        self.state = SurfaceState.LOADING
        self.bundle_version = 0
        self.component: Any = None
        self.error: Optional[str] = None
        self.theme_mode = ThemeMode.SYSTEM
        self.inspector_enabled = True
        self.highlighted: Optional[str] = None

    def load(self) -> SurfaceState:
        self.state = SurfaceState.LOADING
        self.component = None
        self.error = None
        try:
            component = self.load_module(self.bundle_version)
            if not callable(component):
                raise TypeError(
                    "Prototype did not export a default component. "
                    f"Got: {type(component).__name__}"
                )
        except Exception as e:
            self.state = SurfaceState.ERROR
            self.error = str(e) or type(e).__name__
            logger.info("Preview failed to load: %s", self.error)
            self.send(protocol.render_error(self.error))
            return self.state

        self.component = component
        self.state = SurfaceState.READY
        self.send(protocol.ready())
        return self.state

    def retry(self) -> SurfaceState:
        self.bundle_version += 1
        return self.load()

    def reload(self) -> SurfaceState:
        self.bundle_version += 1
        return self.load()

    def rendered(self) -> None:
        """Called after each render pass of the page."""
        self.applier.on_render()

    def handle(self, payload: Dict[str, Any]) -> None:
        """
        Dispatch one message from the host.

        Raises:
            ProtocolError: Malformed payload or a surface-to-host message
        """
        message = protocol.parse_message(payload)
        if not message.from_host:
            raise ProtocolError(f"{message.type.value} is not a host message")

        if message.type == MessageType.SET_THEME:
            self.theme_mode = ThemeMode(message.get("mode"))
        elif message.type == MessageType.RELOAD:
            self.reload()
        elif message.type == MessageType.SET_TEXT_OVERRIDES:
            self.applier.set_overrides(message.get("overrides"))
        elif message.type == MessageType.HIGHLIGHT_TEXT:
            self.highlight(message.get("inspectorId"))
        elif message.type == MessageType.SET_INSPECTOR_MODE:
            self.inspector_enabled = message.get("enabled")

    # -------------------------------------------------------------------------
    # Inspector
    # -------------------------------------------------------------------------

    def highlight(self, inspector_id: Optional[str]) -> Optional[SurfaceElement]:
        """Mark the rendered element for an inspector id; None clears the mark."""
        element = self.document.find(inspector_id) if inspector_id else None
        if inspector_id and element is None:
            logger.debug("No rendered element for %s", inspector_id)
        self.highlighted = inspector_id if element is not None else None
        return element

    def _inspector_target(self, element: Optional[SurfaceElement]) -> Optional[SurfaceElement]:
        while element is not None:
            if element.inspector_id:
                return element
            element = element.parent
        return None

    def hover(self, element: Optional[SurfaceElement]) -> Optional[Message]:
        """Pointer moved over element (None when it left the page)."""
        if not self.inspector_enabled:
            return None
        target = self._inspector_target(element)
        if target is None:
            message = protocol.component_hover(None, None)
        else:
            message = protocol.component_hover(target.inspector_id, target.rect())
        self.send(message)
        return message

    def select(self, element: Optional[SurfaceElement]) -> Optional[Message]:
        """Element clicked."""
        if not self.inspector_enabled:
            return None
        target = self._inspector_target(element)
        if target is None:
            return None
        message = protocol.component_select(target.inspector_id, target.rect())
        self.send(message)
        return message
