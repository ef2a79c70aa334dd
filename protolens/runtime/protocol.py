"""
Runtime Protocol — messages between the host and the sandboxed preview.

Every payload is a flat JSON object tagged by ``type``:

    Host -> surface: SET_THEME, RELOAD, SET_TEXT_OVERRIDES,
                     HIGHLIGHT_TEXT, SET_INSPECTOR_MODE
    Surface -> host: RENDER_ERROR, READY, COMPONENT_HOVER, COMPONENT_SELECT

Delivery is fire-and-forget. There are no acknowledgements, and a lost
message has no effect until the user triggers another reload.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

from ..errors import ProtocolError


class MessageType(Enum):
    # Host -> surface
    SET_THEME = "SET_THEME"
    RELOAD = "RELOAD"
    SET_TEXT_OVERRIDES = "SET_TEXT_OVERRIDES"
    HIGHLIGHT_TEXT = "HIGHLIGHT_TEXT"
    SET_INSPECTOR_MODE = "SET_INSPECTOR_MODE"

    # Surface -> host
    RENDER_ERROR = "RENDER_ERROR"
    READY = "READY"
    COMPONENT_HOVER = "COMPONENT_HOVER"
    COMPONENT_SELECT = "COMPONENT_SELECT"


HOST_TO_SURFACE = frozenset({
    MessageType.SET_THEME,
    MessageType.RELOAD,
    MessageType.SET_TEXT_OVERRIDES,
    MessageType.HIGHLIGHT_TEXT,
    MessageType.SET_INSPECTOR_MODE,
})

SURFACE_TO_HOST = frozenset({
    MessageType.RENDER_ERROR,
    MessageType.READY,
    MessageType.COMPONENT_HOVER,
    MessageType.COMPONENT_SELECT,
})


class ThemeMode(Enum):
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


# Payload fields each message must carry
REQUIRED_FIELDS: Dict[MessageType, Tuple[str, ...]] = {
    MessageType.SET_THEME: ("mode",),
    MessageType.RELOAD: (),
    MessageType.SET_TEXT_OVERRIDES: ("overrides",),
    MessageType.HIGHLIGHT_TEXT: ("inspectorId",),
    MessageType.SET_INSPECTOR_MODE: ("enabled",),
    MessageType.RENDER_ERROR: ("message",),
    MessageType.READY: (),
    MessageType.COMPONENT_HOVER: ("id", "rect"),
    MessageType.COMPONENT_SELECT: ("id", "rect"),
}


@dataclass
class Rect:
    top: float
    left: float
    width: float
    height: float

    def to_dict(self) -> Dict[str, float]:
        return {"top": self.top, "left": self.left, "width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Rect':
        try:
            return cls(
                top=float(data["top"]),
                left=float(data["left"]),
                width=float(data["width"]),
                height=float(data["height"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ProtocolError(f"Invalid rect: {data!r}") from e


@dataclass
class Message:
    type: MessageType
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def from_host(self) -> bool:
        return self.type in HOST_TO_SURFACE

    def get(self, name: str, default: Any = None) -> Any:
        return self.data.get(name, default)

    def to_dict(self) -> Dict[str, Any]:
        payload = {"type": self.type.value}
        for key, value in self.data.items():
            payload[key] = value.to_dict() if isinstance(value, Rect) else value
        return payload

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> 'Message':
        return parse_message(payload)


def _validate(message_type: MessageType, data: Dict[str, Any]) -> Dict[str, Any]:
    missing = [name for name in REQUIRED_FIELDS[message_type] if name not in data]
    if missing:
        raise ProtocolError(f"{message_type.value} is missing {', '.join(missing)}")

    if message_type == MessageType.SET_THEME:
        try:
            data["mode"] = ThemeMode(data["mode"]).value
        except ValueError:
            raise ProtocolError(f"Unknown theme mode: {data['mode']!r}")
    elif message_type == MessageType.SET_TEXT_OVERRIDES:
        overrides = data["overrides"]
        if not isinstance(overrides, dict) or not all(
            isinstance(props, dict) and all(isinstance(v, str) for v in props.values())
            for props in overrides.values()
        ):
            raise ProtocolError("overrides must map element ids to {property: text}")
    elif message_type == MessageType.SET_INSPECTOR_MODE:
        data["enabled"] = bool(data["enabled"])
    elif message_type == MessageType.RENDER_ERROR:
        data["message"] = str(data["message"])
    elif message_type == MessageType.COMPONENT_HOVER:
        if (data["id"] is None) != (data["rect"] is None):
            raise ProtocolError("COMPONENT_HOVER needs both id and rect, or neither")
        if data["rect"] is not None:
            data["rect"] = Rect.from_dict(data["rect"])
    elif message_type == MessageType.COMPONENT_SELECT:
        if data["id"] is None:
            raise ProtocolError("COMPONENT_SELECT needs an element id")
        data["rect"] = Rect.from_dict(data["rect"])
    return data


def parse_message(payload: Any) -> Message:
    """
    Decode a received payload.

    Raises:
        ProtocolError: Not an object, unknown type, or missing fields
    """
    if not isinstance(payload, dict) or "type" not in payload:
        raise ProtocolError(f"Not a protocol message: {payload!r}")
    try:
        message_type = MessageType(payload["type"])
    except ValueError:
        raise ProtocolError(f"Unknown message type: {payload['type']!r}")

    data = {key: value for key, value in payload.items() if key != "type"}
    return Message(message_type, _validate(message_type, data))


# =============================================================================
# Message constructors
# =============================================================================

def set_theme(mode: str) -> Message:
    return Message(MessageType.SET_THEME, {"mode": ThemeMode(mode).value})


def reload() -> Message:
    return Message(MessageType.RELOAD)


def set_text_overrides(overrides: Dict[str, Dict[str, str]]) -> Message:
    return Message(MessageType.SET_TEXT_OVERRIDES, {"overrides": overrides})


def highlight_text(inspector_id: Optional[str]) -> Message:
    return Message(MessageType.HIGHLIGHT_TEXT, {"inspectorId": inspector_id})


def set_inspector_mode(enabled: bool) -> Message:
    return Message(MessageType.SET_INSPECTOR_MODE, {"enabled": bool(enabled)})


def render_error(message: str) -> Message:
    return Message(MessageType.RENDER_ERROR, {"message": message})


def ready() -> Message:
    return Message(MessageType.READY)


def component_hover(element_id: Optional[str], rect: Optional[Rect]) -> Message:
    if (element_id is None) != (rect is None):
        raise ProtocolError("COMPONENT_HOVER needs both id and rect, or neither")
    return Message(MessageType.COMPONENT_HOVER, {"id": element_id, "rect": rect})


def component_select(element_id: str, rect: Rect) -> Message:
    return Message(MessageType.COMPONENT_SELECT, {"id": element_id, "rect": rect})


def build_override_map(entries: Iterable[Any]) -> Dict[str, Dict[str, str]]:
    """
    Override payload for SET_TEXT_OVERRIDES from merged text entries.

    Only entries whose current value differs from the source are included.
    Entries without an inspector id (data-array text) cannot be located in
    the preview and are skipped.
    """
    overrides: Dict[str, Dict[str, str]] = {}
    for entry in entries:
        if entry.current_value == entry.source_value or not entry.inspector_id:
            continue
        overrides.setdefault(entry.inspector_id, {})[entry.prop_name] = entry.current_value
    return overrides
