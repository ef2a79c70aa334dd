"""
Runtime — host/sandbox message protocol and the preview surface model.
"""

from .protocol import (
    Message, MessageType, ThemeMode, Rect,
    HOST_TO_SURFACE, SURFACE_TO_HOST,
    parse_message, build_override_map,
)
from .surface import (
    SurfaceState, SurfaceElement, SurfaceDocument,
    TextOverrideApplier, PreviewSurface, PROPERTY_LOCATORS, bundle_url,
)

__all__ = [
    'Message', 'MessageType', 'ThemeMode', 'Rect',
    'HOST_TO_SURFACE', 'SURFACE_TO_HOST',
    'parse_message', 'build_override_map',
    'SurfaceState', 'SurfaceElement', 'SurfaceDocument',
    'TextOverrideApplier', 'PreviewSurface', 'PROPERTY_LOCATORS', 'bundle_url',
]
