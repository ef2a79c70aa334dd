"""
Tests for the Preview Surface and the text override applier.

The rendered page is an in-memory tree of FakeElement objects.
"""

from typing import List, Optional

import pytest

from protolens.errors import ProtocolError
from protolens.runtime.protocol import MessageType, Rect, ThemeMode
from protolens.runtime.surface import (
    PreviewSurface,
    SurfaceDocument,
    SurfaceElement,
    SurfaceState,
    TextOverrideApplier,
    bundle_url,
)


class FakeElement(SurfaceElement):

    def __init__(self, tag, text="", attributes=None, classes=(), children=()):
        self.tag = tag
        self.text = text
        self.attributes = dict(attributes or {})
        self.classes = set(classes)
        self.children: List['FakeElement'] = []
        self._parent: Optional['FakeElement'] = None
        for child in children:
            child._parent = self
            self.children.append(child)

    @property
    def parent(self):
        return self._parent

    def get_text(self):
        return self.text

    def set_text(self, value):
        self.text = value

    def get_attribute(self, name):
        return self.attributes.get(name)

    def set_attribute(self, name, value):
        self.attributes[name] = value

    def _matches(self, selector):
        if selector.startswith("."):
            return selector[1:] in self.classes
        return self.tag == selector

    def query(self, selector):
        selectors = [s.strip() for s in selector.split(",")]
        for child in self.walk():
            if child is not self and any(child._matches(s) for s in selectors):
                return child
        return None

    def walk(self):
        yield self
        for child in self.children:
            yield from child.walk()

    def rect(self):
        return Rect(0, 0, 100, 20)


class FakeDocument(SurfaceDocument):

    def __init__(self, body: FakeElement):
        self.body = body

    def find(self, inspector_id):
        for element in self.body.walk():
            if element.get_attribute("data-inspector-id") == inspector_id:
                return element
        return None


def build_page():
    button = FakeElement("button", "Save", {"data-inspector-id": "Button_3_0", "title": "Saves"})
    label = FakeElement("label", "Email")
    input_ = FakeElement("input", attributes={"placeholder": "you@example.com"})
    helper = FakeElement("p", "Required", classes={"MuiFormHelperText-root"})
    field = FakeElement("div", attributes={"data-inspector-id": "TextField_2_0"},
                        children=[label, input_, helper])
    icon = FakeElement("svg")
    chip = FakeElement("div", "Tag", {"data-inspector-id": "Chip_5_0"}, children=[icon])
    body = FakeElement("body", children=[button, field, chip])
    return FakeDocument(body), button, label, input_, helper, icon


class FrameQueue:

    def __init__(self):
        self.callbacks = []

    def __call__(self, callback):
        self.callbacks.append(callback)

    def run(self):
        callbacks, self.callbacks = self.callbacks, []
        for callback in callbacks:
            callback()


@pytest.fixture
def page():
    return build_page()


@pytest.fixture
def frames():
    return FrameQueue()


class TestTextOverrideApplier:

    def test_each_property_lands_in_its_slot(self, page, frames):
        document, button, label, input_, helper, _ = page
        applier = TextOverrideApplier(document, frames)

        applier.set_overrides({
            "Button_3_0": {"children": "Save changes", "title": "Stores it"},
            "TextField_2_0": {
                "label": "Work email",
                "placeholder": "name@company.com",
                "helperText": "We never share it",
            },
        })

        assert button.text == "Save changes"
        assert button.attributes["title"] == "Stores it"
        assert label.text == "Work email"
        assert input_.attributes["placeholder"] == "name@company.com"
        assert helper.text == "We never share it"

    def test_aria_label_set_on_element(self, page, frames):
        document, button, *_ = page

        TextOverrideApplier(document, frames).set_overrides({"Button_3_0": {"aria-label": "Save form"}})

        assert button.attributes["aria-label"] == "Save form"

    def test_removed_override_restores_original(self, page, frames):
        document, button, label, *_ = page
        applier = TextOverrideApplier(document, frames)
        applier.set_overrides({"Button_3_0": {"children": "Go"}, "TextField_2_0": {"label": "Mail"}})

        applier.set_overrides({"TextField_2_0": {"label": "Mail"}})

        assert button.text == "Save"
        assert label.text == "Mail"
        assert ("Button_3_0", "children") not in applier.snapshots

    def test_snapshot_taken_once(self, page, frames):
        document, button, *_ = page
        applier = TextOverrideApplier(document, frames)
        applier.set_overrides({"Button_3_0": {"children": "One"}})
        applier.set_overrides({"Button_3_0": {"children": "Two"}})

        applier.set_overrides({})

        assert button.text == "Save"

    def test_missing_elements_and_slots_skipped(self, page, frames):
        document, *_ = page
        applier = TextOverrideApplier(document, frames)

        applier.set_overrides({"Gone_1_0": {"children": "x"}, "Chip_5_0": {"placeholder": "x", "unknown": "y"}})

        assert applier.apply_all() == 0

    def test_rerender_reapplied_on_next_frame(self, page, frames):
        document, button, *_ = page
        applier = TextOverrideApplier(document, frames)
        applier.set_overrides({"Button_3_0": {"children": "Go"}})

        button.text = "Save"
        applier.on_render()
        applier.on_render()

        assert button.text == "Save"
        assert len(frames.callbacks) == 1

        frames.run()

        assert button.text == "Go"

    def test_no_frame_without_overrides(self, page, frames):
        document, *_ = page

        TextOverrideApplier(document, frames).on_render()

        assert frames.callbacks == []


class TestBundleUrl:

    def test_first_load_unversioned(self):
        assert bundle_url("/api/bundle/checkout", 0) == "/api/bundle/checkout"

    def test_versions(self):
        assert bundle_url("/api/bundle/checkout", 2) == "/api/bundle/checkout?v=2"
        assert bundle_url("/api/bundle/checkout?screen=login", 1) == "/api/bundle/checkout?screen=login&v=1"


def component():
    return None


class TestPreviewSurface:

    def make_surface(self, page, frames, load_module=None):
        document = page[0]
        sent = []
        surface = PreviewSurface(document, sent.append, load_module or (lambda version: component), frames)
        return surface, sent

    def test_initial_state(self, page, frames):
        surface, sent = self.make_surface(page, frames)

        assert surface.state == SurfaceState.LOADING
        assert surface.theme_mode == ThemeMode.SYSTEM
        assert surface.inspector_enabled
        assert sent == []

    def test_ready(self, page, frames):
        surface, sent = self.make_surface(page, frames)

        assert surface.load() == SurfaceState.READY
        assert surface.component is component
        assert [m.type for m in sent] == [MessageType.READY]

    def test_import_failure(self, page, frames):
        def fail(version):
            raise ImportError("Failed to fetch dynamically imported module")

        surface, sent = self.make_surface(page, frames, fail)

        assert surface.load() == SurfaceState.ERROR
        assert sent[0].type == MessageType.RENDER_ERROR
        assert sent[0].get("message") == "Failed to fetch dynamically imported module"

    def test_default_export_not_a_component(self, page, frames):
        surface, sent = self.make_surface(page, frames, lambda version: {"not": "callable"})

        surface.load()

        assert surface.state == SurfaceState.ERROR
        assert surface.error.startswith("Prototype did not export a default component")

    def test_retry_bumps_version(self, page, frames):
        versions = []

        def load(version):
            versions.append(version)
            if version == 0:
                raise RuntimeError("boom")
            return component

        surface, sent = self.make_surface(page, frames, load)
        surface.load()

        assert surface.retry() == SurfaceState.READY
        assert versions == [0, 1]
        assert [m.type for m in sent] == [MessageType.RENDER_ERROR, MessageType.READY]

    def test_reload_message(self, page, frames):
        versions = []
        surface, _ = self.make_surface(page, frames, lambda v: versions.append(v) or component)
        surface.load()

        surface.handle({"type": "RELOAD"})

        assert versions == [0, 1]
        assert surface.bundle_version == 1

    def test_host_messages(self, page, frames):
        _, button, *_ = page
        surface, _ = self.make_surface(page, frames)

        surface.handle({"type": "SET_THEME", "mode": "dark"})
        surface.handle({"type": "HIGHLIGHT_TEXT", "inspectorId": "Button_3_0"})
        surface.handle({"type": "SET_TEXT_OVERRIDES", "overrides": {"Button_3_0": {"children": "Go"}}})

        assert surface.theme_mode == ThemeMode.DARK
        assert surface.highlighted == "Button_3_0"
        assert button.text == "Go"

    def test_highlight_resolves_element(self, page, frames):
        _, button, *_ = page
        surface, _ = self.make_surface(page, frames)

        assert surface.highlight("Button_3_0") is button
        assert surface.highlighted == "Button_3_0"

    def test_highlight_unknown_element_clears(self, page, frames):
        surface, _ = self.make_surface(page, frames)
        surface.handle({"type": "HIGHLIGHT_TEXT", "inspectorId": "Button_3_0"})

        surface.handle({"type": "HIGHLIGHT_TEXT", "inspectorId": "h1_3_8"})

        assert surface.highlighted is None

    def test_highlight_none_clears(self, page, frames):
        surface, _ = self.make_surface(page, frames)
        surface.handle({"type": "HIGHLIGHT_TEXT", "inspectorId": "Button_3_0"})

        surface.handle({"type": "HIGHLIGHT_TEXT", "inspectorId": None})

        assert surface.highlighted is None

    def test_rendered_reapplies(self, page, frames):
        _, button, *_ = page
        surface, _ = self.make_surface(page, frames)
        surface.handle({"type": "SET_TEXT_OVERRIDES", "overrides": {"Button_3_0": {"children": "Go"}}})

        button.text = "Save"
        surface.rendered()
        frames.run()

        assert button.text == "Go"

    def test_surface_messages_rejected(self, page, frames):
        surface, _ = self.make_surface(page, frames)

        with pytest.raises(ProtocolError):
            surface.handle({"type": "READY"})

    def test_hover_walks_to_inspected_ancestor(self, page, frames):
        *_, icon = page
        surface, sent = self.make_surface(page, frames)

        message = surface.hover(icon)

        assert message.to_dict() == {
            "type": "COMPONENT_HOVER",
            "id": "Chip_5_0",
            "rect": {"top": 0, "left": 0, "width": 100, "height": 20},
        }
        assert sent == [message]

    def test_hover_outside_components_clears(self, page, frames):
        document = page[0]
        surface, sent = self.make_surface(page, frames)

        message = surface.hover(document.body)

        assert message.get("id") is None and message.get("rect") is None

    def test_select(self, page, frames):
        _, button, *_ = page
        surface, sent = self.make_surface(page, frames)

        message = surface.select(button)

        assert message.type == MessageType.COMPONENT_SELECT
        assert message.get("id") == "Button_3_0"

    def test_inspector_disabled(self, page, frames):
        _, button, *_ = page
        surface, sent = self.make_surface(page, frames)
        surface.handle({"type": "SET_INSPECTOR_MODE", "enabled": False})

        assert surface.hover(button) is None
        assert surface.select(button) is None
        assert sent == []
