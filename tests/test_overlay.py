"""
Tests for the Overlay Store — persisted copy edits.
"""

import json
import logging

from protolens.core.overlay import Overlay, OverlayEntry, OverlayStore, OVERLAY_VERSION


class TestOverlayModel:

    def test_record_appends_history(self):
        overlay = Overlay()

        overlay.record("k", "First", "Save", timestamp="t1")
        entry = overlay.record("k", "Second", "Save", timestamp="t2")

        assert entry.edited_value == "Second"
        assert entry.edited_at == "t2"
        assert [(e.value, e.timestamp) for e in entry.edits] == [("First", "t1"), ("Second", "t2")]

    def test_record_stamps_time(self):
        entry = Overlay().record("k", "v", "s")

        assert entry.edited_at
        assert entry.edits[0].timestamp == entry.edited_at

    def test_round_trip_dict(self):
        overlay = Overlay()
        overlay.record("Button_4_2_children", "Save changes", "Save", timestamp="t1")

        data = overlay.to_dict()

        assert data == {
            "version": OVERLAY_VERSION,
            "entries": {
                "Button_4_2_children": {
                    "editedValue": "Save changes",
                    "editedAt": "t1",
                    "sourceValueAtEdit": "Save",
                    "edits": [{"value": "Save changes", "timestamp": "t1"}],
                }
            },
        }
        assert Overlay.from_dict(data).get("Button_4_2_children") == overlay.get("Button_4_2_children")

    def test_missing_history_tolerated(self):
        entry = OverlayEntry.from_dict({
            "editedValue": "a", "editedAt": "t", "sourceValueAtEdit": "b",
        })

        assert entry.edits == []


class TestOverlayStore:

    def test_read_missing_is_empty(self, tmp_path):
        overlay = OverlayStore(tmp_path).read()

        assert overlay.version == OVERLAY_VERSION
        assert overlay.entries == {}

    def test_patch_persists(self, tmp_path):
        store = OverlayStore(tmp_path)

        store.patch("k", "One", "Src")
        store.patch("k", "Two", "Src")

        data = json.loads((tmp_path / "copy-overlay.json").read_text())
        assert data["entries"]["k"]["editedValue"] == "Two"
        assert [e["value"] for e in data["entries"]["k"]["edits"]] == ["One", "Two"]
        assert store.read().get("k").source_value_at_edit == "Src"

    def test_last_writer_wins_basis(self, tmp_path):
        store = OverlayStore(tmp_path)

        store.patch("k", "One", "Old")
        store.patch("k", "Two", "New")

        assert store.read().get("k").source_value_at_edit == "New"

    def test_approve_removes_keys(self, tmp_path):
        store = OverlayStore(tmp_path)
        store.patch("a", "1", "x")
        store.patch("b", "2", "y")

        removed = store.approve(["a", "missing"])

        assert removed == ["a"]
        assert list(store.read().entries) == ["b"]

    def test_empty_overlay_deletes_file(self, tmp_path):
        store = OverlayStore(tmp_path)
        store.patch("a", "1", "x")

        store.approve(["a"])

        assert not store.path.exists()

    def test_malformed_file_logged_and_empty(self, tmp_path, caplog):
        (tmp_path / "copy-overlay.json").write_text("{not json")

        with caplog.at_level(logging.WARNING, logger="protolens.core.overlay"):
            overlay = OverlayStore(tmp_path).read()

        assert overlay.entries == {}
        assert "malformed overlay" in caplog.text

    def test_wrong_shape_treated_as_malformed(self, tmp_path):
        (tmp_path / "copy-overlay.json").write_text(json.dumps({"entries": {"k": {"editedValue": "x"}}}))

        assert OverlayStore(tmp_path).read().entries == {}

    def test_custom_file_name(self, tmp_path):
        store = OverlayStore(tmp_path, "edits.json")
        store.patch("k", "v", "s")

        assert (tmp_path / "edits.json").exists()
