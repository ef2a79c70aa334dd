"""
Tests for the Document Store — on-disk document layout.
"""

import pytest

from protolens.errors import DocumentNotFoundError
from protolens.services.documents import DocumentStore, screen_file_name

from tests.factories import LOGIN_SOURCE


class TestScreenFileName:

    def test_main_screen(self):
        assert screen_file_name() == "index.jsx"
        assert screen_file_name("index") == "index.jsx"

    def test_named_screen(self):
        assert screen_file_name("login") == "screen-login.jsx"


class TestDocumentStore:

    def test_read_and_write(self, checkout):
        store = checkout.store()

        assert "export default function Checkout" in store.read_source("checkout")

        store.write_source("checkout", "export default () => null;\n")

        assert checkout.read_source("checkout") == "export default () => null;\n"

    def test_screens_listed_main_first(self, docs):
        docs.create("app", screens={"settings": LOGIN_SOURCE, "login": LOGIN_SOURCE})

        screens = [s.to_dict() for s in docs.store().list_screens("app")]

        assert screens == [
            {"id": "index", "name": "Main", "file": "index.jsx"},
            {"id": "login", "name": "Login", "file": "screen-login.jsx"},
            {"id": "settings", "name": "Settings", "file": "screen-settings.jsx"},
        ]

    def test_read_screen(self, docs):
        docs.create("app", screens={"login": LOGIN_SOURCE})

        assert docs.store().read_source("app", "login") == LOGIN_SOURCE

    def test_missing_document(self, docs):
        with pytest.raises(DocumentNotFoundError, match="Document not found: nope"):
            docs.store().read_source("nope")

    def test_missing_screen(self, checkout):
        with pytest.raises(DocumentNotFoundError) as excinfo:
            checkout.store().read_source("checkout", "missing")

        assert excinfo.value.screen == "missing"

    @pytest.mark.parametrize("document_id", ["../etc", "", ".hidden", "a/b", "a..b"])
    def test_unsafe_ids_rejected(self, docs, document_id):
        with pytest.raises(DocumentNotFoundError):
            docs.store().document_dir(document_id)

    def test_write_requires_document(self, docs):
        with pytest.raises(DocumentNotFoundError):
            docs.store().write_source("ghost", "x")

    def test_exists(self, checkout):
        store = checkout.store()

        assert store.exists("checkout")
        assert not store.exists("checkout", "login")
        assert not store.exists("../checkout")

    def test_document_for_path(self, checkout):
        store = checkout.store()

        assert store.document_for_path(checkout.source_path("checkout")) == "checkout"
        assert store.document_for_path(checkout.root / "loose.txt") is None
        assert store.document_for_path(checkout.root.parent / "elsewhere" / "x.jsx") is None

    def test_overlay_store_location(self, checkout):
        overlay = checkout.store().overlay_store("checkout")

        assert overlay.path == checkout.overlay_path("checkout")

    def test_custom_overlay_file(self, checkout):
        store = DocumentStore(checkout.root, "edits.json")

        assert store.overlay_store("checkout").path.name == "edits.json"
