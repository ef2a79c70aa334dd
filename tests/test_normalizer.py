"""
Tests for the Source Normalizer — default export guarantee.
"""

import logging

from tests.factories import requires_tree_sitter, CHECKOUT_SOURCE


@requires_tree_sitter
class TestEnsureDefaultExport:

    def test_existing_default_export_unchanged(self):
        from protolens.core.normalizer import ensure_default_export

        assert ensure_default_export(CHECKOUT_SOURCE) == CHECKOUT_SOURCE

    def test_export_clause_alias_counts_as_default(self):
        from protolens.core.normalizer import ensure_default_export

        source = "function Page() { return <div />; }\nexport { Page as default };\n"

        assert ensure_default_export(source) == source

    def test_appends_last_uppercase_declaration(self, caplog):
        from protolens.core.normalizer import ensure_default_export

        source = (
            "function Header() { return <h1>Hi</h1>; }\n"
            "export const Page = () => <Header />;\n"
        )

        with caplog.at_level(logging.WARNING, logger="protolens.core.normalizer"):
            result = ensure_default_export(source)

        assert result == source + "\nexport default Page;\n"
        assert "export default Page" in caplog.text

    def test_function_after_const_wins(self):
        from protolens.core.normalizer import ensure_default_export

        source = (
            "const Card = () => <div />;\n"
            "export function Screen() { return <Card />; }\n"
        )

        assert ensure_default_export(source).endswith("\nexport default Screen;\n")

    def test_lowercase_and_let_declarations_ignored(self):
        from protolens.core.normalizer import component_candidates
        from protolens.core.parsing import SourceParser

        source = (
            "function helper() {}\n"
            "let Mutable = () => null;\n"
            "const View = () => <div />;\n"
        )

        assert component_candidates(SourceParser().parse(source)) == ["View"]

    def test_nested_declarations_ignored(self):
        from protolens.core.normalizer import component_candidates
        from protolens.core.parsing import SourceParser

        source = "function Outer() {\n  const Inner = () => null;\n  return <Inner />;\n}\n"

        assert component_candidates(SourceParser().parse(source)) == ["Outer"]

    def test_no_candidate_returns_source_unchanged(self):
        from protolens.core.normalizer import ensure_default_export

        source = "const value = 42;\n"

        assert ensure_default_export(source) == source
