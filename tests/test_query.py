"""
Tests for query building and evaluation.
"""
from enum import Enum
from unittest.mock import MagicMock
import re

import pytest

from a11y_selectors.config import SelectorConfig
from a11y_selectors.errors import InvalidLocatorError, InvalidOptionError, UnknownSelectorError
from a11y_selectors.locators.filters import MatchMode
from a11y_selectors.locators.query import (
    build_query,
    default_host_filter,
    find_all,
    matches_selector,
)


def ids(tree, nodes):
    return [tree.attribute(node, "id") for node in nodes]


class Landmark(Enum):
    MAIN = "Main"


class TestRegionSelector:
    """Test the region selector end to end."""

    def test_bare_section_is_not_a_region(self, parse):
        """Test an unnamed <section> yields no region."""
        tree = parse("<section>Content</section>")
        assert find_all(tree, tree.root, "region") == []

    def test_named_section_is_a_region(self, parse):
        """Test a labelled <section> yields exactly one region."""
        tree = parse('<section id="s" aria-label="X">Content</section>')
        assert ids(tree, find_all(tree, tree.root, "region")) == ["s"]
        assert ids(tree, find_all(tree, tree.root, "region", "X")) == ["s"]

    def test_section_labelledby(self, parse):
        """Test a section named through aria-labelledby."""
        tree = parse("""
            <section id="s" aria-labelledby="section_label">
                <h1 id="section_label">Section region</h1>
            </section>
        """)
        assert ids(tree, find_all(tree, tree.root, "region", "Section region")) == ["s"]
        assert find_all(tree, tree.root, "region", "Not the right locator") == []

    def test_role_region_labelledby(self, parse):
        """Test a div region named by its heading through aria-labelledby."""
        tree = parse('<div id="d" role="region" aria-labelledby="r"><h1 id="r">Div region</h1></div>')
        assert ids(tree, find_all(tree, tree.root, "region", "Div region")) == ["d"]
        assert find_all(tree, tree.root, "region", "Wrong label") == []

    def test_role_region_without_name(self, parse):
        """Test role=region counts even without a name."""
        tree = parse('<div role="region">Content</div>')
        assert len(find_all(tree, tree.root, "region")) == 1

    def test_exact(self, parse):
        """Test substring matching by default and equality with exact."""
        tree = parse('<section aria-label="Section region">Content</section>')
        assert len(find_all(tree, tree.root, "region", "Sec", exact=False)) == 1
        assert len(find_all(tree, tree.root, "region", "Sec")) == 1
        assert find_all(tree, tree.root, "region", "Sec", exact=True) == []
        assert len(find_all(tree, tree.root, "region", "Section region", exact=True)) == 1

    def test_heading_names_role_region_but_does_not_qualify_section(self, parse):
        """Test a heading names a role=region but never makes a <section> a region."""
        tree = parse("""
            <div id="div" role="region"><h2>Foo</h2></div>
            <section id="section"><h2>Foo</h2></section>
        """)
        assert ids(tree, find_all(tree, tree.root, "region", "Foo")) == ["div"]
        assert ids(tree, find_all(tree, tree.root, "section", "Foo")) == ["section"]

    def test_section_selector_keeps_bare_sections(self, parse):
        """Test the section selector is not limited to named sections."""
        tree = parse("<section>Content</section>")
        assert len(find_all(tree, tree.root, "section")) == 1


class TestLandmarks:
    """Test landmark selectors."""

    @pytest.fixture
    def page(self, parse):
        return parse("""
            <header id="banner">Site</header>
            <nav id="primary" aria-label="Main" aria-describedby="nav-help"><a href="/">Home</a></nav>
            <p id="nav-help">Primary site links</p>
            <main id="content">
                <nav id="crumbs" aria-labelledby="crumbs-title">
                    <h2 id="crumbs-title">Breadcrumbs</h2>
                    <a href="/docs" aria-current="page">Docs</a>
                </nav>
                <article><header id="article-header">Post</header></article>
            </main>
            <footer id="footer"><nav id="legal"><h2>Legal</h2></nav></footer>
        """)

    def test_all_navigation_in_document_order(self, page):
        """Test results come back in document order."""
        assert ids(page, find_all(page, page.root, "navigation")) == ["primary", "crumbs", "legal"]

    def test_navigation_by_name(self, page):
        """Test names from aria-label, aria-labelledby and headings."""
        assert ids(page, find_all(page, page.root, "navigation", "Main")) == ["primary"]
        assert ids(page, find_all(page, page.root, "navigation", "Breadcrumbs")) == ["crumbs"]
        assert ids(page, find_all(page, page.root, "navigation", "Legal")) == ["legal"]

    def test_enum_locator(self, page):
        """Test Enum members use their value."""
        assert ids(page, find_all(page, page.root, "navigation", Landmark.MAIN)) == ["primary"]

    def test_described_by(self, page):
        """Test the described_by filter."""
        assert ids(page, find_all(page, page.root, "navigation", described_by="site links")) == ["primary"]

    def test_scope(self, page, by_id):
        """Test queries only look inside the scope, scope included."""
        main = by_id(page, "content")
        assert ids(page, find_all(page, main, "navigation")) == ["crumbs"]
        crumbs = by_id(page, "crumbs")
        assert ids(page, find_all(page, crumbs, "navigation")) == ["crumbs"]

    def test_banner_and_contentinfo(self, page):
        """Test page level header and footer only."""
        assert ids(page, find_all(page, page.root, "banner")) == ["banner"]
        assert ids(page, find_all(page, page.root, "contentinfo")) == ["footer"]
        assert ids(page, find_all(page, page.root, "main")) == ["content"]

    def test_heading_level(self, parse):
        """Test heading_level narrows the heading fallback."""
        tree = parse("""
            <article id="news"><h3>News</h3></article>
            <section id="about"><h2>About</h2></section>
        """)
        assert find_all(tree, tree.root, "section", "News", heading_level=2) == []
        assert ids(tree, find_all(tree, tree.root, "section", "News", heading_level=[3, 4])) == ["news"]

    def test_heading_level_from_config(self, parse):
        """Test config heading levels apply when the query gives none."""
        tree = parse('<article id="news"><h3>News</h3></article>')
        config = SelectorConfig(heading_levels=(1, 2))
        assert find_all(tree, tree.root, "section", "News", config=config) == []

    def test_bad_heading_level(self, parse):
        """Test invalid heading levels are rejected."""
        tree = parse("<section></section>")
        with pytest.raises(InvalidOptionError):
            find_all(tree, tree.root, "section", heading_level=9)


class TestFields:
    """Test form control selectors with fieldset addressing."""

    def test_nested_sequence_locator(self, parse, nested_fieldsets_html):
        """Test [outer, inner, label] addresses the nested field only."""
        tree = parse(nested_fieldsets_html)
        assert ids(tree, find_all(tree, tree.root, "field", ["Outer", "Inner", "Answer"])) == ["answer"]

    def test_wrong_order(self, parse, nested_fieldsets_html):
        """Test legends in the wrong order match nothing."""
        tree = parse(nested_fieldsets_html)
        assert find_all(tree, tree.root, "field", ["Inner", "Outer", "Answer"]) == []

    def test_label_only(self, parse, nested_fieldsets_html):
        """Test a plain label matches both same-labelled fields."""
        tree = parse(nested_fieldsets_html)
        assert ids(tree, find_all(tree, tree.root, "field", "Answer")) == ["answer", "other"]
        assert ids(tree, find_all(tree, tree.root, "field", ("Answer",))) == ["answer", "other"]

    def test_fieldset_option(self, parse, nested_fieldsets_html):
        """Test the fieldset option, alone and combined with a sequence locator."""
        tree = parse(nested_fieldsets_html)
        assert ids(tree, find_all(tree, tree.root, "field", "Answer", fieldset="Inner")) == ["answer"]
        assert ids(tree, find_all(tree, tree.root, "field", ["Inner", "Answer"], fieldset="Outer")) == ["answer"]
        assert find_all(tree, tree.root, "field", ["Outer", "Answer"], fieldset="Inner") == []

    def test_fieldset_selector(self, parse, nested_fieldsets_html):
        """Test fieldsets can be addressed through their parents."""
        tree = parse(nested_fieldsets_html)
        assert ids(tree, find_all(tree, tree.root, "fieldset", ["Outer", "Inner"])) == ["inner"]
        assert ids(tree, find_all(tree, tree.root, "fieldset", "Outer", exact=True)) == ["outer"]

    def test_required_and_validation(self, parse):
        """Test required and validation_error filters."""
        tree = parse("""
            <label for="email">Email</label>
            <input id="email" type="email" required aria-describedby="email-error">
            <span id="email-error">Email is required</span>
            <label for="name">Name</label>
            <input id="name" value="Ada">
        """)
        assert ids(tree, find_all(tree, tree.root, "field", required=True)) == ["email"]
        assert ids(tree, find_all(tree, tree.root, "field", required=False)) == ["name"]
        assert ids(tree, find_all(tree, tree.root, "field", validation_error="is required")) == ["email"]
        assert ids(tree, find_all(tree, tree.root, "field", validation_error=False)) == ["name"]

    def test_none_option_is_ignored(self, parse):
        """Test options set to None do not filter."""
        tree = parse('<input id="a" required><input id="b">')
        assert ids(tree, find_all(tree, tree.root, "field", required=None)) == ["a", "b"]


class TestWidgets:
    """Test rich text, disclosure, link and cell selectors."""

    def test_rich_text(self, parse):
        """Test contenteditable and iframe editors."""
        tree = parse("""
            <fieldset>
                <legend>Message</legend>
                <div id="body" role="textbox" contenteditable="true" aria-label="Body"></div>
            </fieldset>
            <iframe id="frame" title="Signature"></iframe>
        """)
        assert ids(tree, find_all(tree, tree.root, "rich_text")) == ["body", "frame"]
        assert ids(tree, find_all(tree, tree.root, "rich_text", "Signature")) == ["frame"]
        assert ids(tree, find_all(tree, tree.root, "rich_text", ["Message", "Body"])) == ["body"]
        assert find_all(tree, tree.root, "rich_text", ["Message", "Signature"]) == []

    def test_disclosure_expanded(self, parse):
        """Test the expanded filter."""
        tree = parse("""
            <details open><summary id="more">More</summary></details>
            <button id="menu" aria-expanded="false">Menu</button>
        """)
        assert ids(tree, find_all(tree, tree.root, "disclosure_button", expanded=True)) == ["more"]
        assert ids(tree, find_all(tree, tree.root, "disclosure_button", expanded=False)) == ["menu"]
        assert ids(tree, find_all(tree, tree.root, "disclosure_button", aria={"expanded": False})) == ["menu"]

    def test_link_current(self, parse):
        """Test the current filter on links."""
        tree = parse("""
            <a id="home" href="/" aria-current="page">Home</a>
            <a id="about" href="/about">About</a>
        """)
        assert ids(tree, find_all(tree, tree.root, "link", current=True)) == ["home"]
        assert ids(tree, find_all(tree, tree.root, "link", current="page")) == ["home"]
        assert ids(tree, find_all(tree, tree.root, "link", "About", current=False)) == ["about"]

    def test_cell_role_and_aria(self, parse):
        """Test role and aria filters on cells."""
        tree = parse("""
            <table><tr><th id="th">Name</th><td id="td">Alice</td></tr></table>
            <div role="grid"><div role="row">
                <div id="g1" role="gridcell" aria-selected="true">Alice</div>
                <div id="g2" role="gridcell">Bob</div>
            </div></div>
        """)
        assert ids(tree, find_all(tree, tree.root, "cell", "Alice")) == ["td", "g1"]
        assert ids(tree, find_all(tree, tree.root, "cell", role="gridcell")) == ["g1", "g2"]
        assert ids(tree, find_all(tree, tree.root, "cell", aria={"selected": True})) == ["g1"]


class TestLocatorValidation:
    """Test locators are validated before any traversal."""

    def test_empty_sequence(self):
        """Test an empty sequence fails fast."""
        tree = MagicMock()
        with pytest.raises(InvalidLocatorError):
            find_all(tree, tree.root, "field", [])
        tree.descendants_matching.assert_not_called()

    def test_sequence_not_supported(self):
        """Test selectors without fieldset addressing reject sequences."""
        tree = MagicMock()
        with pytest.raises(InvalidLocatorError):
            find_all(tree, tree.root, "navigation", ["Outer", "Main"])
        tree.descendants_matching.assert_not_called()

    def test_non_string_locator(self):
        """Test unsupported locator types are rejected."""
        with pytest.raises(InvalidLocatorError):
            build_query("region", 42)
        with pytest.raises(InvalidLocatorError):
            build_query("field", ["Outer", 3])

    def test_invalid_locator_is_value_error(self):
        """Test callers can catch ValueError."""
        with pytest.raises(ValueError):
            build_query("field", ())

    def test_unknown_kind(self):
        """Test unknown kinds raise UnknownSelectorError (a KeyError)."""
        with pytest.raises(UnknownSelectorError) as exc_info:
            build_query("carousel")
        assert isinstance(exc_info.value, KeyError)
        assert "carousel" in str(exc_info.value)


class TestOptionValidation:
    """Test option values are checked when the query is built."""

    @pytest.mark.parametrize("kind, options", [
        ("field", {"fieldset": 5}),
        ("field", {"fieldset": ["Outer", 2]}),
        ("field", {"described_by": 5}),
        ("field", {"required": "yes"}),
        ("field", {"validation_error": 3}),
        ("link", {"current": 1}),
        ("cell", {"role": ["gridcell"]}),
        ("cell", {"aria": "selected"}),
        ("cell", {"aria": {"selected": None}}),
        ("disclosure_button", {"expanded": "true"}),
    ])
    def test_invalid_values(self, kind, options):
        """Test wrong value types raise InvalidOptionError before traversal."""
        tree = MagicMock()
        with pytest.raises(InvalidOptionError):
            find_all(tree, tree.root, kind, **options)
        tree.descendants_matching.assert_not_called()

    def test_invalid_option_is_value_error(self):
        """Test callers can catch ValueError."""
        with pytest.raises(ValueError):
            build_query("field", "Answer", described_by=5)

    def test_numeric_looking_legend(self, parse):
        """Test legends that look like numbers are plain names."""
        tree = parse("""
            <fieldset><legend>2020</legend>
                <label for="a">Answer</label><input id="a">
            </fieldset>
            <label for="b">Answer</label><input id="b">
        """)
        assert ids(tree, find_all(tree, tree.root, "field", "Answer", fieldset="2020")) == ["a"]

    def test_unclaimed_fieldset_is_not_checked(self):
        """Test a fieldset option forwarded to the host filter keeps its value."""
        assert dict(build_query("navigation", fieldset=5).passthrough) == {"fieldset": 5}


class TestPassthrough:
    """Test options no selector filter claims."""

    def test_text_option(self, parse):
        """Test text goes to the default host filter."""
        tree = parse("""
            <nav id="main" aria-label="Main"><a href="/">Home</a></nav>
            <nav id="footer" aria-label="Footer">Legal notice</nav>
        """)
        assert ids(tree, find_all(tree, tree.root, "navigation", text="Legal")) == ["footer"]
        assert ids(tree, find_all(tree, tree.root, "navigation", text=re.compile(r"^Home$"))) == ["main"]

    def test_unclaimed_filter_is_passed_through(self):
        """Test known filter names a selector does not register are forwarded."""
        query = build_query("navigation", required=True, fieldset="Outer", visible=True)
        assert dict(query.passthrough) == {"required": True, "fieldset": "Outer", "visible": True}
        assert [name for name, _ in query.predicates] == ["locator"]

    def test_custom_host_filter(self, parse):
        """Test a host filter receives the passthrough options."""
        tree = parse('<nav id="a"></nav><nav id="b"></nav>')
        seen = []

        def host_filter(tree, node, options):
            seen.append(dict(options))
            return tree.attribute(node, "id") == "b"

        assert ids(tree, find_all(tree, tree.root, "navigation", host_filter=host_filter, visible=True)) == ["b"]
        assert seen == [{"visible": True}, {"visible": True}]

    def test_default_host_filter(self, parse, by_id):
        """Test text, exact_text, id and ignored keys."""
        tree = parse('<p id="p"> Hello   world </p>')
        node = by_id(tree, "p")
        assert default_host_filter(tree, node, {"text": "lo wo", "id": "p", "wait": 3})
        assert default_host_filter(tree, node, {"exact_text": "Hello world"})
        assert not default_host_filter(tree, node, {"exact_text": "Hello"})
        assert not default_host_filter(tree, node, {"id": "q"})


class TestQueryObject:
    """Test SelectorQuery helpers."""

    def test_describe(self):
        """Test the description lists locator and options."""
        query = build_query("region", "Main", exact=True, described_by="x")
        assert query.describe() == "region 'Main' with exact=True, described_by='x'"
        assert build_query("region").describe() == "region"

    def test_config_exact_default(self):
        """Test config supplies exact when the query does not."""
        assert build_query("region", "Main", config=SelectorConfig(exact=True)).context.mode is MatchMode.EXACT
        query = build_query("region", "Main", config=SelectorConfig(exact=True), exact=False)
        assert query.context.mode is MatchMode.SUBSTRING

    def test_matches_selector(self, parse, by_id):
        """Test checking a single node."""
        tree = parse('<section id="s" aria-label="Intro"></section><section id="bare"></section>')
        assert matches_selector(tree, by_id(tree, "s"), "region", "Intro")
        assert not matches_selector(tree, by_id(tree, "s"), "region", "Outro")
        assert not matches_selector(tree, by_id(tree, "bare"), "region")
        assert matches_selector(tree, by_id(tree, "bare"), "section")

    def test_query_is_reusable(self, parse):
        """Test the same query gives the same answer on repeated evaluation."""
        tree = parse('<nav aria-label="Main"></nav>')
        query = build_query("navigation", "Main")
        assert len(query.evaluate(tree, tree.root)) == 1
        assert len(query.evaluate(tree, tree.root)) == 1
