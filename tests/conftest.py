"""
Common test fixtures and utilities.
"""
import pytest

from a11y_selectors.dom.tree import SoupTree


@pytest.fixture
def parse():
    """Parse an HTML snippet into a SoupTree."""
    return SoupTree.from_html


@pytest.fixture
def by_id():
    """Look up an element of a tree by id."""
    def lookup(tree, element_id):
        node = tree.element_by_id(tree.root, element_id)
        assert node is not None, f"no element with id {element_id!r}"
        return node
    return lookup


@pytest.fixture
def nested_fieldsets_html():
    """Form with an inner fieldset inside an outer one."""
    return """
    <form>
        <fieldset id="outer">
            <legend>Outer</legend>
            <fieldset id="inner">
                <legend>Inner</legend>
                <label for="answer">Answer</label>
                <input id="answer" type="text">
            </fieldset>
            <label for="other">Answer</label>
            <input id="other" type="text">
        </fieldset>
    </form>
    """
