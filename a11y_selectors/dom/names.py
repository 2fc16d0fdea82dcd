"""
Accessible Name Resolver - Computes the name assistive technology would announce.

Resolution order is fixed and the first non-empty result wins:

1. ``aria-label``
2. ``aria-labelledby`` references
3. a fallback that depends on the kind of element (heading, legend, <label>,
   iframe title or own text)
4. the empty string
"""
from enum import Enum
from typing import Callable, Dict, Iterable, Optional, Tuple

from .references import resolve_references
from .text import normalize
from .tree import Node, Tree

DEFAULT_HEADING_LEVELS: Tuple[int, ...] = (1, 2, 3, 4, 5, 6)

HEADING_TAGS = {f"h{level}": level for level in DEFAULT_HEADING_LEVELS}

# role=heading without aria-level is a level 2 heading
DEFAULT_ARIA_HEADING_LEVEL = 2


class NameKind(Enum):
    """Which structural fallback applies when no explicit name is given."""
    LANDMARK = "landmark"
    SECTION = "section"
    FIELDSET = "fieldset"
    FORM_CONTROL = "form_control"
    RICH_TEXT = "rich_text"
    GENERIC = "generic"


def explicit_name(tree: Tree, node: Node) -> str:
    """Name from aria-label or aria-labelledby only."""
    label = normalize(tree.attribute(node, "aria-label"))
    if label:
        return label
    return resolve_references(tree, node, "aria-labelledby") or ""


def accessible_name(
    tree: Tree,
    node: Node,
    kind: NameKind = NameKind.GENERIC,
    heading_levels: Iterable[int] = DEFAULT_HEADING_LEVELS,
) -> str:
    """
    Compute the accessible name of an element.

    Args:
        tree: Tree capabilities
        node: Element to name
        kind: Structural fallback to use after the ARIA attributes
        heading_levels: Heading levels allowed to name landmarks and sections

    Returns:
        Normalized name, empty string if nothing names the element
    """
    name = explicit_name(tree, node)
    if name:
        return name
    return _FALLBACKS[kind](tree, node, tuple(heading_levels))


def accessible_description(tree: Tree, node: Node) -> str:
    """Description from aria-describedby references."""
    return resolve_references(tree, node, "aria-describedby") or ""


def heading_level(tree: Tree, node: Node) -> Optional[int]:
    """Heading level of a node, None when it is not a heading."""
    level = HEADING_TAGS.get(tree.tag_name(node))
    if level is not None:
        return level
    if tree.attribute(node, "role") != "heading":
        return None
    try:
        return int(tree.attribute(node, "aria-level") or DEFAULT_ARIA_HEADING_LEVEL)
    except ValueError:
        return DEFAULT_ARIA_HEADING_LEVEL


def _heading_text(tree: Tree, node: Node, levels: Tuple[int, ...]) -> str:
    headings = tree.descendants_matching(
        node, lambda candidate: candidate is not node and heading_level(tree, candidate) in levels
    )
    for heading in headings:
        text = normalize(tree.text_content(heading))
        if text:
            return text
    return ""


def _fieldset_depth(tree: Tree, node: Node) -> int:
    return sum(1 for ancestor in tree.ancestors(node) if tree.tag_name(ancestor) == "fieldset")


def _legend_text(tree: Tree, node: Node, levels: Tuple[int, ...]) -> str:
    if tree.tag_name(node) != "fieldset":
        return ""
    # A legend belongs to this fieldset when no other fieldset sits in between
    own_depth = _fieldset_depth(tree, node) + 1
    legends = tree.descendants_matching(node, lambda candidate: tree.tag_name(candidate) == "legend")
    for legend in legends:
        if _fieldset_depth(tree, legend) == own_depth:
            return normalize(tree.text_content(legend))
    return ""


def _label_text(tree: Tree, node: Node, levels: Tuple[int, ...]) -> str:
    element_id = tree.attribute(node, "id")
    if element_id:
        labels = tree.descendants_matching(
            tree.document(node),
            lambda candidate: (
                tree.tag_name(candidate) == "label"
                and tree.attribute(candidate, "for") == element_id
            ),
        )
        texts = [normalize(tree.text_content(label)) for label in labels]
        texts = [text for text in texts if text]
        if texts:
            return " ".join(texts)

    for ancestor in tree.ancestors(node):
        if tree.tag_name(ancestor) != "label":
            continue
        target = tree.attribute(ancestor, "for")
        if target is None or target == element_id:
            return normalize(tree.text_content(ancestor))
        break
    return ""


def _iframe_title(tree: Tree, node: Node, levels: Tuple[int, ...]) -> str:
    if tree.tag_name(node) != "iframe":
        return ""
    return normalize(tree.attribute(node, "title"))


def _own_text(tree: Tree, node: Node, levels: Tuple[int, ...]) -> str:
    return normalize(tree.text_content(node))


_FALLBACKS: Dict[NameKind, Callable[[Tree, Node, Tuple[int, ...]], str]] = {
    NameKind.LANDMARK: _heading_text,
    NameKind.SECTION: _heading_text,
    NameKind.FIELDSET: _legend_text,
    NameKind.FORM_CONTROL: _label_text,
    NameKind.RICH_TEXT: _iframe_title,
    NameKind.GENERIC: _own_text,
}
