"""
Role Matcher - Structural predicates that enumerate candidates for each selector.

A matcher accepts an element when its tag is one of the native tags OR its
explicit ``role`` is one of the ARIA roles. Either branch can carry an extra
rule for the cases where HTML only maps a tag to a role in some contexts.
"""
from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, Optional

from ..dom.names import explicit_name
from ..dom.tree import Node, Tree

StructuralRule = Callable[[Tree, Node], bool]

# header/footer inside these are not banner/contentinfo
SECTIONING_ELEMENTS = frozenset({"article", "aside", "main", "nav", "section"})

NON_TEXT_INPUT_TYPES = frozenset({"hidden", "submit", "reset", "button", "image"})


@dataclass(frozen=True)
class RoleMatcher:
    """Native tag OR explicit role, each optionally narrowed by a rule."""
    tags: FrozenSet[str] = frozenset()
    roles: FrozenSet[str] = frozenset()
    native_rule: Optional[StructuralRule] = None
    role_rule: Optional[StructuralRule] = None

    def __call__(self, tree: Tree, node: Node) -> bool:
        if tree.tag_name(node) in self.tags:
            if self.native_rule is None or self.native_rule(tree, node):
                return True
        if not self.roles:
            return False
        role = explicit_role(tree, node)
        if role not in self.roles:
            return False
        return self.role_rule is None or self.role_rule(tree, node)


def explicit_role(tree: Tree, node: Node) -> Optional[str]:
    """First token of the role attribute."""
    tokens = (tree.attribute(node, "role") or "").split()
    return tokens[0] if tokens else None


def has_explicit_name(tree: Tree, node: Node) -> bool:
    return bool(explicit_name(tree, node))


def outside_sectioning(tree: Tree, node: Node) -> bool:
    return not any(tree.tag_name(ancestor) in SECTIONING_ELEMENTS for ancestor in tree.ancestors(node))


def is_text_control(tree: Tree, node: Node) -> bool:
    if tree.tag_name(node) != "input":
        return True
    return (tree.attribute(node, "type") or "text").lower() not in NON_TEXT_INPUT_TYPES


def is_editable(tree: Tree, node: Node) -> bool:
    return tree.attribute(node, "contenteditable") == "true"


def has_expanded_state(tree: Tree, node: Node) -> bool:
    return tree.tag_name(node) == "summary" or tree.attribute(node, "aria-expanded") is not None


def has_href(tree: Tree, node: Node) -> bool:
    return tree.attribute(node, "href") is not None


def landmark(tag: str, role: str, native_rule: Optional[StructuralRule] = None) -> RoleMatcher:
    return RoleMatcher(tags=frozenset({tag}), roles=frozenset({role}), native_rule=native_rule)


ROLE_MATCHERS: Dict[str, RoleMatcher] = {
    "navigation": landmark("nav", "navigation"),
    # A <section> is only exposed as a region once it has a name
    "region": landmark("section", "region", native_rule=has_explicit_name),
    "main": landmark("main", "main"),
    "banner": landmark("header", "banner", native_rule=outside_sectioning),
    "contentinfo": landmark("footer", "contentinfo", native_rule=outside_sectioning),
    "complementary": landmark("aside", "complementary"),
    "section": RoleMatcher(
        tags=frozenset({"section", "article", "aside", "footer", "header", "main", "form"}),
    ),
    "fieldset": RoleMatcher(tags=frozenset({"fieldset"}), roles=frozenset({"group"})),
    "field": RoleMatcher(
        tags=frozenset({"input", "textarea", "select"}),
        roles=frozenset({"textbox", "searchbox", "combobox", "spinbutton"}),
        native_rule=is_text_control,
    ),
    "rich_text": RoleMatcher(
        tags=frozenset({"iframe"}),
        roles=frozenset({"textbox"}),
        role_rule=is_editable,
    ),
    "disclosure_button": RoleMatcher(
        tags=frozenset({"summary", "button"}),
        roles=frozenset({"button"}),
        native_rule=has_expanded_state,
        role_rule=has_expanded_state,
    ),
    "link": RoleMatcher(tags=frozenset({"a", "area"}), roles=frozenset({"link"}), native_rule=has_href),
    "cell": RoleMatcher(
        tags=frozenset({"td", "th"}),
        roles=frozenset({"cell", "gridcell", "columnheader", "rowheader"}),
    ),
}


def structural_predicate(kind: str) -> RoleMatcher:
    """Structural predicate for a selector kind."""
    return ROLE_MATCHERS[kind]
