"""
Tree capabilities - The read-only view of a DOM the selector engine works against.

The engine never touches a concrete DOM library directly. It receives a ``Tree``
(the node capability set plus the descendant query) and calls it for every
attribute, text and ancestry lookup. ``SoupTree`` implements it over a
BeautifulSoup parse of static HTML; the Playwright host lives in
``a11y_selectors.browser``.
"""
from typing import Any, Callable, List, Optional, Protocol
import re

from bs4 import BeautifulSoup, Tag

Node = Any
NodePredicate = Callable[[Node], bool]

# Same loose shape browsers accept for type=email
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+$")

NON_VALIDATED_INPUT_TYPES = {"hidden", "submit", "reset", "button", "image"}


class Tree(Protocol):
    """Capabilities the engine consumes from its host."""

    def attribute(self, node: Node, name: str) -> Optional[str]:
        """Attribute value, or None when the attribute is absent."""
        ...

    def text_content(self, node: Node) -> str:
        """All descendant text of the node, unnormalized."""
        ...

    def tag_name(self, node: Node) -> str:
        """Lower-case local name."""
        ...

    def ancestors(self, node: Node) -> List[Node]:
        """Element ancestors, nearest first, excluding the node itself."""
        ...

    def document(self, node: Node) -> Node:
        """Root element of the document the node belongs to."""
        ...

    def element_by_id(self, scope: Node, element_id: str) -> Optional[Node]:
        """Element with the given id in the scope's document."""
        ...

    def descendants_matching(self, scope: Node, predicate: NodePredicate) -> List[Node]:
        """Descendant-or-self elements of scope passing predicate, document order."""
        ...

    def check_validity(self, node: Node) -> bool:
        """Result of the host's constraint validation for a form control."""
        ...


class SoupTree:
    """Tree capabilities over a BeautifulSoup document."""

    def __init__(self, soup: BeautifulSoup):
        self.soup = soup

    @classmethod
    def from_html(cls, html: str, parser: str = "lxml") -> "SoupTree":
        """Parse HTML into a tree."""
        return cls(BeautifulSoup(html, parser))

    @property
    def root(self) -> Tag:
        """Scope covering the whole document."""
        return self.soup

    def attribute(self, node: Tag, name: str) -> Optional[str]:
        value = node.get(name)
        if value is None:
            return None
        # bs4 splits class/rel/headers/... into lists
        if isinstance(value, list):
            return " ".join(value)
        return value

    def text_content(self, node: Tag) -> str:
        return node.get_text()

    def tag_name(self, node: Tag) -> str:
        return (node.name or "").lower()

    def ancestors(self, node: Tag) -> List[Tag]:
        return [
            parent for parent in node.parents
            if isinstance(parent, Tag) and not isinstance(parent, BeautifulSoup)
        ]

    def document(self, node: Tag) -> Tag:
        return self.soup

    def element_by_id(self, scope: Tag, element_id: str) -> Optional[Tag]:
        if not element_id:
            return None
        return self.soup.find(attrs={"id": element_id})

    def descendants_matching(self, scope: Tag, predicate: NodePredicate) -> List[Tag]:
        matches = []
        if isinstance(scope, Tag) and not isinstance(scope, BeautifulSoup) and predicate(scope):
            matches.append(scope)
        matches.extend(tag for tag in scope.find_all(True) if predicate(tag))
        return matches

    def check_validity(self, node: Tag) -> bool:
        """
        Approximate HTML constraint validation for static markup.

        Covers required, minlength/maxlength, pattern and type=email. Controls
        that are disabled or not validated at all are always valid.
        """
        tag = self.tag_name(node)
        if tag not in ("input", "textarea", "select"):
            return True
        if node.has_attr("disabled"):
            return True

        input_type = (node.get("type") or "text").lower()
        if tag == "input" and input_type in NON_VALIDATED_INPUT_TYPES:
            return True

        value = self._control_value(node, tag, input_type)
        if not value:
            return not node.has_attr("required")

        if tag != "select":
            if not self._length_ok(node, value):
                return False
            pattern = node.get("pattern")
            if tag == "input" and pattern:
                try:
                    if re.fullmatch(pattern, value) is None:
                        return False
                except re.error:
                    # Browsers ignore invalid patterns
                    pass
            if input_type == "email" and not EMAIL_PATTERN.match(value):
                return False
        return True

    def _control_value(self, node: Tag, tag: str, input_type: str) -> str:
        if tag == "textarea":
            return node.get_text()
        if tag == "select":
            options = node.find_all("option")
            selected = [option for option in options if option.has_attr("selected")]
            if not selected and options and not node.has_attr("multiple"):
                selected = options[:1]
            for option in selected:
                value = option.get("value")
                if value is None:
                    value = option.get_text()
                if value:
                    return value
            return ""
        if input_type in ("checkbox", "radio"):
            return "on" if node.has_attr("checked") else ""
        return node.get("value") or ""

    def _length_ok(self, node: Tag, value: str) -> bool:
        for attr, fits in (("minlength", lambda n: len(value) >= n),
                           ("maxlength", lambda n: len(value) <= n)):
            limit = node.get(attr)
            if limit is None:
                continue
            try:
                if not fits(int(limit)):
                    return False
            except ValueError:
                continue
        return True
