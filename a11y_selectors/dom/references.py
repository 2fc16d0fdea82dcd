"""
Reference Resolver - Turns ID reference lists (aria-labelledby, aria-describedby)
into text.
"""
from typing import Optional

from .text import normalize
from .tree import Node, Tree


def resolve_references(tree: Tree, node: Node, attribute: str) -> Optional[str]:
    """
    Resolve a space separated ID list attribute to the text it points at.

    Args:
        tree: Tree capabilities
        node: Element carrying the attribute
        attribute: Attribute name, e.g. ``aria-labelledby``

    Returns:
        Normalized, space joined text of every referenced element, or None if the
        attribute is absent. IDs that do not resolve contribute nothing.
    """
    value = tree.attribute(node, attribute)
    if value is None:
        return None

    fragments = []
    for element_id in value.split():
        target = tree.element_by_id(node, element_id)
        fragments.append(tree.text_content(target) if target is not None else "")
    return normalize(" ".join(fragments))
