"""
DOM layer: text normalization, tree capabilities and accessible names.
"""
from .names import (
    DEFAULT_HEADING_LEVELS,
    NameKind,
    accessible_description,
    accessible_name,
    explicit_name,
    heading_level,
)
from .references import resolve_references
from .text import normalize
from .tree import Node, SoupTree, Tree

__all__ = [
    'DEFAULT_HEADING_LEVELS',
    'NameKind',
    'Node',
    'SoupTree',
    'Tree',
    'accessible_description',
    'accessible_name',
    'explicit_name',
    'heading_level',
    'normalize',
    'resolve_references',
]
