"""
a11y_selectors - Find page elements by ARIA role, accessible name and landmark
semantics instead of CSS classes or DOM structure.
"""
from .config import DEFAULT_CONFIG, SelectorConfig, load_config
from .dom import NameKind, SoupTree, Tree, accessible_name, normalize, resolve_references
from .errors import (
    AmbiguousMatchError,
    ConfigError,
    ElementNotFoundError,
    FilterSetError,
    InvalidLocatorError,
    InvalidOptionError,
    SelectorError,
    UnknownSelectorError,
)
from .locators import SELECTORS, MatchMode, SelectorQuery, build_query, find_all, matches_selector

__version__ = "0.1.0"

__all__ = [
    'AmbiguousMatchError',
    'ConfigError',
    'DEFAULT_CONFIG',
    'ElementNotFoundError',
    'FilterSetError',
    'InvalidLocatorError',
    'InvalidOptionError',
    'MatchMode',
    'NameKind',
    'SELECTORS',
    'SelectorConfig',
    'SelectorError',
    'SelectorQuery',
    'SoupTree',
    'Tree',
    'UnknownSelectorError',
    'accessible_name',
    'build_query',
    'find_all',
    'load_config',
    'matches_selector',
    'normalize',
    'resolve_references',
]
