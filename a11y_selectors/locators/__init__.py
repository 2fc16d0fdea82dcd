"""
Locators: role matchers, filters, the selector registry and query evaluation.
"""
from .filters import FILTER_SETS, FilterContext, FilterSet, MatchMode
from .query import (
    SelectorQuery,
    build_query,
    default_host_filter,
    find_all,
    matches_selector,
)
from .registry import SELECTORS, LocatorType, Selector, get_selector, selector_kinds
from .roles import ROLE_MATCHERS, RoleMatcher, structural_predicate

__all__ = [
    'FILTER_SETS',
    'FilterContext',
    'FilterSet',
    'LocatorType',
    'MatchMode',
    'ROLE_MATCHERS',
    'RoleMatcher',
    'SELECTORS',
    'Selector',
    'SelectorQuery',
    'build_query',
    'default_host_filter',
    'find_all',
    'get_selector',
    'matches_selector',
    'selector_kinds',
    'structural_predicate',
]
