"""
Filter Predicates - Composable checks applied to every structural candidate.

Each filter is a constructor ``make(value, context)`` returning a predicate
``(tree, node) -> bool``. Constructors are grouped into named filter sets that
selectors pick from when they are registered.
"""
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..dom.names import (
    DEFAULT_HEADING_LEVELS,
    NameKind,
    accessible_description,
    accessible_name,
)
from ..dom.tree import Node, Tree
from ..errors import FilterSetError, InvalidLocatorError, InvalidOptionError
from .roles import explicit_role

Predicate = Callable[[Tree, Node], bool]


class MatchMode(Enum):
    """How a resolved name is compared with the expected text."""
    EXACT = "exact"
    SUBSTRING = "substring"

    @classmethod
    def from_exact(cls, exact: bool) -> "MatchMode":
        return cls.EXACT if exact else cls.SUBSTRING

    def matches(self, actual: str, expected: str) -> bool:
        if self is MatchMode.EXACT:
            return actual == expected
        return expected in actual


@dataclass(frozen=True)
class FilterContext:
    """Per-query settings shared by all filters."""
    mode: MatchMode = MatchMode.SUBSTRING
    heading_levels: Tuple[int, ...] = DEFAULT_HEADING_LEVELS


FilterFactory = Callable[[Any, FilterContext], Predicate]


def always(tree: Tree, node: Node) -> bool:
    return True


def _require_text(option: str, value: Any) -> str:
    if not isinstance(value, str):
        raise InvalidOptionError(f"{option} must be a string, got {value!r}")
    return value


def _require_bool(option: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise InvalidOptionError(f"{option} must be True or False, got {value!r}")
    return value


def legend_names(value: Any) -> List[str]:
    """Legend names from a fieldset option: one name or a list of names."""
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)) and all(isinstance(name, str) for name in value):
        return list(value)
    raise InvalidOptionError(f"fieldset must be a legend name or a list of legend names, got {value!r}")


# ============ ARIA state ============

def is_required(tree: Tree, node: Node) -> bool:
    return tree.attribute(node, "required") is not None or tree.attribute(node, "aria-required") == "true"


def is_expanded(tree: Tree, node: Node) -> bool:
    if tree.attribute(node, "aria-expanded") == "true":
        return True
    if tree.tag_name(node) == "summary":
        parents = tree.ancestors(node)
        return bool(parents) and tree.tag_name(parents[0]) == "details" and tree.attribute(parents[0], "open") is not None
    return False


def current_value(tree: Tree, node: Node) -> Optional[str]:
    """aria-current token, None when absent or "false"."""
    value = tree.attribute(node, "aria-current")
    if value is None or value == "false":
        return None
    return value


def is_disabled(tree: Tree, node: Node) -> bool:
    if tree.attribute(node, "disabled") is not None or tree.attribute(node, "aria-disabled") == "true":
        return True
    # Controls inside a disabled fieldset are disabled, except within its legend
    inside_legend = False
    for ancestor in tree.ancestors(node):
        tag = tree.tag_name(ancestor)
        if tag == "legend":
            inside_legend = True
        elif tag == "fieldset":
            if tree.attribute(ancestor, "disabled") is not None and not inside_legend:
                return True
            inside_legend = False
    return False


def is_invalid(tree: Tree, node: Node) -> bool:
    aria_invalid = tree.attribute(node, "aria-invalid")
    if aria_invalid == "true":
        return True
    return aria_invalid != "false" and not tree.check_validity(node)


# ============ Filter constructors ============

def name_filter(expected: Optional[str], context: FilterContext, kind: NameKind) -> Predicate:
    """Accessible name against the locator; a None locator matches anything."""
    if expected is None:
        return always

    def predicate(tree: Tree, node: Node) -> bool:
        name = accessible_name(tree, node, kind, context.heading_levels)
        return bool(name) and context.mode.matches(name, expected)

    return predicate


def fieldset_filter(value: Any, context: FilterContext) -> Predicate:
    """
    Legend names, outer to inner, that must appear among the node's ancestor
    fieldsets in that order. Other ancestors (fieldsets included) may sit in
    between.
    """
    legends = legend_names(value)
    if not legends:
        raise InvalidLocatorError("fieldset filter needs at least one legend name")

    def predicate(tree: Tree, node: Node) -> bool:
        chain = iter([
            ancestor for ancestor in reversed(tree.ancestors(node))
            if tree.tag_name(ancestor) == "fieldset"
        ])
        return all(
            any(
                context.mode.matches(
                    accessible_name(tree, fieldset, NameKind.FIELDSET, context.heading_levels), legend
                )
                for fieldset in chain
            )
            for legend in legends
        )

    return predicate


def described_by_filter(value: str, context: FilterContext) -> Predicate:
    _require_text("described_by", value)

    def predicate(tree: Tree, node: Node) -> bool:
        return context.mode.matches(accessible_description(tree, node), value)
    return predicate


def boolean_filter(option: str, check: Predicate) -> FilterFactory:
    """Convenience boolean filter: absent state counts as False."""
    def factory(value: Any, context: FilterContext) -> Predicate:
        wanted = _require_bool(option, value)
        return lambda tree, node: check(tree, node) is wanted
    return factory


def current_filter(value: Any, context: FilterContext) -> Predicate:
    if isinstance(value, bool):
        return lambda tree, node: (current_value(tree, node) is not None) is value
    _require_text("current", value)
    return lambda tree, node: current_value(tree, node) == value


def validation_error_filter(value: Any, context: FilterContext) -> Predicate:
    """
    True/False test validity only. A string also requires the error text to
    appear in the description, or in the name when nothing describes the node.
    """
    if isinstance(value, bool):
        return lambda tree, node: is_invalid(tree, node) is value
    _require_text("validation_error", value)

    def predicate(tree: Tree, node: Node) -> bool:
        if not is_invalid(tree, node):
            return False
        message = accessible_description(tree, node)
        if not message:
            message = accessible_name(tree, node, NameKind.FORM_CONTROL, context.heading_levels)
        return context.mode.matches(message, value)

    return predicate


def role_filter(value: str, context: FilterContext) -> Predicate:
    _require_text("role", value)
    return lambda tree, node: explicit_role(tree, node) == value


def aria_filter(value: Mapping[str, Any], context: FilterContext) -> Predicate:
    """Strict ARIA attribute equality; an absent attribute never equals False."""
    if not isinstance(value, Mapping):
        raise InvalidOptionError(f"aria must be a mapping of attribute names to values, got {value!r}")
    expected: Dict[str, str] = {}
    for name, wanted in value.items():
        if not isinstance(name, str) or not isinstance(wanted, (str, bool, int, float)):
            raise InvalidOptionError(f"Unusable aria entry {name!r}: {wanted!r}")
        attribute = name if name.startswith("aria-") else f"aria-{name.replace('_', '-')}"
        if isinstance(wanted, bool):
            wanted = "true" if wanted else "false"
        expected[attribute] = str(wanted)

    def predicate(tree: Tree, node: Node) -> bool:
        return all(tree.attribute(node, attribute) == wanted for attribute, wanted in expected.items())

    return predicate


# ============ Filter sets ============

@dataclass(frozen=True)
class FilterSet:
    """Named bundle of filter constructors shared between selectors."""
    name: str
    filters: Mapping[str, FilterFactory]

    def pick(self, names: Optional[Iterable[str]] = None) -> Dict[str, FilterFactory]:
        """Subset of this set; all filters when names is None."""
        if names is None:
            return dict(self.filters)
        picked = {}
        for name in names:
            if name not in self.filters:
                raise FilterSetError(f"Filter set {self.name!r} has no filter {name!r}")
            picked[name] = self.filters[name]
        return picked


ACCESSIBLE = FilterSet("accessible", MappingProxyType({
    "fieldset": fieldset_filter,
    "described_by": described_by_filter,
    "required": boolean_filter("required", is_required),
    "validation_error": validation_error_filter,
    "disabled": boolean_filter("disabled", is_disabled),
}))

ARIA_STATE = FilterSet("aria_state", MappingProxyType({
    "expanded": boolean_filter("expanded", is_expanded),
    "current": current_filter,
    "role": role_filter,
    "aria": aria_filter,
}))

FILTER_SETS: Mapping[str, FilterSet] = MappingProxyType({
    filter_set.name: filter_set for filter_set in (ACCESSIBLE, ARIA_STATE)
})


def resolve_filters(picks: Mapping[str, Optional[Sequence[str]]]) -> Dict[str, FilterFactory]:
    """Merge picks from several named filter sets into one option -> factory map."""
    filters: Dict[str, FilterFactory] = {}
    for set_name, names in picks.items():
        if set_name not in FILTER_SETS:
            raise FilterSetError(f"Unknown filter set {set_name!r}")
        filters.update(FILTER_SETS[set_name].pick(names))
    return filters
