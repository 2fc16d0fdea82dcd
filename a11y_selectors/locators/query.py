"""
Composite Locator Protocol - Turns a selector kind, locator and options into a
query and evaluates it against a tree.

A query runs in three steps: enumerate structural candidates under the scope,
reduce them with the locator and filter predicates, return the survivors in
document order. Nothing is retried here; waiting belongs to the host.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
import logging
import re

from ..config import DEFAULT_CONFIG, SelectorConfig, heading_levels_from
from ..dom.text import normalize
from ..dom.tree import Node, Tree
from ..errors import InvalidLocatorError, InvalidOptionError
from .filters import FilterContext, MatchMode, Predicate, fieldset_filter, legend_names, name_filter
from .registry import LocatorType, Selector, get_selector

log = logging.getLogger(__name__)

HostFilter = Callable[[Tree, Node, Mapping[str, Any]], bool]


def default_host_filter(tree: Tree, node: Node, options: Mapping[str, Any]) -> bool:
    """
    Catch-all for options no selector filter claims.

    Understands ``text`` (substring of the normalized text, or a compiled regex
    searched in it), ``exact_text`` (whole normalized text) and ``id``. Any
    other option is ignored.
    """
    for key, value in options.items():
        if key == "text":
            text = normalize(tree.text_content(node))
            if isinstance(value, re.Pattern):
                if value.search(text) is None:
                    return False
            elif str(value) not in text:
                return False
        elif key == "exact_text":
            if normalize(tree.text_content(node)) != str(value):
                return False
        elif key == "id":
            if tree.attribute(node, "id") != value:
                return False
        else:
            log.debug("Host filter ignoring option %r", key)
    return True


def split_locator(selector: Selector, locator: Any) -> Tuple[Optional[str], List[str]]:
    """
    Validate a locator and split it into (label, fieldset legends).

    Raises:
        InvalidLocatorError: empty sequence, non-string parts, or a locator
            shape the selector does not accept
    """
    if locator is None:
        return None, []
    if isinstance(locator, Enum):
        locator = locator.value

    if isinstance(locator, str):
        if not selector.accepts(LocatorType.STRING):
            raise InvalidLocatorError(f"{selector.kind} selector does not accept string locators")
        return locator, []

    if isinstance(locator, (list, tuple)):
        if not selector.accepts(LocatorType.SEQUENCE):
            raise InvalidLocatorError(f"{selector.kind} selector does not accept sequence locators")
        if not locator:
            raise InvalidLocatorError("Sequence locator must contain at least the label")
        parts = [part.value if isinstance(part, Enum) else part for part in locator]
        if not all(isinstance(part, str) for part in parts):
            raise InvalidLocatorError(f"Sequence locator parts must be strings: {locator!r}")
        return parts[-1], parts[:-1]

    raise InvalidLocatorError(f"Unsupported locator type {type(locator).__name__} for {selector.kind}")


@dataclass(frozen=True)
class SelectorQuery:
    """A validated, ready to run query. Holds no state between evaluations."""
    selector: Selector
    locator: Any
    context: FilterContext
    predicates: Tuple[Tuple[str, Predicate], ...]
    options: Mapping[str, Any] = field(default_factory=dict)
    passthrough: Mapping[str, Any] = field(default_factory=dict)

    def structural(self, tree: Tree, node: Node) -> bool:
        return self.selector.structural(tree, node)

    def matches(self, tree: Tree, node: Node) -> bool:
        """Locator and filter predicates, stopping at the first failure."""
        return all(predicate(tree, node) for _, predicate in self.predicates)

    def accepts(self, tree: Tree, node: Node, host_filter: Optional[HostFilter] = None) -> bool:
        """Full check of a single node, structure included."""
        if not self.structural(tree, node) or not self.matches(tree, node):
            return False
        if not self.passthrough:
            return True
        return (host_filter or default_host_filter)(tree, node, self.passthrough)

    def evaluate(self, tree: Tree, scope: Node, host_filter: Optional[HostFilter] = None) -> List[Node]:
        """Matching descendant-or-self nodes of scope, in document order."""
        candidates = tree.descendants_matching(scope, lambda node: self.structural(tree, node))
        results = [node for node in candidates if self.matches(tree, node)]
        if self.passthrough:
            host_filter = host_filter or default_host_filter
            results = [node for node in results if host_filter(tree, node, self.passthrough)]
        log.debug("Query %s | candidates=%d matched=%d", self.describe(), len(candidates), len(results))
        return results

    def describe(self) -> str:
        """Human readable summary, e.g. ``region 'Main content' with exact=True``."""
        text = self.selector.kind
        if self.locator is not None:
            text += f" {self.locator!r}"
        details = [f"{key}={value!r}" for key, value in {**self.options, **self.passthrough}.items()]
        if self.context.mode is MatchMode.EXACT:
            details.insert(0, "exact=True")
        if details:
            text += " with " + ", ".join(details)
        return text


def build_query(
    kind: str,
    locator: Any = None,
    config: Optional[SelectorConfig] = None,
    **options: Any,
) -> SelectorQuery:
    """
    Validate a locator and options and assemble the predicates for them.

    Args:
        kind: Registered selector kind, e.g. ``"region"``
        locator: None, a label, or [legend, ..., label] for selectors that
            accept sequences
        config: Defaults for ``exact`` and heading levels
        **options: ``exact``, ``heading_level`` and filter options; anything
            the selector does not register is kept for the host filter

    Raises:
        UnknownSelectorError: kind is not registered
        InvalidLocatorError: malformed locator
        InvalidOptionError: unusable heading_level or filter option value
    """
    selector = get_selector(kind)
    config = config or DEFAULT_CONFIG
    label, legends = split_locator(selector, locator)

    exact = options.pop("exact", None)
    heading_levels = config.heading_levels
    if selector.uses_headings and "heading_level" in options:
        try:
            heading_levels = heading_levels_from(options.pop("heading_level"))
        except (TypeError, ValueError) as exc:
            raise InvalidOptionError(str(exc)) from exc
    context = FilterContext(
        mode=MatchMode.from_exact(config.exact if exact is None else bool(exact)),
        heading_levels=heading_levels,
    )

    predicates: List[Tuple[str, Predicate]] = [("locator", name_filter(label, context, selector.name_kind))]
    filter_options: Dict[str, Any] = {}
    passthrough: Dict[str, Any] = {}

    fieldset_option = options.pop("fieldset", None)
    if (legends or fieldset_option is not None) and "fieldset" in selector.filters:
        # Legends from a sequence locator nest inside any explicit fieldset option
        chain = legend_names(fieldset_option) if fieldset_option is not None else []
        predicates.append(("fieldset", fieldset_filter(chain + legends, context)))
        if fieldset_option is not None:
            filter_options["fieldset"] = fieldset_option
    elif fieldset_option is not None:
        passthrough["fieldset"] = fieldset_option

    for name, value in options.items():
        if name in selector.filters:
            if value is None:
                continue
            predicates.append((name, selector.filters[name](value, context)))
            filter_options[name] = value
        else:
            passthrough[name] = value

    return SelectorQuery(
        selector=selector,
        locator=locator,
        context=context,
        predicates=tuple(predicates),
        options=filter_options,
        passthrough=passthrough,
    )


def find_all(
    tree: Tree,
    scope: Node,
    kind: str,
    locator: Any = None,
    *,
    config: Optional[SelectorConfig] = None,
    host_filter: Optional[HostFilter] = None,
    **options: Any,
) -> List[Node]:
    """
    All nodes under scope (scope included) matching a selector query.

    Args:
        tree: Tree capabilities of the host
        scope: Node to search under
        kind: Selector kind
        locator: Label, [legend, ..., label] or None
        config: Query defaults
        host_filter: Handles options no selector filter claims
        **options: Query options

    Returns:
        Matching nodes in document order, possibly empty
    """
    query = build_query(kind, locator, config=config, **options)
    return query.evaluate(tree, scope, host_filter)


def matches_selector(
    tree: Tree,
    node: Node,
    kind: str,
    locator: Any = None,
    *,
    config: Optional[SelectorConfig] = None,
    host_filter: Optional[HostFilter] = None,
    **options: Any,
) -> bool:
    """Whether a single node satisfies a selector query."""
    query = build_query(kind, locator, config=config, **options)
    return query.accepts(tree, node, host_filter)
