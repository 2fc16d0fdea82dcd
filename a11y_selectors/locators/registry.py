"""
Selector Registry - Maps selector kinds to their definitions.

Every selector is registered once at import time; ``SELECTORS`` is a read-only
view of the result.
"""
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence

from ..dom.names import NameKind
from ..errors import UnknownSelectorError
from .filters import FilterFactory, resolve_filters
from .roles import RoleMatcher, structural_predicate


class LocatorType(Enum):
    """Shapes of locator a selector accepts."""
    STRING = "string"
    SEQUENCE = "sequence"   # fieldset legends followed by the label


@dataclass(frozen=True)
class Selector:
    """Everything needed to evaluate queries of one kind."""
    kind: str
    structural: RoleMatcher
    name_kind: NameKind
    filters: Mapping[str, FilterFactory]
    locator_types: FrozenSet[LocatorType]
    description: str = ""

    @property
    def uses_headings(self) -> bool:
        """Whether names fall back to headings, making heading_level meaningful."""
        return self.name_kind in (NameKind.LANDMARK, NameKind.SECTION)

    def accepts(self, locator_type: LocatorType) -> bool:
        return locator_type in self.locator_types


_registry: Dict[str, Selector] = {}

# role and aria make sense for every kind
GENERIC_ARIA = {"aria_state": ["role", "aria"]}


def _register(
    kind: str,
    name_kind: NameKind,
    filter_sets: Optional[Mapping[str, Optional[Sequence[str]]]] = None,
    locator_types: Iterable[LocatorType] = (LocatorType.STRING,),
    description: str = "",
) -> Selector:
    picks: Dict[str, List[str]] = {set_name: list(names) for set_name, names in GENERIC_ARIA.items()}
    for set_name, names in (filter_sets or {}).items():
        picks[set_name] = picks.get(set_name, []) + list(names or [])
    selector = Selector(
        kind=kind,
        structural=structural_predicate(kind),
        name_kind=name_kind,
        filters=MappingProxyType(resolve_filters(picks)),
        locator_types=frozenset(locator_types),
        description=description,
    )
    _registry[kind] = selector
    return selector


_register("navigation", NameKind.LANDMARK, {"accessible": ["described_by"]},
          description="<nav> or [role=navigation]")
_register("region", NameKind.LANDMARK, {"accessible": ["described_by"]},
          description="named <section> or [role=region]")
_register("main", NameKind.LANDMARK, {"accessible": ["described_by"]},
          description="<main> or [role=main]")
_register("banner", NameKind.LANDMARK, {"accessible": ["described_by"]},
          description="page level <header> or [role=banner]")
_register("contentinfo", NameKind.LANDMARK, {"accessible": ["described_by"]},
          description="page level <footer> or [role=contentinfo]")
_register("complementary", NameKind.LANDMARK, {"accessible": ["described_by"]},
          description="<aside> or [role=complementary]")
_register("section", NameKind.SECTION, {"accessible": ["described_by"]},
          description="sectioning element named by its heading")
_register("fieldset", NameKind.FIELDSET, {"accessible": ["fieldset", "described_by", "disabled"]},
          locator_types=(LocatorType.STRING, LocatorType.SEQUENCE),
          description="<fieldset> named by its legend, or [role=group]")
_register("field", NameKind.FORM_CONTROL,
          {"accessible": ["fieldset", "described_by", "required", "validation_error", "disabled"]},
          locator_types=(LocatorType.STRING, LocatorType.SEQUENCE),
          description="text input, textarea or select named by its <label>")
_register("rich_text", NameKind.RICH_TEXT,
          {"accessible": ["fieldset", "described_by", "validation_error", "required"]},
          locator_types=(LocatorType.STRING, LocatorType.SEQUENCE),
          description="contenteditable textbox or editor <iframe>")
_register("disclosure_button", NameKind.GENERIC,
          {"accessible": ["disabled", "described_by"], "aria_state": ["expanded"]},
          description="<summary> or button with aria-expanded")
_register("link", NameKind.GENERIC, {"aria_state": ["current"], "accessible": ["described_by"]},
          description="<a href> or [role=link]")
_register("cell", NameKind.GENERIC, {"accessible": ["described_by"]},
          description="table or grid cell")

SELECTORS: Mapping[str, Selector] = MappingProxyType(_registry)


def get_selector(kind: str) -> Selector:
    """Selector registered for kind."""
    try:
        return SELECTORS[kind]
    except KeyError:
        raise UnknownSelectorError(kind) from None


def selector_kinds() -> List[str]:
    """All registered kinds, in registration order."""
    return list(SELECTORS)
