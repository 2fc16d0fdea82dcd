"""
Errors raised by the selector engine and its host adapters.
"""
from typing import Optional


class SelectorError(Exception):
    """Base class for all a11y_selectors errors."""


class InvalidLocatorError(SelectorError, ValueError):
    """Locator value is malformed (empty sequence, unsupported type)."""


class InvalidOptionError(SelectorError, ValueError):
    """Query option value cannot be used."""


class UnknownSelectorError(SelectorError, KeyError):
    """No selector is registered under the requested kind."""

    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(kind)

    def __str__(self) -> str:
        return f"Unknown selector kind: {self.kind!r}"


class FilterSetError(SelectorError):
    """A selector asked for a filter its filter set does not define."""


class ConfigError(SelectorError):
    """Configuration file could not be understood."""


class ElementNotFoundError(SelectorError):
    """Host wait expired without any element matching the query."""

    def __init__(self, description: str, waited: Optional[float] = None):
        self.description = description
        self.waited = waited
        message = f"Unable to find {description}"
        if waited:
            message += f" (waited {waited:.1f}s)"
        super().__init__(message)


class AmbiguousMatchError(SelectorError):
    """Host expected one element but the query matched several."""

    def __init__(self, description: str, count: int):
        self.description = description
        self.count = count
        super().__init__(f"Ambiguous match, found {count} elements matching {description}")
