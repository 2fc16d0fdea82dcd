"""
Configuration - Defaults for selector queries and the browser host, read from YAML.

Example ``a11y.yaml``::

    selectors:
      exact: false
      heading_levels: [1, 2, 3]
      wait: 2.0
      poll_interval: 0.1
    logging:
      level: INFO
"""
from dataclasses import dataclass, fields
from typing import Any, Dict, Iterable, Tuple, Union

import yaml

from .dom.names import DEFAULT_HEADING_LEVELS
from .errors import ConfigError


def heading_levels_from(value: Union[int, Iterable[int]]) -> Tuple[int, ...]:
    """Normalize a heading level or list of levels, rejecting anything outside 1-6."""
    levels = (value,) if isinstance(value, int) else tuple(value)
    valid = all(
        isinstance(level, int) and not isinstance(level, bool) and 1 <= level <= 6
        for level in levels
    )
    if not levels or not valid:
        raise ValueError(f"Heading levels must be integers between 1 and 6, got {value!r}")
    return levels


@dataclass(frozen=True)
class SelectorConfig:
    """Query defaults. Options passed to a query always win."""
    exact: bool = False
    heading_levels: Tuple[int, ...] = DEFAULT_HEADING_LEVELS
    wait: float = 2.0            # seconds the browser host retries a query
    poll_interval: float = 0.1   # seconds between retries

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SelectorConfig":
        """Build from the ``selectors`` section of the config file."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"Unknown selector settings: {', '.join(sorted(unknown))}")

        values = dict(data)
        if "exact" in values and not isinstance(values["exact"], bool):
            raise ConfigError(f"'exact' must be true or false, got {values['exact']!r}")
        if "heading_levels" in values:
            try:
                values["heading_levels"] = heading_levels_from(values["heading_levels"])
            except (TypeError, ValueError) as exc:
                raise ConfigError(str(exc)) from exc
        for name in ("wait", "poll_interval"):
            if name in values:
                try:
                    values[name] = float(values[name])
                except (TypeError, ValueError) as exc:
                    raise ConfigError(f"'{name}' must be a number, got {values[name]!r}") from exc
                if values[name] < 0:
                    raise ConfigError(f"'{name}' must not be negative")
        return cls(**values)


DEFAULT_CONFIG = SelectorConfig()


def load_config(config_path: str = "a11y.yaml") -> Dict[str, Any]:
    """Load configuration from YAML file. Returns empty dict if not found."""
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        return {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{config_path} must contain a mapping at the top level")
    return data


def selector_config(config: Dict[str, Any]) -> SelectorConfig:
    """SelectorConfig from a loaded config dict."""
    section = config.get("selectors") or {}
    if not isinstance(section, dict):
        raise ConfigError("'selectors' section must be a mapping")
    return SelectorConfig.from_dict(section)
