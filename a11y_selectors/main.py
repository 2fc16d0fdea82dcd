"""
Command line entry point: run an accessible selector query against an HTML file
or a live URL and print the matches.

    python -m a11y_selectors page.html region "Main content"
    python -m a11y_selectors page.html field Address Street --option required=true
    python -m a11y_selectors https://example.com navigation
"""
import argparse
import logging
import sys
from typing import Any, Dict, List, Optional, Sequence

import yaml
from rich.console import Console
from rich.table import Table

from .browser.playwright_browser import PlaywrightBrowser
from .config import SelectorConfig, load_config, selector_config
from .dom.names import accessible_description, accessible_name
from .dom.tree import SoupTree, Tree
from .errors import SelectorError
from .locators.query import find_all
from .locators.registry import get_selector, selector_kinds

console = Console(legacy_windows=False, highlight=False)

URL_PREFIXES = ("http://", "https://", "file://")

# Options whose values are numbers; every other scalar option is text
NUMERIC_OPTIONS = {"heading_level"}


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Configure logging for all a11y_selectors.* modules.

    Format example:
      12:34:56 DEBUG [a11y_selectors.locators.query] Query region 'Main' | candidates=3 matched=1
    """
    fmt = "%(asctime)s %(levelname)-5s [%(name)-16s] %(message)s"
    datefmt = "%H:%M:%S"
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO),
                        format=fmt, datefmt=datefmt, handlers=handlers)

    # Keep third-party libs quiet unless explicitly set to DEBUG
    for noisy in ("asyncio", "playwright"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def parse_options(pairs: Sequence[str]) -> Dict[str, Any]:
    """
    Turn ``key=value`` pairs into query options.

    Values are read as YAML, so ``true``, ``[Outer, Inner]`` and
    ``{expanded: true}`` work. Numbers and dates stay text except for
    numeric options, so a legend such as ``2020`` is still a name.
    """
    options: Dict[str, Any] = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        key = key.strip()
        if not sep or not key:
            raise argparse.ArgumentTypeError(f"Option must look like key=value: {pair!r}")
        try:
            value = yaml.safe_load(raw) if raw else ""
        except yaml.YAMLError as exc:
            raise argparse.ArgumentTypeError(f"Option {key!r} has an unreadable value: {raw!r}") from exc
        if not isinstance(value, (str, bool, list, dict)) and value is not None and key not in NUMERIC_OPTIONS:
            value = raw
        options[key] = value
    return options


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="a11y_selectors",
        description="Find elements by ARIA role and accessible name",
    )
    parser.add_argument(
        "source",
        help="HTML file to search, or an http(s) URL to load in Chromium"
    )
    parser.add_argument(
        "kind",
        choices=selector_kinds(),
        help="Selector kind"
    )
    parser.add_argument(
        "locator",
        nargs="*",
        help="Accessible name; several values address nested fieldsets, outer first"
    )
    parser.add_argument(
        "--exact",
        action="store_true",
        default=None,
        help="Require the whole accessible name to match"
    )
    parser.add_argument(
        "--option",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Filter option, e.g. required=true or fieldset=Address (repeatable)"
    )
    parser.add_argument(
        "--config",
        type=str,
        default="a11y.yaml",
        help="Path to a11y.yaml"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: WARNING, or logging.level from config)"
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Save logs to this file in addition to stderr"
    )
    return parser


def locator_from(values: Sequence[str]) -> Any:
    if not values:
        return None
    if len(values) == 1:
        return values[0]
    return list(values)


def print_matches(tree: Tree, kind: str, matches: List[Any]) -> None:
    name_kind = get_selector(kind).name_kind
    table = Table(title=f"{kind}: {len(matches)} match(es)")
    table.add_column("#", justify="right")
    table.add_column("Tag")
    table.add_column("Accessible name")
    table.add_column("Description")
    for index, node in enumerate(matches, start=1):
        table.add_row(
            str(index),
            tree.tag_name(node),
            accessible_name(tree, node, name_kind),
            accessible_description(tree, node),
        )
    console.print(table)


def run_query(tree: Tree, scope: Any, args: argparse.Namespace, config: SelectorConfig,
              options: Dict[str, Any]) -> int:
    matches = find_all(tree, scope, args.kind, locator_from(args.locator), config=config, **options)
    print_matches(tree, args.kind, matches)
    return 0 if matches else 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
        logging_section = config.get("logging") or {}
        setup_logging(level=args.log_level or logging_section.get("level", "WARNING"),
                      log_file=args.log_file or logging_section.get("file"))
        query_config = selector_config(config)
        options = parse_options(args.option)
    except (SelectorError, argparse.ArgumentTypeError) as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        return 2
    if args.exact is not None:
        options["exact"] = args.exact

    try:
        if args.source.startswith(URL_PREFIXES):
            with PlaywrightBrowser(headless=True, config=query_config) as browser:
                page = browser.navigate(args.source)
                return run_query(page.tree, page.tree.root, args, query_config, options)

        with open(args.source, "r", encoding="utf-8") as f:
            tree = SoupTree.from_html(f.read())
        return run_query(tree, tree.root, args, query_config, options)
    except SelectorError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        return 2
    except FileNotFoundError:
        console.print(f"[bold red]Error:[/bold red] No such file: {args.source}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
