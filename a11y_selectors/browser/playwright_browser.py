"""
Playwright Browser - Runs accessible selector queries against a live page.

``PlaywrightTree`` exposes Playwright element handles through the tree
capabilities the engine reads. ``AccessiblePage`` is the host side: it owns the
retry loop, the current ``within`` scope and the few actions that need a
located element.
"""
from contextlib import contextmanager
from typing import Any, Callable, Iterator, List, Optional, Tuple
import logging
import sys
import time

from playwright.sync_api import Browser, BrowserContext, ElementHandle, JSHandle, Page, sync_playwright
from playwright.sync_api import Error as PlaywrightError

from ..config import DEFAULT_CONFIG, SelectorConfig
from ..dom.tree import NodePredicate
from ..errors import AmbiguousMatchError, ElementNotFoundError
from ..locators.query import HostFilter, SelectorQuery, build_query

log = logging.getLogger(__name__)

ANCESTORS_SCRIPT = """
(element) => {
    const ancestors = [];
    let parent = element.parentElement;
    while (parent) {
        ancestors.push(parent);
        parent = parent.parentElement;
    }
    return ancestors;
}
"""

VALIDITY_SCRIPT = "(element) => element.validity ? element.validity.valid : true"


class PlaywrightTree:
    """Tree capabilities over Playwright element handles."""

    def __init__(self, page: Page):
        self._page = page

    @property
    def root(self) -> Page:
        """Scope covering the whole page."""
        return self._page

    def attribute(self, node: ElementHandle, name: str) -> Optional[str]:
        return node.get_attribute(name)

    def text_content(self, node: ElementHandle) -> str:
        return node.text_content() or ""

    def tag_name(self, node: ElementHandle) -> str:
        return node.evaluate("(element) => element.localName")

    def ancestors(self, node: ElementHandle) -> List[ElementHandle]:
        handle = node.evaluate_handle(ANCESTORS_SCRIPT)
        elements = []
        try:
            for prop in handle.get_properties().values():
                element = self._element(prop)
                if element is not None:
                    elements.append(element)
        finally:
            handle.dispose()
        return elements

    def document(self, node: ElementHandle) -> ElementHandle:
        return self._element(node.evaluate_handle("(element) => element.ownerDocument.documentElement"))

    def element_by_id(self, scope: Any, element_id: str) -> Optional[ElementHandle]:
        if isinstance(scope, ElementHandle):
            handle = scope.evaluate_handle(
                "(element, id) => element.ownerDocument.getElementById(id)", element_id
            )
        else:
            handle = scope.evaluate_handle("(id) => document.getElementById(id)", element_id)
        return self._element(handle)

    def descendants_matching(self, scope: Any, predicate: NodePredicate) -> List[ElementHandle]:
        matches = []
        if isinstance(scope, ElementHandle) and predicate(scope):
            matches.append(scope)
        for handle in scope.query_selector_all("*"):
            if predicate(handle):
                matches.append(handle)
            else:
                handle.dispose()
        return matches

    def check_validity(self, node: ElementHandle) -> bool:
        return bool(node.evaluate(VALIDITY_SCRIPT))

    def release(self, nodes: List[ElementHandle], keep: Any = None) -> None:
        """Dispose handles no longer in use, except keep."""
        for node in nodes:
            if node is not keep:
                node.dispose()

    @staticmethod
    def _element(handle: JSHandle) -> Optional[ElementHandle]:
        element = handle.as_element()
        if element is None:
            handle.dispose()
        return element


class AccessiblePage:
    """Selector queries with waiting, scoping and rich text input on a Playwright page."""

    def __init__(
        self,
        page: Page,
        config: Optional[SelectorConfig] = None,
        host_filter: Optional[HostFilter] = None,
    ):
        """
        Args:
            page: Playwright page to query
            config: Query defaults, wait time and poll interval
            host_filter: Handles options the selector filters do not claim
        """
        self.page = page
        self.config = config or DEFAULT_CONFIG
        self.host_filter = host_filter
        self.tree = PlaywrightTree(page)
        self._scopes: List[Any] = []

    @property
    def current_scope(self) -> Any:
        """Innermost ``within`` element, or the page."""
        return self._scopes[-1] if self._scopes else self.page

    # ============ Queries ============

    def find_all(self, kind: str, locator: Any = None, **options: Any) -> List[ElementHandle]:
        """All matches in the current scope, evaluated once."""
        query = build_query(kind, locator, config=self.config, **options)
        return self._evaluate(query)

    def find(self, kind: str, locator: Any = None, *, wait: Optional[float] = None,
             **options: Any) -> ElementHandle:
        """
        The single element matching a query, retrying until it appears.

        Raises:
            ElementNotFoundError: nothing matched before the wait expired
            AmbiguousMatchError: several elements matched at the deadline
        """
        query = build_query(kind, locator, config=self.config, **options)
        wait = self.config.wait if wait is None else wait
        results = self._poll(query, lambda found: len(found) == 1, wait)
        if not results:
            raise ElementNotFoundError(query.describe(), wait)
        if len(results) > 1:
            raise AmbiguousMatchError(query.describe(), len(results))
        return results[0]

    def has_selector(self, kind: str, locator: Any = None, *, count: Optional[int] = None,
                     wait: Optional[float] = None, **options: Any) -> bool:
        """Whether the query matches (exactly ``count`` elements when given) before the wait expires."""
        query = build_query(kind, locator, config=self.config, **options)
        expected = self._count_check(count)
        found = self._poll(query, expected, wait)
        self.tree.release(found, keep=self.current_scope)
        return expected(found)

    def has_no_selector(self, kind: str, locator: Any = None, *, count: Optional[int] = None,
                        wait: Optional[float] = None, **options: Any) -> bool:
        """Whether the query stops matching before the wait expires."""
        query = build_query(kind, locator, config=self.config, **options)
        expected = self._count_check(count)
        found = self._poll(query, lambda found: not expected(found), wait)
        self.tree.release(found, keep=self.current_scope)
        return not expected(found)

    # ============ Scoping ============

    @contextmanager
    def within(self, kind: str, locator: Any = None, **options: Any) -> Iterator[ElementHandle]:
        """Limit queries in the block to the element matching the query."""
        with self._scoped(self.find(kind, locator, **options)) as element:
            yield element

    def within_navigation(self, locator: Any = None, **options: Any):
        """Limit queries in the block to a navigation landmark."""
        return self.within("navigation", locator, **options)

    def within_region(self, locator: Any = None, **options: Any):
        """Limit queries in the block to a region landmark."""
        return self.within("region", locator, **options)

    @contextmanager
    def within_rich_text(self, locator: Any = None, **options: Any) -> Iterator[ElementHandle]:
        """
        Limit queries in the block to a rich text editor. For iframe editors
        the scope is the editable element inside the frame.
        """
        element = self.find("rich_text", locator, **options)
        if self.tree.tag_name(element) == "iframe":
            element = self._iframe_editable(element)
        with self._scoped(element) as scope:
            yield scope

    @contextmanager
    def _scoped(self, element: Any) -> Iterator[Any]:
        self._scopes.append(element)
        try:
            yield element
        finally:
            self._scopes.pop()

    # ============ Actions ============

    def fill_in_rich_text(self, locator: Any, with_: Optional[str], clear: bool = True,
                          **find_options: Any) -> ElementHandle:
        """
        Type into a rich text editor.

        Args:
            locator: Rich text label, or [legend, ..., label]
            with_: Text to type; None or "" only clears
            clear: Remove the existing content first
            **find_options: Options for finding the editor

        Returns:
            The rich text element (the iframe for iframe editors)
        """
        element = self.find("rich_text", locator, **find_options)
        text = with_ or ""
        if self.tree.tag_name(element) == "iframe":
            self._fill_iframe_rich_text(element, text, clear)
        else:
            log.info("Filling rich text %r", locator)
            element.click()
            self._replace_text(element, text, clear)
        return element

    def _iframe_editable(self, frame_element: ElementHandle) -> ElementHandle:
        # Some drivers only click into frames that are in view
        frame_element.scroll_into_view_if_needed()
        frame = frame_element.content_frame()
        if frame is None:
            raise ElementNotFoundError("content frame of rich text iframe")
        return frame.wait_for_selector("[contenteditable=true]")

    def _fill_iframe_rich_text(self, frame_element: ElementHandle, text: str, clear: bool):
        editable = self._iframe_editable(frame_element)
        if (editable.text_content() or "") == text:
            return
        log.info("Filling iframe rich text %r", frame_element.get_attribute("title"))
        editable.click()
        self._replace_text(editable, text, clear)

    def _replace_text(self, element: ElementHandle, text: str, clear: bool):
        # The caret may be anywhere, so select everything before deleting
        if clear and (element.text_content() or "") != "":
            element.press(f"{self.command_modifier}+a")
            element.press("Backspace")
        if text:
            element.type(text)

    @property
    def command_modifier(self) -> str:
        return "Meta" if sys.platform == "darwin" else "Control"

    # ============ Retry loop ============

    @staticmethod
    def _count_check(count: Optional[int]) -> Callable[[List[ElementHandle]], bool]:
        if count is None:
            return lambda found: len(found) > 0
        return lambda found: len(found) == count

    def _evaluate(self, query: SelectorQuery) -> List[ElementHandle]:
        return query.evaluate(self.tree, self.current_scope, self.host_filter)

    def _poll(
        self,
        query: SelectorQuery,
        done: Callable[[List[ElementHandle]], bool],
        wait: Optional[float] = None,
    ) -> List[ElementHandle]:
        """Re-run the query until ``done`` accepts the result or the wait expires."""
        wait = self.config.wait if wait is None else wait
        deadline = time.monotonic() + wait
        attempts = 0
        while True:
            attempts += 1
            try:
                results = self._evaluate(query)
            except PlaywrightError as exc:
                # Elements detached while the page re-renders
                if time.monotonic() >= deadline:
                    raise
                log.debug("Query %s failed on attempt %d: %s", query.describe(), attempts, exc)
            else:
                if done(results) or time.monotonic() >= deadline:
                    log.debug("Query %s settled after %d attempt(s) with %d match(es)",
                              query.describe(), attempts, len(results))
                    return results
                self.tree.release(results, keep=self.current_scope)
            time.sleep(self.config.poll_interval)


class PlaywrightBrowser:
    """Chromium session exposing an AccessiblePage."""

    def __init__(
        self,
        headless: bool = True,
        screen_size: Tuple[int, int] = (1440, 900),
        config: Optional[SelectorConfig] = None,
    ):
        """
        Args:
            headless: Run browser in headless mode
            screen_size: Browser viewport size
            config: Selector query defaults
        """
        self.headless = headless
        self.screen_size = screen_size
        self.config = config or DEFAULT_CONFIG

        self._playwright = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None
        self._accessible: Optional[AccessiblePage] = None

    def __enter__(self):
        """Start browser session."""
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Close browser session."""
        self.close()

    def start(self):
        """Start the browser."""
        log.info("Starting browser (headless=%s)", self.headless)
        self._playwright = sync_playwright().start()
        self._browser = self._playwright.chromium.launch(
            headless=self.headless,
            args=["--disable-extensions", "--disable-dev-shm-usage"],
        )
        self._context = self._browser.new_context(
            viewport={"width": self.screen_size[0], "height": self.screen_size[1]}
        )
        self._page = self._context.new_page()
        self._accessible = AccessiblePage(self._page, config=self.config)

    def close(self):
        """Close the browser."""
        if self._page:
            self._page.close()
        if self._context:
            self._context.close()
        if self._browser:
            self._browser.close()
        if self._playwright:
            self._playwright.stop()
        self._page = self._context = self._browser = self._playwright = None
        self._accessible = None
        log.info("Browser closed")

    @property
    def page(self) -> AccessiblePage:
        if self._accessible is None:
            raise RuntimeError("Browser is not started")
        return self._accessible

    def navigate(self, url: str) -> AccessiblePage:
        """Navigate to a URL."""
        if not url.startswith(('http://', 'https://', 'file://', 'about:', 'data:')):
            url = 'https://' + url
        log.info("Navigating to %s", url)
        self.page.page.goto(url, wait_until="domcontentloaded")
        return self.page

    def set_content(self, html: str) -> AccessiblePage:
        """Replace the page with the given HTML."""
        self.page.page.set_content(html)
        return self.page

    def get_url(self) -> str:
        """Get current URL."""
        return self.page.page.url
