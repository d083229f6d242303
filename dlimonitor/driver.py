"""
Remote page driver.

A thin contract around a browser page so the extractors can be written once
and run against:
- a real headless Chromium (Playwright sync API) for production runs
- static HTML parsed with BeautifulSoup (saved pages, plain HTTP fetches, tests)

Only the handful of operations the extractors need are exposed:
navigate / wait_for / find / find_all on a session, and
text / inner_text / attribute / click / is_visible / find / find_all / parent
on an element.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

import requests
from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)

_DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; dlimonitor/0.1)",
}


class DriverError(Exception):
    """Any failure talking to the remote page (timeout, detached element, ...)."""


class NavigationError(DriverError):
    """The page could not be loaded."""


# ---------------------------------------------------------------------------
# Contract
# ---------------------------------------------------------------------------


class Element:
    def text(self) -> Optional[str]:
        """Raw text content (like DOM textContent)."""
        raise NotImplementedError

    def inner_text(self) -> Optional[str]:
        """Rendered text, with block boundaries as line breaks."""
        raise NotImplementedError

    def attribute(self, name: str) -> Optional[str]:
        raise NotImplementedError

    def click(self, force: bool = False, timeout_ms: Optional[int] = None) -> None:
        raise NotImplementedError

    def is_visible(self) -> bool:
        raise NotImplementedError

    def find_all(self, selector: str) -> List["Element"]:
        raise NotImplementedError

    def find(self, selector: str) -> Optional["Element"]:
        found = self.find_all(selector)
        return found[0] if found else None

    def parent(self) -> Optional["Element"]:
        raise NotImplementedError


class Session:
    def navigate(self, url: str, wait_until: str = "load", timeout_ms: int = 30000) -> None:
        raise NotImplementedError

    def wait_for(self, selector: str, timeout_ms: int) -> bool:
        """Wait until *selector* matches. Returns False on timeout instead of raising."""
        raise NotImplementedError

    def find_all(self, selector: str) -> List[Element]:
        raise NotImplementedError

    def find(self, selector: str) -> Optional[Element]:
        found = self.find_all(selector)
        return found[0] if found else None

    def close(self) -> None:
        pass


def by_id(element_id: str) -> str:
    """
    CSS selector for an id attribute.

    Attribute form instead of '#id' so ids starting with a digit still work.
    """
    escaped = element_id.replace("\\", "\\\\").replace('"', '\\"')
    return f'[id="{escaped}"]'


# ---------------------------------------------------------------------------
# Playwright implementation
# ---------------------------------------------------------------------------


def _playwright_call(fn, *args, **kwargs):
    """Run a Playwright call, re-raising its errors as DriverError."""
    from playwright.sync_api import Error as PlaywrightError

    try:
        return fn(*args, **kwargs)
    except PlaywrightError as e:
        raise DriverError(str(e)) from e


class PlaywrightElement(Element):
    def __init__(self, handle) -> None:
        self._handle = handle

    def text(self) -> Optional[str]:
        return _playwright_call(self._handle.text_content)

    def inner_text(self) -> Optional[str]:
        return _playwright_call(self._handle.inner_text)

    def attribute(self, name: str) -> Optional[str]:
        return _playwright_call(self._handle.get_attribute, name)

    def click(self, force: bool = False, timeout_ms: Optional[int] = None) -> None:
        _playwright_call(self._handle.click, force=force, timeout=timeout_ms)

    def is_visible(self) -> bool:
        return _playwright_call(self._handle.is_visible)

    def find_all(self, selector: str) -> List[Element]:
        handles = _playwright_call(self._handle.query_selector_all, selector)
        return [PlaywrightElement(h) for h in handles]

    def parent(self) -> Optional[Element]:
        js_handle = _playwright_call(self._handle.evaluate_handle, "el => el.parentElement")
        parent = js_handle.as_element()
        return PlaywrightElement(parent) if parent is not None else None


class PlaywrightSession(Session):
    def __init__(self, page) -> None:
        self._page = page

    def navigate(self, url: str, wait_until: str = "load", timeout_ms: int = 30000) -> None:
        try:
            _playwright_call(self._page.goto, url, wait_until=wait_until, timeout=timeout_ms)
        except DriverError as e:
            raise NavigationError(f"{url}: {e}") from e

    def wait_for(self, selector: str, timeout_ms: int) -> bool:
        from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

        try:
            self._page.wait_for_selector(selector, timeout=timeout_ms)
        except PlaywrightTimeoutError:
            return False
        return True

    def find_all(self, selector: str) -> List[Element]:
        handles = _playwright_call(self._page.query_selector_all, selector)
        return [PlaywrightElement(h) for h in handles]

    def close(self) -> None:
        _playwright_call(self._page.close)


@contextmanager
def playwright_session(headless: bool = True) -> Iterator[PlaywrightSession]:
    """
    Open an isolated headless Chromium page; the browser is always torn down.

    Playwright is imported lazily so offline extraction and tests don't need
    a browser installed.
    """
    from playwright.sync_api import sync_playwright

    with sync_playwright() as pw:
        browser = pw.chromium.launch(headless=headless)
        try:
            session = PlaywrightSession(browser.new_page())
            try:
                yield session
            finally:
                session.close()
        finally:
            browser.close()


# ---------------------------------------------------------------------------
# Static HTML implementation (BeautifulSoup)
# ---------------------------------------------------------------------------


def _hidden(tag: Tag) -> bool:
    if tag.has_attr("hidden"):
        return True
    style = str(tag.get("style") or "").replace(" ", "").lower()
    return "display:none" in style or "visibility:hidden" in style


class HtmlElement(Element):
    def __init__(self, tag: Tag) -> None:
        self._tag = tag

    def text(self) -> Optional[str]:
        return self._tag.get_text()

    def inner_text(self) -> Optional[str]:
        return self._tag.get_text("\n", strip=True)

    def attribute(self, name: str) -> Optional[str]:
        value = self._tag.get(name)
        if value is None:
            return None
        # bs4 returns multi-valued attributes (class, rel) as lists
        if isinstance(value, list):
            return " ".join(value)
        return str(value)

    def click(self, force: bool = False, timeout_ms: Optional[int] = None) -> None:
        # Static markup has no behaviour behind its controls
        logger.debug("Ignoring click on static <%s>", self._tag.name)

    def is_visible(self) -> bool:
        node: Optional[Tag] = self._tag
        while node is not None and node.name != "[document]":
            if _hidden(node):
                return False
            node = node.parent
        return True

    def find_all(self, selector: str) -> List[Element]:
        return [HtmlElement(t) for t in self._tag.select(selector)]

    def parent(self) -> Optional[Element]:
        parent = self._tag.parent
        if parent is None or parent.name == "[document]":
            return None
        return HtmlElement(parent)


class HtmlSession(Session):
    """
    Driver over static HTML.

    If *html* is given the page is fixed and navigate() is a no-op; otherwise
    navigate() fetches the URL with requests (no JavaScript is executed).
    """

    def __init__(self, html: Optional[str] = None) -> None:
        self._soup: Optional[BeautifulSoup] = BeautifulSoup(html, "html.parser") if html is not None else None
        self._fixed = html is not None

    def navigate(self, url: str, wait_until: str = "load", timeout_ms: int = 30000) -> None:
        if self._fixed:
            return
        try:
            resp = requests.get(url, headers=_DEFAULT_HEADERS, timeout=timeout_ms / 1000)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise NavigationError(f"{url}: {e}") from e
        self._soup = BeautifulSoup(resp.text, "html.parser")

    def _require_soup(self) -> BeautifulSoup:
        if self._soup is None:
            raise DriverError("No page loaded")
        return self._soup

    def wait_for(self, selector: str, timeout_ms: int) -> bool:
        return self._require_soup().select_one(selector) is not None

    def find_all(self, selector: str) -> List[Element]:
        return [HtmlElement(t) for t in self._require_soup().select(selector)]
