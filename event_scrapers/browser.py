import logging
from pathlib import Path
from typing import Any, List, Optional, Union

from playwright.sync_api import Page, ElementHandle, Error as PlaywrightError

logger = logging.getLogger(__name__)

SCROLL_TO_BOTTOM_JS = "() => window.scrollTo(0, document.body.scrollHeight)"


class PlaywrightPageSession:
    """
    The small surface of a rendered page that the pagination engine drives.

    Every call is bounded by an explicit timeout; Playwright ``TimeoutError`` and
    ``Error`` are raised unchanged for the engine to map onto its failure states.
    """

    def __init__(self, page: Page):
        self.page = page

    @property
    def url(self) -> str:
        return self.page.url

    def goto(self, url: str, wait_until: str = "domcontentloaded", timeout_ms: int = 30000) -> None:
        logger.debug(f"goto {url} (wait_until={wait_until}, timeout={timeout_ms}ms)")
        self.page.goto(url, wait_until=wait_until, timeout=timeout_ms)

    def wait_for_selector(self, selector: str, timeout_ms: int = 30000) -> None:
        self.page.wait_for_selector(selector, state="attached", timeout=timeout_ms)

    def query(self, selector: str) -> Optional[ElementHandle]:
        return self.page.query_selector(selector)

    def query_all(self, selector: str) -> List[ElementHandle]:
        return self.page.query_selector_all(selector)

    def evaluate(self, expression: str, arg: Any = None) -> Any:
        return self.page.evaluate(expression, arg)

    def click_and_wait_for_navigation(self, handle: ElementHandle, timeout_ms: int = 30000, wait_until: str = "networkidle") -> None:
        with self.page.expect_navigation(wait_until=wait_until, timeout=timeout_ms):
            handle.click(timeout=timeout_ms)

    def scroll_to_bottom(self) -> None:
        self.page.evaluate(SCROLL_TO_BOTTOM_JS)

    def wait(self, milliseconds: int) -> None:
        if milliseconds > 0:
            self.page.wait_for_timeout(milliseconds)

    def screenshot(self, path: Union[str, Path], selector: Optional[str] = None, full_page: bool = False) -> bool:
        """Page (or single element) screenshot. False when the element is absent."""
        if selector:
            element = self.page.query_selector(selector)
            if element is None:
                return False
            element.screenshot(path=str(path))
            return True
        self.page.screenshot(path=str(path), full_page=full_page)
        return True

    def close(self) -> None:
        if self.page.is_closed():
            return
        try:
            self.page.close()
        except PlaywrightError as e:
            logger.error(f"Page close error: {e}", exc_info=True)
