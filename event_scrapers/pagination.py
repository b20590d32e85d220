"""
Pagination engine.

Drives one rendered page session through::

    LOADING(n) -> EXTRACTING(n) -> RESOLVING_NEXT(n) -> ADVANCING(n) -> LOADING(n+1) ...

until ``DONE`` (no next affordance, or the page cap was reached) or
``FAILED(reason)``. Failures never raise out of ``run``: whatever was
accumulated up to the failure is returned with the reason, and the session is
closed on every exit path.

A navigation that leaves the URL unchanged is treated as a failure
(``no_progress``). The catalog gives no end-of-results signal, so "last page"
and "stuck" cannot be told apart.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

from playwright.sync_api import Error as PlaywrightError, TimeoutError as PlaywrightTimeoutError

from event_scrapers.navigation import IntentKind, NavigationIntent, NavigationResolver, derive_next_page_url
from event_scrapers.schema_adapter import ListingRecord


class EngineState(str, Enum):
    LOADING = "loading"
    EXTRACTING = "extracting"
    RESOLVING_NEXT = "resolving_next"
    ADVANCING = "advancing"
    DONE = "done"
    FAILED = "failed"


class FailureReason(str, Enum):
    TIMEOUT = "timeout"
    NO_PROGRESS = "no_progress"
    CONTENT_NOT_READY = "content_not_ready"
    NAVIGATION_ERROR = "navigation_error"


TERMINAL_STATES = (EngineState.DONE, EngineState.FAILED)


@dataclass
class PaginationState:
    page_number: int = 1
    has_more: bool = True
    accumulated: List[ListingRecord] = field(default_factory=list)


@dataclass
class PaginationResult:
    records: List[ListingRecord]
    pages_visited: int
    state: EngineState
    failure_reason: Optional[FailureReason] = None
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.state is EngineState.FAILED


class _Halt(Exception):
    def __init__(self, reason: FailureReason, message: str):
        super().__init__(message)
        self.reason = reason


class PaginationEngine:
    def __init__(
        self,
        session,
        extract_page: Callable[[object], List[ListingRecord]],
        resolver: NavigationResolver,
        listing_selector: str,
        navigation_timeout_ms: int = 30000,
        content_timeout_ms: int = 30000,
        settle_delay_ms: int = 2000,
        max_pages: Optional[int] = None,
        pagination_container_selector: Optional[str] = None,
        pagination_link_selector: str = 'a[href*="page="]',
        page_param: str = "page",
        screenshot_dir: Optional[Path] = None,
        capture_pagination_screenshots: bool = False,
        logger: Optional[logging.Logger] = None,
    ):
        self.session = session
        self.extract_page = extract_page
        self.resolver = resolver
        self.listing_selector = listing_selector
        self.navigation_timeout_ms = navigation_timeout_ms
        self.content_timeout_ms = content_timeout_ms
        self.settle_delay_ms = settle_delay_ms
        self.max_pages = max_pages
        self.pagination_container_selector = pagination_container_selector
        self.pagination_link_selector = pagination_link_selector
        self.page_param = page_param
        self.screenshot_dir = Path(screenshot_dir) if screenshot_dir else None
        self.capture_pagination_screenshots = capture_pagination_screenshots
        self.logger = logger or logging.getLogger(__name__)

        self.state = EngineState.LOADING
        self.pagination = PaginationState()

    def _transition(self, new_state: EngineState) -> None:
        self.logger.debug(f"Page {self.pagination.page_number}: {self.state.value} -> {new_state.value}")
        self.state = new_state

    def run(self, start_url: Optional[str] = None) -> PaginationResult:
        """Runs to a terminal state. ``start_url`` is opened first when given."""
        self.state = EngineState.LOADING
        self.pagination = PaginationState()
        failure_reason: Optional[FailureReason] = None
        error: Optional[str] = None

        try:
            if start_url:
                self._open_start_url(start_url)

            while self.pagination.has_more:
                self._load_current_page()

                self._transition(EngineState.EXTRACTING)
                page_records = self.extract_page(self.session)
                self.pagination.accumulated.extend(page_records)
                self.logger.info(f"Found {len(page_records)} events on page {self.pagination.page_number}")

                if self.max_pages and self.pagination.page_number >= self.max_pages:
                    self.logger.info(f"Reached max_pages ({self.max_pages}). Stopping pagination.")
                    self.pagination.has_more = False
                    break

                self._transition(EngineState.RESOLVING_NEXT)
                intent = self._resolve_next()
                if not intent.found:
                    if self.capture_pagination_screenshots:
                        self._capture_screenshot("no-next-button.png", full_page=True)
                    self.pagination.has_more = False
                    break

                self._transition(EngineState.ADVANCING)
                self._advance(intent)
                self.pagination.page_number += 1
                self.logger.info(f"Successfully navigated to page {self.pagination.page_number}")
                self._transition(EngineState.LOADING)

            self._transition(EngineState.DONE)
        except _Halt as halt:
            self.pagination.has_more = False
            failure_reason, error = halt.reason, str(halt)
            self.logger.error(f"Pagination halted on page {self.pagination.page_number} ({halt.reason.value}): {halt}")
            self._transition(EngineState.FAILED)
        finally:
            self._release_session()

        records = list(self.pagination.accumulated)
        self.logger.info(
            f"Pagination finished in state '{self.state.value}' after {self.pagination.page_number} page(s) "
            f"with {len(records)} events."
        )
        return PaginationResult(
            records=records,
            pages_visited=self.pagination.page_number,
            state=self.state,
            failure_reason=failure_reason,
            error=error,
        )

    # --- States ---

    def _open_start_url(self, url: str) -> None:
        self.logger.info(f"Navigating to: {url}")
        try:
            self.session.goto(url, wait_until="domcontentloaded", timeout_ms=self.navigation_timeout_ms)
        except PlaywrightTimeoutError as e:
            self._capture_screenshot("initial-navigation-timeout.png")
            raise _Halt(FailureReason.TIMEOUT, f"Timed out opening {url}: {e}") from e
        except PlaywrightError as e:
            self._capture_screenshot("initial-navigation-error.png")
            raise _Halt(FailureReason.NAVIGATION_ERROR, f"Could not open {url}: {e}") from e

    def _load_current_page(self) -> None:
        page_number = self.pagination.page_number
        self.logger.info(f"Processing page {page_number}")
        try:
            self.session.wait_for_selector(self.listing_selector, timeout_ms=self.content_timeout_ms)
        except PlaywrightError as e:
            self._capture_screenshot(f"event-cards-error-page-{page_number}.png")
            raise _Halt(FailureReason.TIMEOUT, f"Listing '{self.listing_selector}' not present on page {page_number}: {e}") from e

    def _resolve_next(self) -> NavigationIntent:
        try:
            self.session.scroll_to_bottom()
            self.session.wait(self.settle_delay_ms)
        except PlaywrightError as e:
            self.logger.warning(f"Scroll before pagination lookup failed: {e}")

        if self.capture_pagination_screenshots and self.pagination_container_selector:
            self._capture_screenshot(
                f"pagination-page-{self.pagination.page_number}.png",
                selector=self.pagination_container_selector,
            )

        return self.resolver.resolve(self.session)

    def _advance(self, intent: NavigationIntent) -> None:
        page_number = self.pagination.page_number
        url_before = self.session.url
        self.logger.info("Attempting to navigate to next page...")

        try:
            if intent.kind is IntentKind.ACTION:
                self.session.click_and_wait_for_navigation(intent.handle, timeout_ms=self.navigation_timeout_ms)
            else:
                self.session.goto(intent.url, wait_until="networkidle", timeout_ms=self.navigation_timeout_ms)
        except PlaywrightError as e:
            self.logger.warning(f"Primary navigation via '{intent.matched_by}' failed ({e}). Trying URL navigation...")
            self._navigate_by_url()

        url_after = self.session.url
        if url_after == url_before:
            self._capture_screenshot("page-not-changed.png")
            raise _Halt(FailureReason.NO_PROGRESS, f"Page did not change after navigation attempt (still {url_after})")

        try:
            self.session.wait_for_selector(self.listing_selector, timeout_ms=self.content_timeout_ms)
        except PlaywrightError as e:
            self._capture_screenshot(f"content-not-ready-page-{page_number + 1}.png")
            raise _Halt(FailureReason.CONTENT_NOT_READY, f"Listing not ready after navigating to {url_after}: {e}") from e

    def _navigate_by_url(self) -> None:
        next_url = derive_next_page_url(self.session.url, self._explicit_pagination_link(), self.page_param)
        self.logger.info(f"Navigating directly to derived URL: {next_url}")
        try:
            self.session.goto(next_url, wait_until="networkidle", timeout_ms=self.navigation_timeout_ms)
        except PlaywrightError as e:
            self._capture_screenshot("navigation-error.png")
            raise _Halt(FailureReason.NAVIGATION_ERROR, f"Error navigating to next page {next_url}: {e}") from e

    # --- Helpers ---

    def _explicit_pagination_link(self) -> Optional[str]:
        if not self.pagination_container_selector:
            return None
        selector = f"{self.pagination_container_selector} {self.pagination_link_selector}"
        try:
            links = self.session.query_all(selector)
            if not links:
                return None
            href = links[0].get_attribute("href")
        except PlaywrightError as e:
            self.logger.debug(f"Could not read pagination link '{selector}': {e}")
            return None
        return href.strip() if href and href.strip() else None

    def _capture_screenshot(self, filename: str, selector: Optional[str] = None, full_page: bool = False) -> None:
        if not self.screenshot_dir:
            return
        path = self.screenshot_dir / filename
        try:
            self.screenshot_dir.mkdir(parents=True, exist_ok=True)
            if self.session.screenshot(path, selector=selector, full_page=full_page):
                self.logger.info(f"Screenshot saved: {path}")
        except (PlaywrightError, OSError) as e:
            self.logger.warning(f"Could not capture screenshot {path}: {e}")

    def _release_session(self) -> None:
        try:
            self.session.close()
        except PlaywrightError as e:
            self.logger.error(f"Error releasing page session: {e}", exc_info=True)
