from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from playwright.sync_api import sync_playwright, Browser, Page, Error as PlaywrightError

from event_scrapers.config import SymplaSettings, settings
from event_scrapers.browser import PlaywrightPageSession
from event_scrapers.merge import persist_new_records
from event_scrapers.navigation import build_default_resolver
from event_scrapers.pagination import PaginationEngine, PaginationResult
from event_scrapers.reports import ScrapeRunReport
from event_scrapers.schema_adapter import records_to_documents
from event_scrapers.scrapers.sympla.extractor import SymplaCardExtractor
from event_scrapers.sentry_setup import init_sentry
from event_scrapers.storage import MongoRecordStore
from event_scrapers.utils import setup_logger, save_to_json_file

SCRAPER_NAME = "sympla"
EVENTS_FILENAME = "events.json"

WEBDRIVER_INIT_SCRIPT = "Object.defineProperty(navigator, 'webdriver', {get: () => undefined})"
BROWSER_ARGS = ["--no-sandbox", "--disable-setuid-sandbox", "--disable-blink-features=AutomationControlled"]


def build_engine(session, sympla_settings: SymplaSettings, max_pages: Optional[int] = None,
                 year: Optional[int] = None, logger=None) -> PaginationEngine:
    """Wires a page session to the Sympla extractor, resolver and pagination settings."""
    extractor = SymplaCardExtractor(sympla_settings, year=year)
    resolver = build_default_resolver(sympla_settings.next_button_selectors, sympla_settings.next_link_selector)
    screenshot_dir = settings.file_outputs.screenshot_directory if settings.file_outputs.enable_error_screenshots else None
    return PaginationEngine(
        session=session,
        extract_page=extractor.extract_page,
        resolver=resolver,
        listing_selector=sympla_settings.listing_selector,
        navigation_timeout_ms=sympla_settings.navigation_timeout_ms,
        content_timeout_ms=sympla_settings.content_timeout_ms,
        settle_delay_ms=sympla_settings.settle_delay_ms,
        max_pages=max_pages if max_pages is not None else sympla_settings.max_pages,
        pagination_container_selector=sympla_settings.pagination_container_selector,
        pagination_link_selector=sympla_settings.pagination_link_selector,
        page_param=sympla_settings.page_param,
        screenshot_dir=screenshot_dir,
        capture_pagination_screenshots=sympla_settings.capture_pagination_screenshots,
        logger=logger,
    )


class SymplaScraper:
    def __init__(self, sympla_settings: Optional[SymplaSettings] = None):
        self.logger = setup_logger("SymplaScraper", "sympla_scrape_run")
        self.config = sympla_settings or settings.scrapers_specific.sympla

        self.headless = settings.scraper_globals.default_headless_browser
        self.user_agent = settings.scraper_globals.default_user_agent
        self.viewport_width = settings.scraper_globals.viewport_width
        self.viewport_height = settings.scraper_globals.viewport_height

        self.playwright_instance = None
        self.browser: Optional[Browser] = None
        self.page: Optional[Page] = None
        self.logger.info(f"SymplaScraper initialized. Headless: {self.headless}, Target URL: {self.config.target_url}")

    def __enter__(self):
        self.logger.info("Starting Playwright...")
        self.playwright_instance = sync_playwright().start()
        try:
            self.browser = self.playwright_instance.chromium.launch(headless=self.headless, args=BROWSER_ARGS)
            self.logger.info(f"Playwright browser launched (headless: {self.headless}).")
        except PlaywrightError as e:
            self.logger.critical(f"Browser launch failed: {e}", exc_info=True)
            self.playwright_instance.stop()
            raise
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.logger.info("Closing Playwright resources...")
        if self.page and not self.page.is_closed():
            try: self.page.close()
            except PlaywrightError as e: self.logger.error(f"Page close error: {e}", exc_info=True)
        if self.browser and self.browser.is_connected():
            try: self.browser.close()
            except PlaywrightError as e: self.logger.error(f"Browser close error: {e}", exc_info=True)
        if self.playwright_instance:
            try: self.playwright_instance.stop()
            except PlaywrightError as e: self.logger.error(f"Playwright stop error: {e}", exc_info=True)
        self.logger.info("Playwright resources cleaned.")

    def open_session(self) -> PlaywrightPageSession:
        if not self.browser:
            raise RuntimeError("Browser not started; use SymplaScraper as a context manager.")
        self.page = self.browser.new_page(
            user_agent=self.user_agent,
            viewport={'width': self.viewport_width, 'height': self.viewport_height},
        )
        self.page.add_init_script(WEBDRIVER_INIT_SCRIPT)
        return PlaywrightPageSession(self.page)

    def crawl_events(self, url: Optional[str] = None, max_pages: Optional[int] = None) -> PaginationResult:
        start_url = url or str(self.config.target_url)
        session = self.open_session()
        engine = build_engine(session, self.config, max_pages=max_pages, logger=self.logger)
        return engine.run(start_url=start_url)


def run_sympla_scraper(
    target_url_override: Optional[str] = None,
    max_pages_override: Optional[int] = None,
    store=None,
    persist: bool = True,
    scraper_factory: Callable[[], SymplaScraper] = SymplaScraper,
) -> ScrapeRunReport:
    """
    One full run: crawl every reachable page, write ``events.json``, then
    append the records whose URL the store does not know yet.

    A pagination failure still persists what was gathered before it; the halt
    reason is carried in the report. Store errors propagate to the caller.
    """
    init_sentry()

    run_logger = setup_logger("SymplaRun", "sympla_main_run")
    run_logger.info("Starting Sympla scraper execution...")

    sympla_settings = settings.scrapers_specific.sympla
    actual_target_url = target_url_override or str(sympla_settings.target_url)
    run_logger.info(f"Targeting URL: {actual_target_url}, Max pages: {max_pages_override or sympla_settings.max_pages or 'unbounded'}")

    with scraper_factory() as scraper:
        result = scraper.crawl_events(url=actual_target_url, max_pages=max_pages_override)
    run_logger.info(f"Crawling complete. {len(result.records)} events over {result.pages_visited} page(s), state '{result.state.value}'.")
    if result.failed:
        run_logger.warning(f"Pagination stopped early ({result.failure_reason.value}); keeping partial results.")

    output_file: Optional[Path] = save_to_json_file(
        data_to_save=records_to_documents(result.records),
        filename_prefix="sympla_events",
        sub_folder=sympla_settings.output_subfolder,
        filename=EVENTS_FILENAME,
        logger_obj=run_logger,
    )

    event_count = 0
    if persist:
        owns_store = store is None
        active_store = store or MongoRecordStore(logger=run_logger)
        try:
            persist_result = persist_new_records(result.records, active_store, logger=run_logger)
        finally:
            if owns_store:
                active_store.close()
        event_count = persist_result.updated_count
    else:
        run_logger.info("Persistence disabled for this run.")

    report = ScrapeRunReport(
        scraper=SCRAPER_NAME,
        last_run=datetime.now(timezone.utc),
        event_count=event_count,
        scraped_count=len(result.records),
        pages_visited=result.pages_visited,
        final_state=result.state.value,
        halt_reason=result.failure_reason.value if result.failure_reason else None,
        persisted=persist,
        output_file=str(output_file) if output_file else None,
    )
    run_logger.info(f"Sympla scraper execution finished. {event_count} new events persisted.")
    return report
