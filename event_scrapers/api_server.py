"""
FastAPI server that triggers scraper runs and reports their last status.
"""
import threading
from typing import Callable, Dict, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from playwright.sync_api import Error as PlaywrightError
from pymongo.errors import PyMongoError

from event_scrapers.reports import RunStatus, RunStatusRegistry, ScrapeRunReport, ScraperBusyError
from event_scrapers.scrapers.sympla.scraper import run_sympla_scraper
from event_scrapers.sentry_setup import init_sentry
from event_scrapers.utils import setup_logger

DEFAULT_SCRAPERS: Dict[str, Callable[[], ScrapeRunReport]] = {
    "sympla": run_sympla_scraper,
}


def create_app(
    scrapers: Optional[Dict[str, Callable[[], ScrapeRunReport]]] = None,
    registry: Optional[RunStatusRegistry] = None,
) -> FastAPI:
    scrapers = dict(scrapers if scrapers is not None else DEFAULT_SCRAPERS)
    registry = registry or RunStatusRegistry(scrapers.keys())
    run_locks = {name: threading.Lock() for name in scrapers}
    logger = setup_logger("EventScrapersAPI", "api_server")
    init_sentry()

    app = FastAPI(
        title="Event Scrapers API",
        description="Triggers catalog scrapes and reports the last run of each scraper",
        version="1.0.0",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.registry = registry

    def _run_exclusive(scraper_name: str) -> ScrapeRunReport:
        lock = run_locks[scraper_name]
        if not lock.acquire(blocking=False):
            raise ScraperBusyError(scraper_name)
        try:
            return scrapers[scraper_name]()
        finally:
            lock.release()

    @app.get("/", tags=["Health"])
    def root():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "Event Scrapers API",
            "scrapers": sorted(scrapers),
        }

    # Plain def: runs are blocking and FastAPI moves them to its threadpool.
    @app.get("/run/{scraper_name}", response_model=ScrapeRunReport, tags=["Runs"])
    def run_scraper(scraper_name: str):
        if scraper_name not in scrapers:
            raise HTTPException(status_code=404, detail=f"Unknown scraper '{scraper_name}'")

        logger.info(f"Run requested for scraper '{scraper_name}'")
        try:
            report = _run_exclusive(scraper_name)
        except ScraperBusyError as e:
            logger.warning(str(e))
            raise HTTPException(status_code=409, detail=str(e))
        except (PyMongoError, PlaywrightError) as e:
            logger.error(f"Run of '{scraper_name}' failed: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail=f"Run of '{scraper_name}' failed: {e}")

        registry.record(report)
        logger.info(f"Run of '{scraper_name}' finished: {report.event_count} new events ({report.final_state})")
        return report

    @app.get("/status", response_model=Dict[str, RunStatus], tags=["Runs"])
    def status():
        return registry.snapshot()

    return app


app = create_app()
