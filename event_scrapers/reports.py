import threading
from datetime import datetime
from typing import Dict, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ScrapeRunReport(BaseModel):
    """Outcome of one full scrape run, returned by each run entry point."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    scraper: str
    last_run: datetime
    event_count: int = Field(0, description="Records newly persisted by this run.")
    scraped_count: int = 0
    pages_visited: int = 0
    final_state: str
    halt_reason: Optional[str] = None
    persisted: bool = True
    output_file: Optional[str] = None


class RunStatus(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    last_run: Optional[datetime] = None
    event_count: int = 0


class RunStatusRegistry:
    """Last known status per scraper, owned by whoever triggers the runs."""

    def __init__(self, scraper_names: Iterable[str] = ()):
        self._lock = threading.Lock()
        self._statuses: Dict[str, RunStatus] = {name: RunStatus() for name in scraper_names}

    def record(self, report: ScrapeRunReport) -> RunStatus:
        status = RunStatus(last_run=report.last_run, event_count=report.event_count)
        with self._lock:
            self._statuses[report.scraper] = status
        return status

    def get(self, scraper_name: str) -> RunStatus:
        with self._lock:
            return self._statuses.get(scraper_name, RunStatus())

    def snapshot(self) -> Dict[str, RunStatus]:
        with self._lock:
            return dict(self._statuses)


class ScraperBusyError(RuntimeError):
    """A run was requested while the same scraper is still running."""

    def __init__(self, scraper_name: str):
        super().__init__(f"Scraper '{scraper_name}' is already running")
        self.scraper_name = scraper_name
