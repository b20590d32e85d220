import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from playwright.sync_api import Error as PlaywrightError

from event_scrapers.config import SymplaSettings, settings
from event_scrapers.data_quality.cleaning import clean_and_normalize_text
from event_scrapers.schema_adapter import ListingRecord, map_to_listing_record

logger = logging.getLogger(__name__)

# Runs against the card element; closest() includes the card itself.
ENCLOSING_HREF_JS = """(el, selector) => {
    const link = el.closest(selector);
    return link ? link.getAttribute('href') : null;
}"""


class SymplaCardExtractor:
    """
    Turns the listing cards of one rendered catalog page into ListingRecords.

    Each card is read once through its element handle (inner HTML plus the href
    of an enclosing event link) and then parsed with BeautifulSoup. A card whose
    handle cannot be read is dropped; a card with missing fields is kept with
    sentinel values.
    """

    def __init__(self, sympla_settings: Optional[SymplaSettings] = None, year: Optional[int] = None):
        self.config = sympla_settings or settings.scrapers_specific.sympla
        self.year = year

    def _select_text(self, soup: BeautifulSoup, selector: str) -> Optional[str]:
        element = soup.select_one(selector)
        return clean_and_normalize_text(element.get_text()) if element else None

    def _select_attr(self, soup: BeautifulSoup, selector: str, attr: str) -> Optional[str]:
        element = soup.select_one(selector)
        if not element:
            return None
        value = element.get(attr)
        return value.strip() if value and value.strip() else None

    def parse_card_html(self, card_html: str, page_url: str, enclosing_href: Optional[str] = None) -> ListingRecord:
        soup = BeautifulSoup(card_html or "", "html.parser")
        cfg = self.config

        # A card wrapped in a link wins over links nested inside it.
        href = enclosing_href or self._select_attr(soup, cfg.event_link_selector, "href")
        image_src = self._select_attr(soup, cfg.image_selector, "src")

        raw: Dict[str, Any] = {
            "title": self._select_text(soup, cfg.title_selector),
            "date_text": self._select_text(soup, cfg.date_selector),
            "location": self._select_text(soup, cfg.location_selector),
            "url": urljoin(page_url, href) if href else "",
            "image_url": urljoin(page_url, image_src) if image_src else "",
        }
        return map_to_listing_record(raw, source_type=cfg.source_type, year=self.year)

    def _read_card(self, handle: Any) -> Optional[Dict[str, Optional[str]]]:
        try:
            return {
                "html": handle.inner_html(),
                "enclosing_href": handle.evaluate(ENCLOSING_HREF_JS, self.config.event_link_selector),
            }
        except PlaywrightError as e:
            logger.debug(f"Could not read card handle, dropping it: {e}")
            return None

    def extract_page(self, session) -> List[ListingRecord]:
        page_url = session.url
        try:
            handles = session.query_all(self.config.listing_selector)
        except PlaywrightError as e:
            logger.warning(f"Could not query listing cards on {page_url}: {e}")
            return []

        records: List[ListingRecord] = []
        for index, handle in enumerate(handles):
            card = self._read_card(handle)
            if card is None:
                continue
            record = self.parse_card_html(card["html"], page_url, enclosing_href=card["enclosing_href"])
            logger.debug(f"Card {index}: '{record.title}' {record.date} -> {record.url or '<no link>'}")
            records.append(record)

        logger.debug(f"Parsed {len(records)} of {len(handles)} cards on {page_url}")
        return records
