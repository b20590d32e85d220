"""
Normalization of Sympla card date/time text.

Cards render text such as ``"16 de Dez às 22:00"`` or ``"16 de Dez a 31 de Dez"``.
The source never shows a year, so the year of execution is always used; listings
for another year come out mis-dated. Unknown month abbreviations map to ``"01"``.
Both behaviours are locked by tests.

The date shapes are tried in order and the first match wins:

1. single day, the first ``"<d> de <mon>"`` -> ``DD/MM/YYYY`` (unless 2. applies)
2. day range ``"<d1> de <m1> a <d2> de <m2>"`` -> ``DD1/MM1 a DD2/MM2/YYYY``
3. anything else is passed through unchanged (sentinel when empty)
"""

import logging
import re
from datetime import datetime
from typing import Callable, List, Optional, Tuple

import pytz

from event_scrapers.config import settings

logger = logging.getLogger(__name__)

UNSPECIFIED_DATE = "Data não especificada"
DEFAULT_MONTH = "01"

MONTHS_PT = {
    'Jan': '01', 'Fev': '02', 'Mar': '03',
    'Abr': '04', 'Mai': '05', 'Jun': '06',
    'Jul': '07', 'Ago': '08', 'Set': '09',
    'Out': '10', 'Nov': '11', 'Dez': '12',
}

TIME_JOINERS = (" às ", " at ")

# ASCII \w so "Dezembro" reads as "Dez" and accented letters never join an abbreviation.
_DAY_MONTH_RE = re.compile(r'(\d{1,2}) de (\w{3})', re.ASCII)
_RANGE_RE = re.compile(r'(\d{1,2}) de (\w{3}) a (\d{1,2}) de (\w{3})', re.ASCII)


def month_number(abbreviation: str) -> str:
    number = MONTHS_PT.get(abbreviation)
    if number is None:
        logger.debug(f"Unknown month abbreviation '{abbreviation}', defaulting to {DEFAULT_MONTH}")
        return DEFAULT_MONTH
    return number


def current_year(timezone_name: Optional[str] = None) -> int:
    tz = pytz.timezone(timezone_name or settings.scraper_globals.timezone)
    return datetime.now(tz).year


def _single_day(text: str, year: int) -> Optional[str]:
    # A strict range belongs to the range shape; any other text uses its first pair.
    if _RANGE_RE.search(text):
        return None
    match = _DAY_MONTH_RE.search(text)
    if not match:
        return None
    day, month = match.groups()
    return f"{day.zfill(2)}/{month_number(month)}/{year}"


def _day_range(text: str, year: int) -> Optional[str]:
    match = _RANGE_RE.search(text)
    if not match:
        return None
    start_day, start_month, end_day, end_month = match.groups()
    return (
        f"{start_day.zfill(2)}/{month_number(start_month)} a "
        f"{end_day.zfill(2)}/{month_number(end_month)}/{year}"
    )


DATE_SHAPES: List[Tuple[str, Callable[[str, int], Optional[str]]]] = [
    ("single_day", _single_day),
    ("day_range", _day_range),
]


def split_date_time(raw: Optional[str]) -> Tuple[str, Optional[str]]:
    """Splits ``"<date> às <time>"``. Time is None when there is no joiner."""
    text = (raw or "").strip()
    for joiner in TIME_JOINERS:
        if joiner in text:
            parts = text.split(joiner)
            return parts[0].strip(), parts[1].strip() or None
    return text, None


def normalize_date(date_text: Optional[str], year: Optional[int] = None) -> str:
    text = (date_text or "").strip()
    if not text:
        return UNSPECIFIED_DATE

    year = year if year is not None else current_year()
    for shape_name, shape in DATE_SHAPES:
        normalized = shape(text, year)
        if normalized is not None:
            logger.debug(f"Date '{text}' matched {shape_name} -> '{normalized}'")
            return normalized

    logger.debug(f"Date '{text}' not recognized, passing through")
    return text


def normalize_date_time(raw: Optional[str], year: Optional[int] = None) -> Tuple[str, Optional[str]]:
    """Raw card text -> ``(date, time)`` with ``time`` None when absent."""
    date_text, time_text = split_date_time(raw)
    return normalize_date(date_text, year), time_text
