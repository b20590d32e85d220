"""
Next-page resolution.

A resolver walks an ordered list of affordance matchers; the first one that
detects something returns a ``NavigationIntent``:

- ``ACTION``: a clickable handle (button or anchor) to press,
- ``URL_TARGET``: an absolute URL to open directly,
- ``NONE``: nothing found, pagination is over.

The resolver only reports intent. Performing it, and falling back to
``derive_next_page_url`` when the click does not go through, is the
pagination engine's job.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, List, Optional
from urllib.parse import urljoin

from playwright.sync_api import Error as PlaywrightError

logger = logging.getLogger(__name__)


class IntentKind(str, Enum):
    ACTION = "action"
    URL_TARGET = "url_target"
    NONE = "none"


@dataclass(frozen=True)
class NavigationIntent:
    kind: IntentKind
    handle: Any = None
    url: Optional[str] = None
    matched_by: Optional[str] = None

    @classmethod
    def action(cls, handle: Any, matched_by: str) -> "NavigationIntent":
        return cls(IntentKind.ACTION, handle=handle, matched_by=matched_by)

    @classmethod
    def url_target(cls, url: str, matched_by: str) -> "NavigationIntent":
        return cls(IntentKind.URL_TARGET, url=url, matched_by=matched_by)

    @classmethod
    def none(cls) -> "NavigationIntent":
        return cls(IntentKind.NONE)

    @property
    def found(self) -> bool:
        return self.kind is not IntentKind.NONE


class AffordanceMatcher:
    """Detects one kind of "next page" control on the current page."""

    description = "affordance"

    def detect(self, session) -> Optional[NavigationIntent]:
        raise NotImplementedError


class SelectorAffordanceMatcher(AffordanceMatcher):
    """First element matching a CSS selector, returned as a clickable action."""

    def __init__(self, selector: str):
        self.selector = selector
        self.description = selector

    def detect(self, session) -> Optional[NavigationIntent]:
        handle = session.query(self.selector)
        if handle is None:
            return None
        return NavigationIntent.action(handle, matched_by=self.selector)


class NextLinkMatcher(AffordanceMatcher):
    """An anchor such as ``a[rel="next"]`` whose href is followed directly."""

    def __init__(self, selector: str = 'a[rel="next"]'):
        self.selector = selector
        self.description = selector

    def detect(self, session) -> Optional[NavigationIntent]:
        handle = session.query(self.selector)
        if handle is None:
            return None
        href = handle.get_attribute("href")
        if not href or not href.strip():
            return None
        return NavigationIntent.url_target(urljoin(session.url, href.strip()), matched_by=self.selector)


class NavigationResolver:
    def __init__(self, matchers: Iterable[AffordanceMatcher]):
        self.matchers: List[AffordanceMatcher] = list(matchers)

    def resolve(self, session) -> NavigationIntent:
        for matcher in self.matchers:
            try:
                intent = matcher.detect(session)
            except PlaywrightError as e:
                logger.debug(f"Matcher '{matcher.description}' errored, trying next: {e}")
                continue
            if intent is not None and intent.found:
                logger.debug(f"Next-page affordance found via '{matcher.description}' ({intent.kind.value})")
                return intent
        logger.info("Next button not found using any selector")
        return NavigationIntent.none()


def build_default_resolver(button_selectors: Iterable[str], next_link_selector: Optional[str] = None) -> NavigationResolver:
    matchers: List[AffordanceMatcher] = [SelectorAffordanceMatcher(s) for s in button_selectors]
    if next_link_selector:
        matchers.append(NextLinkMatcher(next_link_selector))
    return NavigationResolver(matchers)


def derive_next_page_url(current_url: str, explicit_link: Optional[str] = None, page_param: str = "page") -> str:
    """
    URL of the next page when the on-page control cannot be used.

    Order: an explicit pagination link, else the current ``page=N`` bumped to
    ``N+1`` (first occurrence only), else ``page=2`` appended to the query.
    """
    if explicit_link:
        return urljoin(current_url, explicit_link)

    pattern = re.compile(rf'{re.escape(page_param)}=(\d+)')
    match = pattern.search(current_url)
    if match:
        next_page = int(match.group(1)) + 1
        return pattern.sub(f"{page_param}={next_page}", current_url, count=1)

    separator = '&' if '?' in current_url else '?'
    return f"{current_url}{separator}{page_param}=2"
