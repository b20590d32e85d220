import html
import re
from typing import Optional

_WHITESPACE_RE = re.compile(r'\s+')


def normalize_whitespace(text: Optional[str]) -> Optional[str]:
    """
    Collapses runs of whitespace (spaces, tabs, newlines, nbsp) to a single space
    and strips both ends. Returns None for None or for text that is blank.
    """
    if text is None:
        return None

    text = _WHITESPACE_RE.sub(' ', text).strip()
    return text if text else None


def clean_html_entities(text: Optional[str]) -> Optional[str]:
    """Decodes HTML character entities (&amp;, &nbsp;, &#39; ...)."""
    if text is None:
        return None
    return html.unescape(text)


def clean_and_normalize_text(text: Optional[str]) -> Optional[str]:
    """Entity decoding followed by whitespace normalization."""
    if text is None:
        return None
    return normalize_whitespace(clean_html_entities(text))


def text_or_default(text: Optional[str], default: str) -> str:
    """Cleaned text, or ``default`` when nothing usable remains."""
    return clean_and_normalize_text(text) or default
