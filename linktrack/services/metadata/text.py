"""
Text helpers shared by the metadata fetchers.
"""

import html
import re
from typing import Optional

from bs4 import BeautifulSoup

_WHITESPACE = re.compile(r"\s+")

# Straight double quote and typographic quotes, all mapped to "'"
_QUOTES = str.maketrans({
    '"': "'",
    "“": "'",
    "”": "'",
    "‘": "'",
    "’": "'",
})


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def strip_markup(markup: Optional[str]) -> str:
    """Plain text of an HTML fragment, whitespace collapsed."""
    if not markup:
        return ""
    text = BeautifulSoup(markup, "lxml").get_text(" ")
    return collapse_whitespace(text)


def truncate_at_word(text: str, max_length: int) -> str:
    """
    Cut text to at most max_length characters without splitting a word.

    A single word longer than max_length is cut hard.
    """
    if len(text) <= max_length:
        return text
    if text[max_length].isspace():
        return text[:max_length].rstrip()
    truncated = text[:max_length]
    last_space = truncated.rfind(" ")
    if last_space > 0:
        truncated = truncated[:last_space]
    return truncated.rstrip()


def normalize_quotes(text: Optional[str]) -> str:
    """Replace double and typographic quotes with a plain single quote."""
    if not text:
        return ""
    return text.translate(_QUOTES)


def clean_text(text: Optional[str]) -> Optional[str]:
    """Collapse whitespace and decode leftover HTML entities."""
    if not text:
        return None
    cleaned = collapse_whitespace(html.unescape(text).replace("\xa0", " "))
    return cleaned or None


def normalize_image_url(image_url: Optional[str], domain: str) -> Optional[str]:
    """
    Make an image reference absolute.

    Handles absolute (http/https), protocol-relative (//host/x.jpg),
    domain-absolute (/x.jpg) and document-relative (x.jpg) forms.
    """
    if not image_url:
        return None
    image_url = image_url.strip()
    if not image_url:
        return None
    if image_url.startswith(("http://", "https://")):
        return image_url
    if image_url.startswith("//"):
        return f"https:{image_url}"
    if image_url.startswith("/"):
        return f"https://{domain}{image_url}"
    return f"https://{domain}/{image_url}"
