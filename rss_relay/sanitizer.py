"""
HTML sanitization for entry descriptions.

Turns the HTML description of a feed entry into plain text suitable for
a notification, and finds the first image referenced by that HTML.
"""

import logging
import re

from bs4 import BeautifulSoup
from bs4.builder import ParserRejectedMarkup

logger = logging.getLogger(__name__)

# Maximum description length in a notification, before the ellipsis
MAX_DESCRIPTION_LENGTH = 500

ELLIPSIS = "..."

# Elements whose text is never shown
HIDDEN_ELEMENTS = ["script", "style", "noscript", "template"]

_NEWLINE_RUNS = re.compile(r"\n{3,}")


class DescriptionParseError(Exception):
    """Raised when an entry description cannot be parsed as HTML."""


def _parse(fragment: str | None) -> BeautifulSoup:
    try:
        return BeautifulSoup(fragment or "", "html.parser")
    except ParserRejectedMarkup as e:
        raise DescriptionParseError(f"Unparsable description: {e}") from e


def sanitize_description(fragment: str | None) -> str:
    """
    Strip all markup from an HTML fragment.

    Script and style contents are dropped, tab characters removed and
    runs of three or more newlines collapsed into one.

    Parameters
    ----------
    fragment : str | None
        Raw HTML description.

    Returns
    -------
    str
        Plain text with HTML entities decoded.

    Raises
    ------
    DescriptionParseError
        If the parser rejects the markup.
    """
    soup = _parse(fragment)
    for element in soup(HIDDEN_ELEMENTS):
        element.decompose()

    text = soup.get_text()
    text = text.replace("\t", "")
    text = _NEWLINE_RUNS.sub("\n", text)
    return text.strip()


def extract_first_image(fragment: str | None) -> str | None:
    """
    Return the ``src`` of the first ``<img>`` in an HTML fragment.

    Only the first image element is considered; if it has no ``src``
    the result is ``None``.

    Raises
    ------
    DescriptionParseError
        If the parser rejects the markup.
    """
    img = _parse(fragment).find("img")
    if img is None:
        return None
    src = (img.get("src") or "").strip()
    return src or None


def truncate(text: str, limit: int = MAX_DESCRIPTION_LENGTH, suffix: str = ELLIPSIS) -> str:
    """
    Cap text to ``limit`` characters and append ``suffix``.

    Slicing is done on characters, so multi-byte text is never cut
    inside a code point. Empty text stays empty.
    """
    if not text:
        return ""
    return text[:limit] + suffix
