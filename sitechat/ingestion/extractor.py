"""
Content Extractor

Fetches a page and reduces it to normalized visible text: ``script``,
``style`` and ``noscript`` subtrees are dropped, the body's text is taken,
and whitespace runs collapse to single spaces.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

import httpx
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")
_STRIPPED_TAGS = ("script", "style", "noscript")


class FetchError(Exception):
    """The page could not be fetched (transport failure or non-2xx)."""

    def __init__(self, url: str, message: str, status_code: int | None = None):
        self.url = url
        self.status_code = status_code
        super().__init__(message)


@dataclass(frozen=True)
class ExtractionResult:
    """Extracted text of one page."""

    url: str
    text: str
    min_chars: int

    @property
    def insufficient(self) -> bool:
        """True when the text is too short to be worth ingesting."""
        return len(self.text) < self.min_chars


def html_to_text(html: str) -> str:
    """Return the visible body text of ``html`` with whitespace collapsed."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup.find_all(_STRIPPED_TAGS):
        tag.decompose()
    root = soup.body or soup
    return _WHITESPACE.sub(" ", root.get_text(separator=" ")).strip()


class ContentExtractor:
    """HTTP fetch plus HTML to text."""

    def __init__(
        self,
        timeout: float = 15.0,
        user_agent: str = "sitechat-ingest/0.1",
        min_chars: int = 40,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self.min_chars = min_chars
        self._transport = transport

    async def extract(self, url: str) -> ExtractionResult:
        """
        Fetch ``url`` and extract its visible text.

        Short pages are not an error here; check ``result.insufficient``.

        Raises:
            FetchError: On transport failure or a non-2xx response
        """
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                headers={"User-Agent": self.user_agent},
                transport=self._transport,
            ) as client:
                response = await client.get(url)
        except httpx.HTTPError as e:
            logger.warning(f"Fetch failed for {url}: {e}")
            raise FetchError(url, f"Failed to fetch {url}: {e}") from e

        if response.is_error:
            logger.warning(f"Fetch failed for {url}: HTTP {response.status_code}")
            raise FetchError(
                url,
                f"Failed to fetch {url}: HTTP {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )

        text = html_to_text(response.text)
        logger.debug(f"Extracted {len(text)} characters from {url}")
        return ExtractionResult(url=url, text=text, min_chars=self.min_chars)
