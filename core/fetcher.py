"""
Page fetch client for Conversion Killer Check.

Downloads the raw markup of a single page. The call runs in a worker
thread and is bounded by asyncio.wait_for; a timeout is reported as a
failure and never retried.
"""

import asyncio
import logging
from typing import List

import requests
from bs4.dammit import EncodingDetector, UnicodeDammit

from config import settings
from core.exceptions import PageFetchError

logger = logging.getLogger(__name__)


def header_charset(response: requests.Response) -> str:
    """Charset the server declared in Content-Type, or "" when it sent none."""
    content_type = response.headers.get("Content-Type", "")
    if "charset=" not in content_type.lower():
        return ""
    return response.encoding or ""


def decode_markup(raw: bytes, declared: str = "") -> str:
    """
    Decode downloaded markup.

    Order: the charset from the HTTP header, the document's own
    <meta charset> declaration, UTF-8, then UnicodeDammit's detection.
    requests falls back to ISO-8859-1 for any text/* response without a
    charset, so its `encoding` is only trusted when the header named one.
    """
    candidates: List[str] = []
    if declared:
        candidates.append(declared)
    in_document = EncodingDetector.find_declared_encoding(raw, is_html=True)
    if in_document:
        candidates.append(in_document)
    candidates.append("utf-8")

    dammit = UnicodeDammit(raw, known_definite_encodings=candidates, is_html=True)
    if dammit.unicode_markup is None:
        logger.warning("⚠️ No encoding fit the markup, decoding as UTF-8 with replacements")
        return raw.decode("utf-8", errors="replace")

    logger.debug(f"🔤 Decoded markup as {dammit.original_encoding}")
    return dammit.unicode_markup


class PageFetcher:
    """Fetches page markup with a bounded timeout and size cap."""

    def __init__(
        self,
        timeout: float = None,
        max_bytes: int = None,
        user_agent: str = None,
        session: requests.Session = None,
    ):
        self.timeout = timeout or settings.FETCH_TIMEOUT
        self.max_bytes = max_bytes or settings.MAX_PAGE_BYTES
        self.user_agent = user_agent or settings.USER_AGENT
        self.session = session or requests.Session()

    def _download(self, url: str) -> str:
        headers = {
            "User-Agent": self.user_agent,
            "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8",
        }
        with self.session.get(url, headers=headers, timeout=self.timeout, stream=True) as response:
            if not response.ok:
                raise PageFetchError(f"Page returned HTTP {response.status_code}")

            chunks = []
            size = 0
            truncated = False
            for chunk in response.iter_content(chunk_size=65536):
                chunks.append(chunk)
                size += len(chunk)
                if size >= self.max_bytes:
                    truncated = size > self.max_bytes
                    break

            raw = b"".join(chunks)
            if truncated:
                logger.warning(f"⚠️ Markup of {url} truncated at {self.max_bytes} bytes")
                raw = raw[: self.max_bytes]
                # Cut after the last complete tag so no multi-byte character is split
                last_tag_end = raw.rfind(b">")
                if last_tag_end >= 0:
                    raw = raw[: last_tag_end + 1]

            return decode_markup(raw, header_charset(response))

    async def fetch(self, url: str) -> str:
        """
        Fetch the markup of `url`.

        Raises:
            PageFetchError: On network errors, non-2xx responses or timeout
        """
        logger.info(f"📡 Fetching {url}")
        try:
            markup = await asyncio.wait_for(
                asyncio.to_thread(self._download, url), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            logger.error(f"⏱️ Fetch timeout after {self.timeout}s for {url}")
            raise PageFetchError(f"Fetching {url} timed out after {self.timeout}s")
        except requests.RequestException as e:
            logger.error(f"❌ Fetch failed for {url}: {str(e)}")
            raise PageFetchError(f"Fetching {url} failed: {str(e)}") from e

        logger.info(f"✓ Fetched {len(markup)} characters from {url}")
        return markup
