# fetchers/allkeyshop.py
import os
import re
from decimal import Decimal, InvalidOperation
from typing import Optional

import requests
from bs4 import BeautifulSoup

from core.errors import NotFoundError, ParseError, TransportError
from core.logger import get_logger
from .http import REQUEST_TIMEOUT, new_session, restricted_get

logger = get_logger(__name__)

AKS_DOMAIN = "www.allkeyshop.com"
AKS_BASE_URL = os.getenv("ALLKEYSHOP_BASE_URL", "https://" + AKS_DOMAIN)
PRICE_LOOKUP_ENDPOINT = "/blog/catalogue/category-pc-games-all/search-"
BEST_PRICE_SELECTOR = "li.search-results-row:first-of-type div.search-results-row-price"

# The euro sign, plus what its UTF-8 bytes look like when decoded as cp1252 or latin-1
EURO_GLYPHS = ("€", "â‚¬", "â\x82¬")

_WHITESPACE_RE = re.compile(r"\s+")
_NUMBER_RE = re.compile(r"\d+(?:[.,]\d+)*")
_SEP_RE = re.compile(r"[.,]")

CENTS = Decimal("0.01")


def extract_price_text(html: str | bytes) -> Optional[str]:
    """Return the price text of the first search result row, or None."""
    soup = BeautifulSoup(html, "html.parser")
    el = soup.select_one(BEST_PRICE_SELECTOR)
    if el is None:
        return None
    return el.get_text()


def normalize_price_text(text: str) -> str:
    """
    Strip whitespace (newlines and NBSP included) and the trailing euro sign,
    then rewrite the number with '.' as the only, decimal, separator.
    Text whose separators don't form a valid grouping is returned unchanged.
    """
    s = _WHITESPACE_RE.sub("", text)
    stripped = True
    while stripped:
        stripped = False
        for glyph in EURO_GLYPHS:
            if s.endswith(glyph):
                s = s[: -len(glyph)]
                stripped = True

    if not _NUMBER_RE.fullmatch(s):
        return s

    # A lone final separator followed by 1-2 digits is the decimal one
    last_sep = s[max(s.rfind(","), s.rfind("."))] if _SEP_RE.search(s) else ""
    int_part, fraction = s, ""
    if last_sep and s.count(last_sep) == 1:
        head, _, tail = s.rpartition(last_sep)
        if 1 <= len(tail) <= 2:
            int_part, fraction = head, tail

    # Whatever separators remain must be one kind of thousands separator
    if _SEP_RE.search(int_part):
        groups = _SEP_RE.split(int_part)
        if len(set(_SEP_RE.findall(int_part))) > 1:
            return s
        if not (1 <= len(groups[0]) <= 3 and all(len(g) == 3 for g in groups[1:])):
            return s
        int_part = "".join(groups)

    return f"{int_part}.{fraction}" if fraction else int_part


def parse_price(raw: str) -> Decimal:
    """Parse raw price text into a two-place Decimal, raising ParseError otherwise."""
    normalized = normalize_price_text(raw)
    if not normalized:
        raise ParseError(raw)
    try:
        value = Decimal(normalized)
    except InvalidOperation as e:
        raise ParseError(raw) from e
    if not value.is_finite() or value < 0:
        raise ParseError(raw)
    return value.quantize(CENTS)


class PriceScraper:
    """One AllKeyShop search per call, no retries."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        base_url: str = AKS_BASE_URL,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self.session = session or new_session()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def search_url(self, query: str) -> str:
        return f"{self.base_url}{PRICE_LOOKUP_ENDPOINT}{query}"

    def fetch(self, query: str) -> str:
        url = self.search_url(query)
        try:
            resp = restricted_get(self.session, url, AKS_DOMAIN, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportError(f"Request to {url} failed: {e}") from e

        status = resp.status_code
        if status == 429 or status >= 500:
            logger.warning("AllKeyShop returned %s at %s (possible rate limiting).", status, url)
            raise TransportError(f"Bad status code {status} for {url}")
        if status != 200:
            raise NotFoundError(f"AllKeyShop returned status {status} for {url}")
        return resp.text

    def scrape(self, query: str) -> Decimal:
        html = self.fetch(query)
        raw = extract_price_text(html)
        if raw is None or not raw.strip():
            raise NotFoundError(f"No search result with a price for {query!r}")
        price = parse_price(raw)
        logger.debug("AllKeyShop raw price %r for %r -> %s", raw, query, price)
        return price
