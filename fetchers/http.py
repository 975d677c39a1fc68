# fetchers/http.py
import os
from urllib.parse import urljoin, urlparse

import requests

from core.errors import DomainNotAllowedError
from core.logger import get_logger

logger = get_logger(__name__)

USER_AGENT = os.getenv(
    "USER_AGENT",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
)
PROXY_URL = os.getenv("PROXY_URL", "").strip()
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "30"))
MAX_REDIRECTS = 5


def new_session() -> requests.Session:
    session = requests.Session()
    session.headers.update(
        {
            "User-Agent": USER_AGENT,
            "Accept-Language": "en-US,en;q=0.9",
        }
    )
    if PROXY_URL:
        session.proxies.update({"http": PROXY_URL, "https": PROXY_URL})
    return session


def host_of(url: str) -> str:
    return (urlparse(url).hostname or "").lower()


def ensure_allowed(url: str, allowed_domain: str) -> None:
    host = host_of(url)
    if host != allowed_domain.lower():
        raise DomainNotAllowedError(
            f"Refusing to visit {url}: host {host or '<none>'} is not {allowed_domain}"
        )


def restricted_get(
    session: requests.Session,
    url: str,
    allowed_domain: str,
    timeout: float = REQUEST_TIMEOUT,
) -> requests.Response:
    """
    GET a URL, refusing to leave allowed_domain either up front or via redirects.
    Redirects are followed by hand so an off-domain Location is never requested.
    requests exceptions are left to the caller.
    """
    current = url
    for _ in range(MAX_REDIRECTS + 1):
        ensure_allowed(current, allowed_domain)
        logger.debug("GET %s", current)
        resp = session.get(current, timeout=timeout, allow_redirects=False)
        if not resp.is_redirect:
            return resp
        location = resp.headers.get("Location", "")
        current = urljoin(current, location)
        logger.debug("Redirected to %s", current)
    raise requests.TooManyRedirects(f"Exceeded {MAX_REDIRECTS} redirects for {url}")
