import os
import sys

from core.errors import FetchError
from core.logger import get_logger
from core.models import LookupStatus, WishlistBatch
from core.report import finalize, render_html, render_text
from core.throttle import BackoffPolicy, RateLimiter, RetryThrottle
from fetchers.allkeyshop import PriceScraper
from fetchers.steam import fetch_wishlist

logger = get_logger(__name__)

PRICE_MAX_RETRIES = int(os.getenv("PRICE_MAX_RETRIES", "5"))
PRICE_RETRY_MAX_DELAY = float(os.getenv("PRICE_RETRY_MAX_DELAY", "30"))
PRICE_COOLDOWN_EVERY = int(os.getenv("PRICE_COOLDOWN_EVERY", "5"))
PRICE_COOLDOWN_SECONDS = float(os.getenv("PRICE_COOLDOWN_SECONDS", "30"))
PRICE_REQUEST_JITTER = float(os.getenv("PRICE_REQUEST_JITTER", "0"))
REPORT_FORMAT = os.getenv("REPORT_FORMAT", "text").strip().lower()  # "text" or "html"
REPORT_INCLUDE_UNRESOLVED = os.getenv("REPORT_INCLUDE_UNRESOLVED", "false").lower() == "true"


def build_throttle() -> RetryThrottle:
    policy = BackoffPolicy(max_retries=PRICE_MAX_RETRIES, max_delay=PRICE_RETRY_MAX_DELAY)
    limiter = RateLimiter(
        every=PRICE_COOLDOWN_EVERY,
        cooldown=PRICE_COOLDOWN_SECONDS,
        jitter=PRICE_REQUEST_JITTER,
    )
    return RetryThrottle(PriceScraper(), policy=policy, limiter=limiter)


def price_batch(batch: WishlistBatch, throttle: RetryThrottle) -> WishlistBatch:
    total = len(batch)
    for idx, entry in enumerate(batch, start=1):
        logger.debug("Looking up %d/%d: %s", idx, total, entry.name)
        try:
            throttle.lookup(entry)
        except Exception as e:
            logger.exception("Unhandled error looking up '%s': %s", entry.name, e)
            entry.fail(LookupStatus.PARSE_ERROR, f"unexpected error: {e}")
            continue

        if entry.resolved:
            logger.info("Best price for '%s' is %s", entry.name, entry.best_price)
        else:
            logger.warning(
                "No price for '%s' (%s): %s", entry.name, entry.status.name, entry.reason
            )
    return batch


def run_once(user_id: str, throttle: RetryThrottle | None = None, out=None) -> int:
    if out is None:
        out = sys.stdout
    batch = fetch_wishlist(user_id)
    throttle = throttle or build_throttle()

    price_batch(batch, throttle)

    report = finalize(batch, include_unresolved=REPORT_INCLUDE_UNRESOLVED)
    if REPORT_FORMAT == "html":
        out.write(render_html(report))
    else:
        out.write(render_text(report))

    resolved = len(batch) - report.skipped
    logger.info(
        "Priced %d of %d wishlisted games (%d unresolved).",
        resolved, len(batch), report.skipped,
    )
    if len(batch) and not resolved:
        return 1
    return 0


def main(argv: list[str]) -> int:
    user_id = argv[1] if len(argv) > 1 else os.getenv("STEAM_USER_ID", "").strip()
    if not user_id:
        logger.error("No Steam user id given (argument or STEAM_USER_ID).")
        return 2
    try:
        return run_once(user_id)
    except FetchError as e:
        logger.error("Could not load wishlist: %s", e)
        return 1


def _console_main() -> None:
    try:
        raise SystemExit(main(sys.argv))
    except Exception as e:
        logger.exception("Fatal pricer error: %s", e)
        raise SystemExit(2)


if __name__ == "__main__":
    _console_main()
