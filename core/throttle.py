# core/throttle.py
import random
import time
from dataclasses import dataclass
from typing import Callable, Optional

from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random,
)

from .errors import NotFoundError, ParseError, TransportError
from .logger import get_logger
from .models import GameEntry, LookupStatus
from .query import build_query

logger = get_logger(__name__)


@dataclass(frozen=True)
class BackoffPolicy:
    """How often to retry a transport failure and how long to wait in between."""
    max_retries: int = 5
    min_delay: float = 0.0
    max_delay: float = 30.0

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def wait(self):
        return wait_random(min=self.min_delay, max=self.max_delay)

    @classmethod
    def none(cls, max_retries: int = 5) -> "BackoffPolicy":
        return cls(max_retries=max_retries, min_delay=0.0, max_delay=0.0)


class RateLimiter:
    """
    Shared per-batch request counter. After every `every` completed requests
    the next request is preceded by a `cooldown` pause.

    Single-threaded only; a parallel pipeline needs a locked token bucket here.
    """

    def __init__(
        self,
        every: int = 5,
        cooldown: float = 30.0,
        jitter: float = 0.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if every < 1:
            raise ValueError("every must be >= 1")
        self.every = every
        self.cooldown = cooldown
        self.jitter = jitter
        self._sleep = sleep
        self.completed = 0
        self.cooldowns = 0
        self._cooled_at = 0

    def before_request(self) -> None:
        if self.completed and self.completed % self.every == 0 and self._cooled_at != self.completed:
            logger.info(
                "%d requests completed; cooling down for %.1fs.",
                self.completed,
                self.cooldown,
            )
            self._sleep(self.cooldown)
            self._cooled_at = self.completed
            self.cooldowns += 1
        if self.jitter > 0:
            self._sleep(random.uniform(0, self.jitter))

    def record_completed(self) -> None:
        self.completed += 1


class RetryThrottle:
    """
    Wraps a price scraper with retry-on-transport-error and the shared
    rate limiter. Per-entry failures end up on the entry, never raised.
    """

    def __init__(
        self,
        scraper,
        policy: Optional[BackoffPolicy] = None,
        limiter: Optional[RateLimiter] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.scraper = scraper
        self.policy = policy or BackoffPolicy()
        self.limiter = limiter or RateLimiter(sleep=sleep)
        self._sleep = sleep
        self.attempts = 0

    def _log_retry(self, entry: GameEntry) -> Callable[[RetryCallState], None]:
        def before_sleep(state: RetryCallState) -> None:
            exc = state.outcome.exception() if state.outcome else None
            logger.warning(
                "Transport error looking up '%s' (attempt %d/%d): %s. Sleeping %.1fs before retry.",
                entry.name,
                state.attempt_number,
                self.policy.max_attempts,
                exc,
                state.next_action.sleep if state.next_action else 0.0,
            )
        return before_sleep

    def _attempt(self, query: str):
        self.attempts += 1
        self.limiter.before_request()
        try:
            price = self.scraper.scrape(query)
        except (NotFoundError, ParseError):
            # Site answered; counts towards the cooldown
            self.limiter.record_completed()
            raise
        self.limiter.record_completed()
        return price

    def lookup(self, entry: GameEntry) -> GameEntry:
        self.attempts = 0
        query = build_query(entry.name)
        if not query:
            entry.fail(LookupStatus.NOT_FOUND, "empty search query")
            return entry

        retrying = Retrying(
            stop=stop_after_attempt(self.policy.max_attempts),
            wait=self.policy.wait(),
            retry=retry_if_exception_type(TransportError),
            sleep=self._sleep,
            before_sleep=self._log_retry(entry),
        )
        try:
            price = retrying(self._attempt, query)
        except RetryError as e:
            cause = e.last_attempt.exception()
            entry.fail(
                LookupStatus.NOT_FOUND,
                f"transport error after {self.attempts} attempts: {cause}",
            )
        except NotFoundError as e:
            entry.fail(LookupStatus.NOT_FOUND, str(e))
        except ParseError as e:
            entry.fail(LookupStatus.PARSE_ERROR, str(e))
        else:
            entry.resolve(price)
        return entry
