# core/errors.py


class PricerError(Exception):
    """Base class for wishlist pricing errors."""


class FetchError(PricerError):
    """The wishlist could not be retrieved. Fatal for the whole run."""

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause


class TransportError(PricerError):
    """Transient network failure while talking to the price site."""


class NotFoundError(PricerError):
    """The price site answered but listed no price for the query."""


class DomainNotAllowedError(NotFoundError):
    """A request (or redirect) pointed outside the allowed domain."""


class ParseError(PricerError):
    """The price site returned price text that could not be understood."""

    def __init__(self, raw: str, message: str | None = None):
        super().__init__(message or f"Unrecognized price text: {raw!r}")
        self.raw = raw
