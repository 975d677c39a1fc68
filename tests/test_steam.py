from decimal import Decimal
from unittest.mock import MagicMock

import pytest
import requests

from conftest import make_response
from core.errors import FetchError
from core.models import LookupStatus
from core.report import finalize
from core.throttle import BackoffPolicy, RateLimiter, RetryThrottle
from fetchers import steam

WISHLIST_JSON = {
    "1234": {
        "name": "Celeste",
        "review_score": 9,
        "review_desc": "Overwhelmingly Positive",
        "subs": [{"price": "1999"}],
        "tags": ["Platformer"],
        "is_free_game": False,
        "win": 1,
    },
    "42": {"name": "Hades", "priority": 1},
}


def test_wishlist_url():
    assert steam.wishlist_url("76561198062700091") == (
        "https://store.steampowered.com/wishlist/profiles/76561198062700091/wishlistdata"
    )


def test_fetch_wishlist_builds_ordered_int_keyed_batch(session):
    session.get.return_value = make_response(json_data=WISHLIST_JSON)

    batch = steam.fetch_wishlist("765", session=session)

    assert [e.game_id for e in batch] == [1234, 42]
    assert [e.name for e in batch] == ["Celeste", "Hades"]
    assert batch[0].details["review_desc"] == "Overwhelmingly Positive"
    assert "name" not in batch[0].details


def test_fetch_wishlist_empty_list_payload(session):
    session.get.return_value = make_response(json_data=[])
    assert len(steam.fetch_wishlist("765", session=session)) == 0


def test_fetch_wishlist_keeps_nameless_entries(session):
    session.get.return_value = make_response(json_data={"1": {"priority": 1}, "2": {"name": "  "}, "3": {"name": "Hades"}})
    batch = steam.fetch_wishlist("765", session=session)
    assert [e.game_id for e in batch] == [1, 2, 3]
    assert [e.name for e in batch] == ["", "", "Hades"]


def test_nameless_entries_are_reported_as_failures(session, sleeps):
    session.get.return_value = make_response(json_data={"1": {"priority": 1}, "2": {"name": "Hades"}})
    batch = steam.fetch_wishlist("765", session=session)

    scraper = MagicMock()
    scraper.scrape.return_value = Decimal("19.99")
    throttle = RetryThrottle(
        scraper, policy=BackoffPolicy.none(), limiter=RateLimiter(sleep=sleeps), sleep=sleeps
    )
    for entry in batch:
        throttle.lookup(entry)
    report = finalize(batch)

    assert len(report.rows) + report.skipped == len(batch) == 2
    assert [(f.name, f.status, f.reason) for f in report.failures] == [
        ("app 1", LookupStatus.NOT_FOUND, "empty search query"),
    ]
    scraper.scrape.assert_called_once_with("Hades")


def test_fetch_wishlist_malformed_id(session):
    session.get.return_value = make_response(json_data={"abc": {"name": "Hades"}})
    with pytest.raises(FetchError):
        steam.fetch_wishlist("765", session=session)


def test_fetch_wishlist_malformed_json(session):
    session.get.return_value = make_response(text="<html>oops</html>")
    with pytest.raises(FetchError) as exc_info:
        steam.fetch_wishlist("765", session=session)
    assert isinstance(exc_info.value.cause, ValueError)


def test_fetch_wishlist_non_object_payload(session):
    session.get.return_value = make_response(json_data=["unexpected"])
    with pytest.raises(FetchError):
        steam.fetch_wishlist("765", session=session)


def test_fetch_wishlist_transport_failure_is_not_retried(session):
    session.get.side_effect = requests.ConnectionError("down")
    with pytest.raises(FetchError):
        steam.fetch_wishlist("765", session=session)
    assert session.get.call_count == 1


def test_fetch_wishlist_http_error(session):
    session.get.return_value = make_response(status_code=500)
    with pytest.raises(FetchError):
        steam.fetch_wishlist("765", session=session)


def test_fetch_wishlist_refuses_off_domain_redirect(session):
    session.get.return_value = make_response(
        status_code=302, headers={"Location": "https://login.example.com/"}
    )
    with pytest.raises(FetchError):
        steam.fetch_wishlist("765", session=session)
