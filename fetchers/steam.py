# fetchers/steam.py
from typing import Any, Dict, Optional

import requests

from core.errors import DomainNotAllowedError, FetchError
from core.logger import get_logger
from core.models import GameEntry, WishlistBatch
from .http import REQUEST_TIMEOUT, new_session, restricted_get

logger = get_logger(__name__)

STEAM_DOMAIN = "store.steampowered.com"
WISHLIST_URL = "https://" + STEAM_DOMAIN + "/wishlist/profiles/{user_id}/wishlistdata"


def wishlist_url(user_id: str) -> str:
    return WISHLIST_URL.format(user_id=user_id)


def parse_game_id(raw_id: str) -> int:
    try:
        game_id = int(raw_id)
    except (TypeError, ValueError) as e:
        raise FetchError(f"Malformed game id in wishlist: {raw_id!r}", cause=e) from e
    if game_id < 0:
        raise FetchError(f"Malformed game id in wishlist: {raw_id!r}")
    return game_id


def build_batch(data: Any) -> WishlistBatch:
    """
    Convert the wishlistdata JSON document (object keyed by string app ids)
    into an ordered WishlistBatch with integer ids.
    """
    # Steam answers an empty or private wishlist with []
    if isinstance(data, list) and not data:
        return WishlistBatch()
    if not isinstance(data, dict):
        raise FetchError(
            f"Unexpected wishlist payload type {type(data).__name__}; expected an object"
        )

    batch = WishlistBatch()
    for raw_id, info in data.items():
        game_id = parse_game_id(raw_id)
        if not isinstance(info, dict):
            raise FetchError(f"Wishlist entry {raw_id!r} is not an object")

        name = info.get("name")
        if not isinstance(name, str):
            name = ""
        name = name.strip()
        if not name:
            # Kept so it is reported as unresolved
            logger.warning("Wishlist entry %s has no name; it cannot be priced.", game_id)

        details: Dict[str, Any] = {k: v for k, v in info.items() if k != "name"}
        batch.add(GameEntry(game_id=game_id, name=name, details=details))

    return batch


def fetch_wishlist(
    user_id: str, session: Optional[requests.Session] = None
) -> WishlistBatch:
    """
    Fetch a Steam user's wishlist. Any failure raises FetchError; there is no retry.
    """
    session = session or new_session()
    url = wishlist_url(user_id)
    logger.info("Fetching Steam wishlist for user %s at %s", user_id, url)

    try:
        resp = restricted_get(session, url, STEAM_DOMAIN, timeout=REQUEST_TIMEOUT)
        resp.raise_for_status()
    except (requests.RequestException, DomainNotAllowedError) as e:
        logger.error("Steam wishlist fetch failed for %s: %s", user_id, e)
        raise FetchError(f"Could not fetch wishlist for {user_id}: {e}", cause=e) from e

    try:
        data = resp.json()
    except ValueError as e:
        logger.error("Steam returned malformed JSON for %s: %s", user_id, e)
        raise FetchError(f"Malformed wishlist JSON for {user_id}", cause=e) from e

    batch = build_batch(data)
    logger.info("Steam: found %d wishlisted games for user %s", len(batch), user_id)
    return batch
