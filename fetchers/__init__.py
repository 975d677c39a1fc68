# fetchers/__init__.py
from .allkeyshop import PriceScraper
from .steam import fetch_wishlist

__all__ = ["PriceScraper", "fetch_wishlist"]
