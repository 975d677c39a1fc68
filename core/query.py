# core/query.py
import re

_WHITESPACE_RE = re.compile(r"\s+")


def build_query(display_name: str) -> str:
    """
    Turn a game name into an AllKeyShop search fragment.
    Whitespace runs collapse to a single '+'; everything else is kept as-is.
    """
    if not display_name:
        return ""
    return _WHITESPACE_RE.sub("+", display_name.strip())
