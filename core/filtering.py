# core/filtering.py
from typing import Sequence, Tuple

from .models import ItemView

MIN_SEARCH_LENGTH = 3


def filter_items(items: Sequence[ItemView], term: str) -> Tuple[ItemView, ...]:
    """
    Return the items whose name contains term, case-insensitively.
    Terms shorter than MIN_SEARCH_LENGTH leave the list untouched.
    """
    items = tuple(items)
    if len(term) < MIN_SEARCH_LENGTH:
        return items
    needle = term.casefold()
    return tuple(it for it in items if needle in it.name.casefold())
