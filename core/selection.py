# core/selection.py
from dataclasses import replace

from .filtering import filter_items
from .logger import get_logger
from .models import CatalogState

logger = get_logger(__name__)


def toggle(state: CatalogState, item_id: str, checked: bool) -> CatalogState:
    if state.find(item_id) is None:
        logger.warning("Ignoring selection change for unknown item %s.", item_id)
        return state

    if checked:
        selection = state.selection | {item_id}
    else:
        selection = state.selection - {item_id}

    all_items = tuple(
        replace(it, is_selected=checked) if it.item_id == item_id else it
        for it in state.all_items
    )
    logger.debug(
        "Item %s %s; %d selected.",
        item_id, "selected" if checked else "unselected", len(selection),
    )
    return replace(
        state,
        selection=frozenset(selection),
        all_items=all_items,
        filtered_items=filter_items(all_items, state.search_term),
    )


def reset(state: CatalogState) -> CatalogState:
    all_items = tuple(
        replace(it, is_selected=False) if it.is_selected else it
        for it in state.all_items
    )
    return replace(
        state,
        selection=frozenset(),
        all_items=all_items,
        filtered_items=filter_items(all_items, state.search_term),
    )


def is_import_disabled(state: CatalogState) -> bool:
    return not state.selection
