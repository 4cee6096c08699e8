# core/validation.py
from typing import AbstractSet, List, Sequence

from .errors import ValidationError
from .logger import get_logger
from .models import Item, ItemView

logger = get_logger(__name__)

MAX_EXTERNAL_ID_LENGTH = 13


def resolve_selection(
    selection: AbstractSet[str], all_items: Sequence[ItemView]
) -> List[Item]:
    """Map selected ids back to full items, in list order. Unknown ids are dropped."""
    return [it.to_item() for it in all_items if it.item_id in selection]


def validate_import(
    selection: AbstractSet[str], all_items: Sequence[ItemView]
) -> List[Item]:
    """
    Resolve and check the selected items before they are submitted.
    Raises ValidationError naming every item whose external id is longer than
    MAX_EXTERNAL_ID_LENGTH; nothing from the batch may be imported in that case.
    """
    items = resolve_selection(selection, all_items)

    invalid = [
        it.name for it in items
        if it.item_id and len(it.item_id) > MAX_EXTERNAL_ID_LENGTH
    ]
    if invalid:
        message = (
            f"The following items have external IDs exceeding the maximum length of "
            f"{MAX_EXTERNAL_ID_LENGTH} ({', '.join(invalid)}). "
            f"Please correct them before importing."
        )
        logger.warning("Import validation failed for %d item(s): %s", len(invalid), invalid)
        raise ValidationError(message, invalid)

    return items
