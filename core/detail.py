# core/detail.py
from dataclasses import replace
from typing import Any, Mapping, Optional, Tuple

from .backend import CatalogBackend, Notifier
from .errors import DetailError, describe_error
from .logger import get_logger
from .models import CatalogState, ItemDetail, ModalState, Severity

logger = get_logger(__name__)

# Upstream detail records sometimes carry the description under a misspelled key.
DESCRIPTION_FIELDS = ("description", "decription")
DETAIL_FALLBACK_DESCRIPTION = "Failed to load description."
DETAIL_FALLBACK_ERROR = "Error fetching details."


def unified_description(payload: Optional[Mapping[str, Any]]) -> str:
    if not payload:
        return ""
    for key in DESCRIPTION_FIELDS:
        value = payload.get(key)
        if value:
            return str(value)
    return ""


class DetailFetcher:
    """
    Drives the item detail modal.

    Each fetch is tagged with a sequence number. When discard_stale is set,
    only the response to the most recent open is applied; otherwise the last
    response to arrive wins. Responses arriving after the modal was closed are
    always dropped.
    """

    def __init__(
        self,
        backend: CatalogBackend,
        notifier: Notifier,
        discard_stale: bool = False,
    ):
        self.backend = backend
        self.notifier = notifier
        self.discard_stale = discard_stale
        self._seq = 0

    @property
    def latest_seq(self) -> int:
        return self._seq

    def open(self, state: CatalogState, item_id: str) -> Tuple[CatalogState, int]:
        item = state.find(item_id)
        if item is None:
            logger.warning("Opening detail for item %s not present in the catalog.", item_id)
        self._seq += 1
        modal = ModalState(
            open=True,
            current_item=item.to_item() if item is not None else None,
            current_detail=ItemDetail(),
        )
        return replace(state, modal=modal), self._seq

    async def fetch(self, item_id: str) -> ItemDetail:
        try:
            payload = await self.backend.fetch_detail(item_id)
        except Exception as e:
            err = DetailError(describe_error(e, DETAIL_FALLBACK_ERROR))
            logger.error("Failed to fetch detail for item %s: %s", item_id, err.message)
            self.notifier.notify("Error", err.message, Severity.ERROR)
            return ItemDetail(description=DETAIL_FALLBACK_DESCRIPTION)

        return ItemDetail(description=unified_description(payload))

    def accepts(self, state: CatalogState, seq: int) -> bool:
        if not state.modal.open:
            logger.debug("Dropping detail response %d; modal is closed.", seq)
            return False
        if self.discard_stale and seq != self._seq:
            logger.debug("Dropping stale detail response %d (latest %d).", seq, self._seq)
            return False
        return True

    def apply(self, state: CatalogState, detail: ItemDetail) -> CatalogState:
        return replace(state, modal=replace(state.modal, current_detail=detail))

    def close(self, state: CatalogState) -> CatalogState:
        return replace(state, modal=ModalState())
