# core/store.py
import asyncio
from dataclasses import replace
from typing import Callable, List, Optional

from . import selection
from .backend import CatalogBackend, Notifier
from .detail import DetailFetcher
from .errors import ImportBatchError, LoadError, ValidationError, describe_error
from .filtering import filter_items
from .logger import get_logger
from .models import CatalogState, Item, ItemView, Severity
from .validation import validate_import

logger = get_logger(__name__)

LOAD_FALLBACK_ERROR = "Unknown error"
IMPORT_FALLBACK_ERROR = "Unknown error during import."

Listener = Callable[[CatalogState], None]


class CatalogStore:
    """
    Owns the catalog snapshot and applies every user event and backend
    response to it. Each transition replaces the snapshot; listeners are
    called with the new one.
    """

    def __init__(
        self,
        backend: CatalogBackend,
        notifier: Notifier,
        discard_stale_details: bool = False,
    ):
        self.backend = backend
        self.notifier = notifier
        self.details = DetailFetcher(backend, notifier, discard_stale=discard_stale_details)
        self._state = CatalogState()
        self._pending = 0
        self._listeners: List[Listener] = []

    @property
    def state(self) -> CatalogState:
        return self._state

    @property
    def is_import_disabled(self) -> bool:
        return selection.is_import_disabled(self._state)

    @property
    def show_no_items_found(self) -> bool:
        return not self._state.is_loading and not self._state.filtered_items

    @property
    def unified_description(self) -> str:
        detail = self._state.modal.current_detail
        return detail.description if detail else ""

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, state: CatalogState) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                logger.exception("Catalog listener failed: %s", e)

    def _begin(self) -> None:
        self._pending += 1
        self._commit(replace(self._state, is_loading=True))

    def _end(self, state: CatalogState) -> None:
        self._pending = max(0, self._pending - 1)
        self._commit(replace(state, is_loading=self._pending > 0))

    # -- load -----------------------------------------------------------

    async def _fetch_items(self) -> List[Item]:
        try:
            return await self.backend.list_items()
        except Exception as e:
            raise LoadError(describe_error(e, LOAD_FALLBACK_ERROR)) from e

    async def load(self) -> None:
        self._begin()
        try:
            items = await self._fetch_items()
        except LoadError as e:
            logger.error("Failed to load catalog: %s", e.message)
            self._end(
                replace(
                    self._state,
                    all_items=(),
                    filtered_items=(),
                    selection=frozenset(),
                    error=e.message,
                )
            )
            self.notifier.notify("Error", e.message, Severity.ERROR)
            return

        all_items = tuple(
            ItemView(
                item_id=it.item_id,
                name=it.name,
                price=it.price,
                image_url=it.image_url,
                is_selected=False,
            )
            for it in items
        )
        logger.info("Loaded %d catalog items.", len(all_items))
        self._end(
            replace(
                self._state,
                all_items=all_items,
                filtered_items=filter_items(all_items, self._state.search_term),
                selection=frozenset(),
                error=None,
            )
        )

    # -- filter and selection ---------------------------------------------

    def set_search_term(self, term: str) -> None:
        term = (term or "").lower()
        self._commit(
            replace(
                self._state,
                search_term=term,
                filtered_items=filter_items(self._state.all_items, term),
            )
        )

    def toggle_selection(self, item_id: str, checked: bool) -> None:
        self._commit(selection.toggle(self._state, item_id, checked))

    # -- import -----------------------------------------------------------

    async def _send_batch(self, items: List[Item]) -> None:
        try:
            await self.backend.submit_import(items)
        except Exception as e:
            raise ImportBatchError(describe_error(e, IMPORT_FALLBACK_ERROR)) from e

    async def submit_import(self) -> Optional[List[Item]]:
        if not self._state.selection:
            logger.warning("Import requested with an empty selection; nothing to do.")
            return None

        self._begin()
        try:
            items = validate_import(self._state.selection, self._state.all_items)
        except ValidationError as e:
            self._end(self._state)
            self.notifier.notify("Validation Error", e.message, Severity.ERROR)
            return None

        logger.info("Submitting import batch of %d item(s).", len(items))
        try:
            await self._send_batch(items)
        except ImportBatchError as e:
            logger.error("Import failed: %s", e.message)
            self._end(replace(self._state, error=e.message))
            self.notifier.notify("Import Error", e.message, Severity.ERROR)
            return None

        self._end(selection.reset(self._state))
        self.notifier.notify(
            "Success", f"{len(items)} items imported successfully!", Severity.SUCCESS
        )
        return items

    # -- detail modal -------------------------------------------------------

    def open_detail(self, item_id: str) -> "asyncio.Task[None]":
        state, seq = self.details.open(self._state, item_id)
        self._commit(state)
        return asyncio.create_task(self._resolve_detail(item_id, seq))

    async def _resolve_detail(self, item_id: str, seq: int) -> None:
        detail = await self.details.fetch(item_id)
        if self.details.accepts(self._state, seq):
            self._commit(self.details.apply(self._state, detail))

    def close_detail(self) -> None:
        self._commit(self.details.close(self._state))
