import asyncio
from typing import Any, Dict, List, Mapping, Optional, Tuple

import pytest

from core.errors import BackendError
from core.models import Item, Severity
from core.store import CatalogStore


class FakeBackend:
    """In-memory backend. Calls can be held open with a gate event."""

    def __init__(self, items: Optional[List[Item]] = None):
        self.items = list(items or [])
        self.details: Dict[str, Mapping[str, Any]] = {}
        self.list_error: Optional[Exception] = None
        self.detail_error: Optional[Exception] = None
        self.import_error: Optional[Exception] = None
        self.list_gate: Optional[asyncio.Event] = None
        self.import_gate: Optional[asyncio.Event] = None
        self.detail_gates: Dict[str, asyncio.Event] = {}
        self.list_calls = 0
        self.detail_calls: List[str] = []
        self.imported: List[List[Item]] = []

    async def list_items(self) -> List[Item]:
        self.list_calls += 1
        if self.list_gate is not None:
            await self.list_gate.wait()
        if self.list_error is not None:
            raise self.list_error
        return list(self.items)

    async def fetch_detail(self, item_id: str) -> Mapping[str, Any]:
        self.detail_calls.append(item_id)
        gate = self.detail_gates.get(item_id)
        if gate is not None:
            await gate.wait()
        if self.detail_error is not None:
            raise self.detail_error
        if item_id not in self.details:
            raise BackendError(f"Unknown item {item_id}")
        return self.details[item_id]

    async def submit_import(self, items: List[Item]) -> None:
        if self.import_gate is not None:
            await self.import_gate.wait()
        if self.import_error is not None:
            raise self.import_error
        self.imported.append(list(items))


class RecordingNotifier:
    def __init__(self):
        self.calls: List[Tuple[str, str, Severity]] = []

    def notify(self, title: str, message: str, severity: Severity) -> None:
        self.calls.append((title, message, severity))

    @property
    def last(self) -> Tuple[str, str, Severity]:
        return self.calls[-1]


CATALOG = [
    Item(item_id="A1", name="Blue Widget", price=9.99, image_url="https://img/a1.png"),
    Item(item_id="B2", name="Red Widget", price=12.5, image_url="https://img/b2.png"),
    Item(item_id="C3", name="Green Gadget", price=3.0, image_url="https://img/c3.png"),
    Item(item_id="D4", name="Widget Deluxe", price=99.0, image_url=""),
]


@pytest.fixture
def items() -> List[Item]:
    return list(CATALOG)


@pytest.fixture
def backend(items) -> FakeBackend:
    return FakeBackend(items)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def store(backend, notifier) -> CatalogStore:
    return CatalogStore(backend, notifier)


def assert_consistent(state) -> None:
    """Checks the snapshot invariants shared by every transition."""
    ids = [it.item_id for it in state.all_items]
    for it in state.all_items:
        assert it.is_selected == (it.item_id in state.selection)
    assert state.selection <= set(ids)
    positions = [ids.index(it.item_id) for it in state.filtered_items]
    assert positions == sorted(positions)
    if len(state.search_term) < 3:
        assert state.filtered_items == state.all_items
