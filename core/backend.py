# core/backend.py
from typing import Any, List, Mapping, Protocol

from .models import Item, Severity


class CatalogBackend(Protocol):
    async def list_items(self) -> List[Item]:
        ...

    async def fetch_detail(self, item_id: str) -> Mapping[str, Any]:
        ...

    async def submit_import(self, items: List[Item]) -> None:
        ...


class Notifier(Protocol):
    def notify(self, title: str, message: str, severity: Severity) -> None:
        ...
