# core/models.py
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Tuple


class Severity(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Item:
    """
    One catalog record eligible for import.
    item_id is the external identifier sent with the import batch.
    """
    item_id: str
    name: str
    price: float = 0.0
    image_url: str = ""

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "Item":
        item_id = data.get("id") or data.get("item_id") or data.get("product_id") or ""
        image = data.get("imageUrl") or data.get("image_url") or data.get("image") or ""
        price = data.get("price")
        try:
            price = float(price) if price is not None else 0.0
        except (TypeError, ValueError):
            price = 0.0
        return cls(
            item_id=str(item_id),
            name=str(data.get("name") or ""),
            price=price,
            image_url=str(image),
        )

    def to_payload(self) -> dict:
        return {
            "id": self.item_id,
            "name": self.name,
            "price": self.price,
            "imageUrl": self.image_url,
        }


@dataclass(frozen=True)
class ItemView(Item):
    """Item projected for rendering; is_selected mirrors the selection set."""
    is_selected: bool = False

    def to_item(self) -> Item:
        return Item(
            item_id=self.item_id,
            name=self.name,
            price=self.price,
            image_url=self.image_url,
        )


@dataclass(frozen=True)
class ItemDetail:
    description: str = ""


@dataclass(frozen=True)
class ModalState:
    open: bool = False
    current_item: Optional[Item] = None
    current_detail: Optional[ItemDetail] = None


@dataclass(frozen=True)
class CatalogState:
    all_items: Tuple[ItemView, ...] = ()
    filtered_items: Tuple[ItemView, ...] = ()
    search_term: str = ""
    selection: frozenset = frozenset()
    is_loading: bool = False
    error: Optional[str] = None
    modal: ModalState = field(default_factory=ModalState)

    def find(self, item_id: str) -> Optional[ItemView]:
        for it in self.all_items:
            if it.item_id == item_id:
                return it
        return None
