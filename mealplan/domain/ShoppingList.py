"""ShoppingList value: ordered, deduplicated ingredient strings (a snapshot of the plan)."""
from typing import Iterable, List, Optional


class ShoppingList:
    def __init__(self, items: Optional[Iterable[str]] = None):
        self.items: List[str] = []
        seen = set()
        for item in items or []:
            if isinstance(item, str) and item not in seen:
                seen.add(item)
                self.items.append(item)

    def get_items(self) -> List[str]:
        '''
        Returns a copy of the list items.
        '''
        return list(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __eq__(self, other) -> bool:
        if not isinstance(other, ShoppingList):
            return NotImplemented
        return self.items == other.items

    def __str__(self) -> str:
        items_str = ",\n\t".join(self.items)
        return f"Shopping List Items:\n\t{items_str}"

    __repr__ = __str__

    @staticmethod
    def from_dict(data) -> "ShoppingList":
        if not isinstance(data, dict):
            return ShoppingList()
        items = data.get("items")
        return ShoppingList(items if isinstance(items, list) else [])

    def to_dict(self):
        return {"items": list(self.items)}
