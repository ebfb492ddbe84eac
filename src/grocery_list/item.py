"""
Grocery item model.

An item is identified by its name (case-insensitive) together with its
normalized category. Quantity is not part of the identity, so two items
with the same identity are merged by summing their quantities.
"""
from typing import Any, Dict, Mapping, Optional

from .errors import InvalidArgument

DEFAULT_CATEGORY = "default"


def normalize_category(category: Optional[str]) -> str:
    """Trim and lower-case a category; blank or missing becomes 'default'."""
    if category is None or not category.strip():
        return DEFAULT_CATEGORY
    return category.strip().lower()


def _check_quantity(quantity: Any) -> int:
    # bool is an int subclass, but True is not a quantity
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidArgument(f"Quantity must be an integer, got {quantity!r}")
    if quantity < 0:
        raise InvalidArgument(f"Quantity must be non-negative, got {quantity}")
    return quantity


class GroceryItem:
    """A named, quantified, categorized entry in the grocery list."""

    __slots__ = ("name", "quantity", "category")

    def __init__(self, name: str, quantity: int, category: Optional[str] = None):
        if name is None or not str(name).strip():
            raise InvalidArgument("Item name must not be blank")
        self.name = str(name).strip()
        if "\n" in self.name or "\r" in self.name:
            raise InvalidArgument(f"Item name must be a single line, got {self.name!r}")
        self.quantity = _check_quantity(quantity)
        self.category = normalize_category(category)

    @property
    def key(self) -> tuple:
        """Identity used for merging: lower-cased name and category."""
        return (self.name.lower(), self.category)

    def validate(self) -> None:
        """
        Check that the item can be persisted.

        Stricter than construction: a stored item must have a positive
        quantity.
        """
        if not self.name or not self.name.strip():
            raise InvalidArgument("Item name must not be blank")
        if self.quantity <= 0:
            raise InvalidArgument(
                f"Quantity of '{self.name}' must be positive to be saved, got {self.quantity}"
            )
        if not self.category or not self.category.strip():
            raise InvalidArgument(f"Category of '{self.name}' must not be blank")

    def merge_with(self, other: "GroceryItem") -> None:
        """Add the quantity of an item with the same identity to this one."""
        if not isinstance(other, GroceryItem) or other.key != self.key:
            raise InvalidArgument(f"Cannot merge {other!r} into {self!r}: different items")
        self.quantity += other.quantity

    def matches_name(self, name: str) -> bool:
        return self.name.lower() == name.strip().lower()

    def to_record(self) -> Dict[str, Any]:
        return {"name": self.name, "quantity": self.quantity, "category": self.category}

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "GroceryItem":
        return cls(record.get("name"), record.get("quantity"), record.get("category"))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GroceryItem):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __str__(self) -> str:
        return f"{self.name}: {self.quantity} ({self.category})"

    def __repr__(self) -> str:
        return f"GroceryItem({self.name!r}, {self.quantity!r}, {self.category!r})"
