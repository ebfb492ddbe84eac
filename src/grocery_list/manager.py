"""
Grocery list manager

Owns the in-memory list, applies add/remove operations and writes the whole
list back through its storage after every change. Listing works from memory
only.
"""
import logging
import threading
from collections import defaultdict
from typing import Dict, List, Optional

from .errors import InvalidArgument, IOFailure
from .item import GroceryItem, normalize_category
from .storage import GroceryStorage


class GroceryListManager:
    """
    Add, remove and list grocery items backed by a ``GroceryStorage``.

    All public methods hold the instance lock, so one manager can be shared
    by the web server's request threads.
    """

    def __init__(self, storage: GroceryStorage, logger: Optional[logging.Logger] = None):
        if storage is None:
            raise InvalidArgument("A storage is required")
        self.storage = storage
        self.logger = logger or logging.getLogger(__name__)
        self._lock = threading.RLock()
        self._items: List[GroceryItem] = list(storage.load())
        self.logger.info("Grocery list loaded from %s (%d items)", storage.path, len(self._items))

    def add_item(self, name: str, quantity: int, category: Optional[str] = None) -> GroceryItem:
        """
        Add ``quantity`` of an item, merging with an existing item of the same
        name and category. Returns the stored item.
        """
        new_item = GroceryItem(name, quantity, normalize_category(category))

        with self._lock:
            existing = next((item for item in self._items if item == new_item), None)
            if existing is not None:
                existing.merge_with(new_item)
                self.logger.info("Updated existing item: %s (+%d) in [%s]",
                                 existing.name, quantity, existing.category)
                stored = existing
            else:
                self._items.append(new_item)
                self.logger.info("Added new item: %s (%d) in [%s]",
                                 new_item.name, quantity, new_item.category)
                stored = new_item

            self._persist()
            return stored

    def remove_item(self, name: str) -> int:
        """
        Remove every item called ``name`` (case-insensitive) whatever its
        category. A name that is not in the list is not an error.

        Returns the number of items removed.
        """
        if name is None or not name.strip():
            raise InvalidArgument("Item name must not be blank")

        with self._lock:
            kept = [item for item in self._items if not item.matches_name(name)]
            removed = len(self._items) - len(kept)
            self._items[:] = kept

            if removed:
                self.logger.info("Removed %d item(s) named %s", removed, name)
            else:
                self.logger.warning("Item not found for removal: %s", name)

            self._persist()
            return removed

    def list_items(self) -> Dict[str, List[GroceryItem]]:
        """Items grouped by category, categories in ascending order."""
        with self._lock:
            groups = defaultdict(list)
            for item in self._items:
                groups[normalize_category(item.category)].append(item)
            return {category: groups[category] for category in sorted(groups)}

    def get_items(self) -> List[GroceryItem]:
        """Copy of the stored items in storage order."""
        with self._lock:
            return list(self._items)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def _persist(self) -> None:
        try:
            self.storage.save(self._items)
        except (IOFailure, InvalidArgument):
            self.logger.error("Failed to persist grocery list to %s", self.storage.path)
            raise


def render_grouped(groups: Dict[str, List[GroceryItem]]) -> List[str]:
    """Lines for the text listing: a '# category:' heading per group."""
    lines = []
    for category, items in groups.items():
        lines.append(f"# {category}:")
        for item in items:
            lines.append(f"{item.name}: {item.quantity}")
        lines.append("")
    return lines
