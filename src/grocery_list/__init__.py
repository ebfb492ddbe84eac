"""
Grocery List - a shopping list kept in a JSON or CSV file

Features:
- Add items with a quantity and a category, merging repeated items
- Remove items by name across all categories
- List items grouped by category
- Command-line tool and a small web server
"""

__version__ = "0.1.0"

from .errors import GroceryListError, InvalidArgument, IOFailure
from .item import DEFAULT_CATEGORY, GroceryItem, normalize_category
from .manager import GroceryListManager
from .storage import (
    GroceryStorage,
    JsonStorage,
    CsvStorage,
    create_storage,
    split_csv_line,
)

__all__ = [
    "GroceryListError",
    "InvalidArgument",
    "IOFailure",
    "DEFAULT_CATEGORY",
    "GroceryItem",
    "normalize_category",
    "GroceryListManager",
    "GroceryStorage",
    "JsonStorage",
    "CsvStorage",
    "create_storage",
    "split_csv_line",
]
